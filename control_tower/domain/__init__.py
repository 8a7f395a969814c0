"""Domain models for the Control Tower notifier."""

from .models import (
    SYSTEM_ACTOR,
    AlertConfig,
    AlertEvents,
    AlertEventType,
    AuditEntry,
    Deployment,
    DeploymentStatus,
    GoogleChatSettings,
    Product,
    ProductAlertConfig,
    ReminderClass,
    User,
)

__all__ = [
    "AlertConfig",
    "AlertEvents",
    "AlertEventType",
    "AuditEntry",
    "Deployment",
    "DeploymentStatus",
    "GoogleChatSettings",
    "Product",
    "ProductAlertConfig",
    "ReminderClass",
    "SYSTEM_ACTOR",
    "User",
]
