"""Deployment reminders and event-based alerts.

This package provides the notification pipeline:
- NotificationService: daily reminder run and event-based alerts
- RecipientResolver: deduplicated recipients from lists and name lookups
- Reminder classification and the once-per-day gate (triggers)
- resolve_chat_webhook: deployment -> product -> global webhook precedence
- ChannelDispatcher: email and Google Chat delivery with per-channel isolation
- SMTPClient / GoogleChatClient: the transports
- TemplateRenderer: Jinja2 email bodies
"""

from .chat_client import GoogleChatClient
from .dispatcher import ChannelDispatcher
from .models import (
    AlertResult,
    ChannelResult,
    ChatDeliveryError,
    DeliveryError,
    Notification,
    NotificationError,
    NotificationTemplateError,
    ReminderRunResult,
    SMTPDeliveryError,
)
from .recipients import RecipientResolver
from .service import NotificationService
from .smtp_client import SMTPClient, build_sender_address, validate_recipients
from .templates import TemplateRenderer
from .triggers import (
    ReminderTrigger,
    already_sent,
    classify_days,
    days_until,
    evaluate_reminder,
    event_type_for_status_change,
    reminder_subject,
)
from .webhooks import resolve_chat_webhook

__all__ = [
    # Main service
    "NotificationService",
    # Results
    "AlertResult",
    "ChannelResult",
    "Notification",
    "ReminderRunResult",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "DeliveryError",
    "SMTPDeliveryError",
    "ChatDeliveryError",
    # Components
    "RecipientResolver",
    "ChannelDispatcher",
    "SMTPClient",
    "GoogleChatClient",
    "TemplateRenderer",
    # Reminder rules
    "ReminderTrigger",
    "days_until",
    "classify_days",
    "evaluate_reminder",
    "already_sent",
    "reminder_subject",
    "event_type_for_status_change",
    "resolve_chat_webhook",
    # Utilities
    "build_sender_address",
    "validate_recipients",
]
