"""Core domain models for deployments, products, users and audit entries.

These mirror the records owned by the dashboard backend. Field names are
snake_case in Python; the camelCase names used by the dashboard's JSON
(``alertConfig``, ``notifyProductOwners``, ``googleChat`` ...) are accepted
as aliases so stored JSON validates unchanged.

AlertConfig defaults are applied once, when the model is validated:
absent or null keys mean "enabled" for every switch.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class DeploymentStatus(str, Enum):
    """Lifecycle states of a deployment. RELEASED is terminal."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    RELEASED = "Released"


class AlertEventType(str, Enum):
    """State transitions and conditions that can raise an event-based alert."""

    CREATED = "created"
    STATUS_CHANGED = "statusChanged"
    BLOCKED = "blocked"
    RELEASED = "released"
    APPROACHING = "approaching"
    OVERDUE = "overdue"

    @property
    def display_title(self) -> str:
        return _EVENT_TITLES[self]


_EVENT_TITLES = {
    AlertEventType.CREATED: "New Deployment Created",
    AlertEventType.STATUS_CHANGED: "Deployment Status Changed",
    AlertEventType.BLOCKED: "Deployment Blocked",
    AlertEventType.RELEASED: "Deployment Released",
    AlertEventType.APPROACHING: "Deployment Approaching",
    AlertEventType.OVERDUE: "Deployment Overdue",
}


class ReminderClass(str, Enum):
    """Time-to-delivery buckets for scheduled reminders.

    The value doubles as the key into Deployment.last_notification_sent.
    """

    SEVEN_DAYS = "7_days"
    THREE_DAYS = "3_days"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"


class _CamelModel(BaseModel):
    """Base for models stored as camelCase JSON by the dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat explicit nulls like absent keys so field defaults apply."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def _drop_blank_entries(v: Any) -> Any:
    """Stored string lists may contain nulls or blanks; skip them."""
    if isinstance(v, list):
        return [item for item in v if item is not None and str(item).strip()]
    return v


class AlertEvents(_CamelModel):
    """Per-event switches. Every event is enabled unless set to false."""

    on_created: bool = True
    on_status_change: bool = True
    on_blocked: bool = True
    on_released: bool = True
    on_approaching: bool = True
    on_overdue: bool = True

    def is_enabled(self, event_type: AlertEventType) -> bool:
        return getattr(self, _EVENT_SWITCHES[AlertEventType(event_type)])


_EVENT_SWITCHES = {
    AlertEventType.CREATED: "on_created",
    AlertEventType.STATUS_CHANGED: "on_status_change",
    AlertEventType.BLOCKED: "on_blocked",
    AlertEventType.RELEASED: "on_released",
    AlertEventType.APPROACHING: "on_approaching",
    AlertEventType.OVERDUE: "on_overdue",
}


class GoogleChatSettings(_CamelModel):
    """Per-deployment Google Chat channel override."""

    enabled: bool = True
    webhook_url: Optional[str] = None
    use_product_webhook: bool = True

    @field_validator("webhook_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class AlertConfig(_CamelModel):
    """Alert routing configuration embedded in a deployment."""

    enabled: bool = True
    events: AlertEvents = Field(default_factory=AlertEvents)
    notify_product_owners: bool = True
    notify_engineering_owners: bool = True
    notify_delivery_lead: bool = True
    additional_emails: List[str] = Field(default_factory=list)
    google_chat: GoogleChatSettings = Field(default_factory=GoogleChatSettings)

    @field_validator("additional_emails", mode="before")
    @classmethod
    def drop_empty_addresses(cls, v: Any) -> Any:
        return _drop_blank_entries(v)


class ProductAlertConfig(_CamelModel):
    """Product-level alert defaults (only the chat fallback is used here)."""

    google_chat_webhook_url: Optional[str] = None

    @field_validator("google_chat_webhook_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class Product(_CamelModel):
    """Product record. Owner fields are free-text names, not user ids."""

    id: str
    name: str = ""
    product_owner: Optional[str] = None
    engineering_owner: Optional[str] = None
    delivery_lead: Optional[str] = None
    alert_config: ProductAlertConfig = Field(default_factory=ProductAlertConfig)


class User(_CamelModel):
    """Dashboard user, as far as recipient resolution needs one."""

    id: Optional[str] = None
    name: str
    email: Optional[str] = None
    role: str = "user"


class Deployment(_CamelModel):
    """Deployment record.

    last_notification_sent maps a ReminderClass value to the ISO date on
    which that reminder was last sent. It is the only field this service
    writes back.
    """

    id: str
    product_id: Optional[str] = None
    client_id: Optional[str] = None
    product_name: str = ""
    client_name: Optional[str] = None
    client_names: List[str] = Field(default_factory=list)
    status: DeploymentStatus = DeploymentStatus.NOT_STARTED
    deployment_type: Optional[str] = None
    environment: Optional[str] = None
    next_delivery_date: Optional[date] = None
    feature_name: Optional[str] = None
    notes: Optional[str] = None
    owner_name: Optional[str] = None
    delivery_person: Optional[str] = None
    notification_emails: List[str] = Field(default_factory=list)
    alert_config: AlertConfig = Field(default_factory=AlertConfig)
    last_notification_sent: Dict[str, str] = Field(default_factory=dict)

    @field_validator("client_names", "notification_emails", mode="before")
    @classmethod
    def drop_empty_entries(cls, v: Any) -> Any:
        return _drop_blank_entries(v)

    @field_validator("next_delivery_date", mode="before")
    @classmethod
    def truncate_to_date(cls, v: Any) -> Any:
        """Delivery dates are calendar dates; drop any time component."""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v

    @property
    def is_released(self) -> bool:
        return self.status == DeploymentStatus.RELEASED

    @property
    def client_display(self) -> str:
        """Client name(s) for message bodies."""
        if self.client_names:
            return ", ".join(self.client_names)
        return self.client_name or "N/A"


SYSTEM_ACTOR = {
    "user_id": "system",
    "user_name": "System",
    "user_email": "system@controltower.com",
}


class AuditEntry(BaseModel):
    """One row of the audit log written after a notification or alert."""

    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    resource_name: Optional[str] = None
    user_id: str = SYSTEM_ACTOR["user_id"]
    user_name: str = SYSTEM_ACTOR["user_name"]
    user_email: str = SYSTEM_ACTOR["user_email"]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[int] = None
