"""Data models and exceptions for the notification service.

Transports raise DeliveryError subclasses. The ChannelDispatcher turns those
into ChannelResult values so that one failing channel never stops another.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

EMAIL_CHANNEL = "email"
GOOGLE_CHAT_CHANNEL = "googleChat"

SMTP_NOT_CONFIGURED = "SMTP not configured"
ALERTS_DISABLED = "Alerts disabled for this deployment"


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class DeliveryError(NotificationError):
    """Raised by a transport when a message could not be delivered."""

    pass


class SMTPDeliveryError(DeliveryError):
    """Raised when SMTP delivery fails."""

    pass


class ChatDeliveryError(DeliveryError):
    """Raised when a Google Chat webhook POST fails or returns non-2xx."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ChannelResult:
    """Outcome of one delivery attempt on one channel.

    ``reason`` explains a deliberate skip (e.g. SMTP not configured);
    ``error`` carries the message of a failed attempt.
    """

    sent: bool
    reason: Optional[str] = None
    error: Optional[str] = None
    recipients: Optional[int] = None
    message_id: Optional[str] = None
    status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class AlertResult:
    """Outcome of an event-based alert.

    ``sent`` is True whenever the pipeline ran, even if a channel failed;
    per-channel outcomes live in ``results`` (None = channel not attempted).
    """

    sent: bool
    reason: Optional[str] = None
    results: Dict[str, Optional[ChannelResult]] = field(default_factory=dict)

    @property
    def email(self) -> Optional[ChannelResult]:
        return self.results.get(EMAIL_CHANNEL)

    @property
    def google_chat(self) -> Optional[ChannelResult]:
        return self.results.get(GOOGLE_CHAT_CHANNEL)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"sent": self.sent}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.sent:
            data["results"] = {
                channel: result.to_dict() if result is not None else None
                for channel, result in self.results.items()
            }
        return data


@dataclass
class Notification:
    """A rendered notification handed to the dispatcher and echoed to the audit log."""

    deployment_id: str
    recipients: List[str]
    subject: str
    body: str
    notification_type: str
    channel: str = EMAIL_CHANNEL
    html: Optional[str] = None
    sent_at: Optional[datetime] = None


@dataclass
class ReminderRunResult:
    """Summary of one daily reminder run.

    Attributes:
        processed: Deployments scanned (released ones included)
        sent: Notifications handed to the dispatcher
        failed: Deployments whose processing raised an unexpected error
    """

    processed: int = 0
    sent: int = 0
    failed: int = 0

    @property
    def had_errors(self) -> bool:
        return self.failed > 0

    def to_dict(self) -> Dict[str, int]:
        return {"processed": self.processed, "sent": self.sent, "failed": self.failed}
