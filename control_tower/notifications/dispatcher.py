"""Channel dispatcher: email and Google Chat delivery plus audit recording.

Every method here returns a result instead of raising. Transport errors
become ChannelResult(sent=False, error=...) so that a failure on one
channel never prevents delivery on another; audit failures are logged and
otherwise ignored.
"""

import logging
from typing import Any, Callable, ContextManager, Dict, List, Optional

from control_tower.domain.models import AuditEntry
from control_tower.logging import get_logger
from control_tower.persistence.repositories import Repositories, repository_scope
from control_tower.utils.timestamps import utc_now

from .chat_client import GoogleChatClient
from .models import ChannelResult, DeliveryError, Notification
from .smtp_client import SMTPClient

logger = get_logger(__name__, component="dispatcher")

ScopeFactory = Callable[[], ContextManager[Repositories]]


class ChannelDispatcher:
    """Delivers notifications over email and Google Chat."""

    def __init__(
        self,
        smtp_client: SMTPClient,
        chat_client: Optional[GoogleChatClient] = None,
        scope: ScopeFactory = repository_scope,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize dispatcher.

        Args:
            smtp_client: Email transport
            chat_client: Google Chat transport (creates default if None)
            scope: Factory for the repository scope audit entries are written in
            logger_instance: Logger instance (uses module logger if None)
        """
        self.smtp_client = smtp_client
        self.chat_client = chat_client or GoogleChatClient()
        self.scope = scope
        self.logger = logger_instance or logger

    def send_email(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        html: Optional[str] = None,
    ) -> ChannelResult:
        try:
            result = self.smtp_client.send_email(recipients, subject, body, html)
        except DeliveryError as e:
            self.logger.error(
                f"Email delivery failed for '{subject}': {e}",
                extra={"event": "email.send.failure", "error_type": type(e).__name__},
            )
            return ChannelResult(sent=False, error=str(e))
        except Exception as e:
            self.logger.error(
                f"Unexpected error sending email '{subject}': {e}",
                exc_info=True,
                extra={"event": "email.send.failure", "error_type": type(e).__name__},
            )
            return ChannelResult(sent=False, error=str(e))

        if result.sent:
            self.logger.info(
                f"Email sent to {len(recipients)} recipient(s): {subject}",
                extra={
                    "event": "email.send.success",
                    "recipients": recipients,
                    "message_id": result.message_id,
                },
            )
        return result

    def send_chat(self, webhook_url: str, payload: Dict[str, Any]) -> ChannelResult:
        try:
            result = self.chat_client.post(webhook_url, payload)
        except DeliveryError as e:
            return ChannelResult(sent=False, error=str(e), status=getattr(e, "status_code", None))
        except Exception as e:
            self.logger.error(
                f"Unexpected error posting to Google Chat: {e}",
                exc_info=True,
                extra={"event": "chat.post.failure", "error_type": type(e).__name__},
            )
            return ChannelResult(sent=False, error=str(e))

        self.logger.info(
            "Google Chat message sent",
            extra={"event": "chat.post.success", "status_code": result.status},
        )
        return result

    def deliver(self, notification: Notification) -> ChannelResult:
        """Send a rendered notification by email, stamping sent_at on success."""
        result = self.send_email(
            notification.recipients,
            notification.subject,
            notification.body,
            notification.html,
        )
        if result.sent:
            notification.sent_at = utc_now()
        return result

    def record_audit(self, entry: AuditEntry) -> bool:
        """Append an audit entry in its own transaction. Never raises."""
        try:
            with self.scope() as repos:
                repos.audit.append(entry)
        except Exception as e:
            self.logger.warning(
                f"Failed to write audit entry '{entry.action}' for "
                f"{entry.resource_type}/{entry.resource_id}: {e}",
                extra={
                    "event": "audit.write_failed",
                    "action": entry.action,
                    "error_type": type(e).__name__,
                },
            )
            return False
        return True
