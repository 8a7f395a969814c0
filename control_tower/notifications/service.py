"""Notification service for deployment reminders and event-based alerts.

Two entry points share the recipient resolver and the channel dispatcher:

- check_deployment_notifications(): the daily scheduled run. Classifies
  every deployment into a reminder class, applies the once-per-day gate,
  records the gate marker, emails the reminder, then audits the attempt
  with its outcome.
- send_alert(): an event-based alert for one deployment (created, status
  changed, blocked, ...). Email and Google Chat are attempted
  independently; the per-channel outcome is returned.

Each step runs in its own repository scope so the reminder marker is
committed before the email transport is invoked.
"""

import logging
import uuid
from datetime import date, tzinfo
from typing import Any, Callable, ContextManager, Dict, List, Optional

from control_tower.config.environment import EnvironmentConfig
from control_tower.config.models import AppConfig, NotificationsConfig
from control_tower.domain.models import (
    SYSTEM_ACTOR,
    AlertEventType,
    AuditEntry,
    Deployment,
    DeploymentStatus,
)
from control_tower.logging import get_logger
from control_tower.logging.context import log_context
from control_tower.persistence.repositories import Repositories, repository_scope
from control_tower.utils.timestamps import today_in

from .chat_client import GoogleChatClient
from .dispatcher import ChannelDispatcher
from .models import (
    ALERTS_DISABLED,
    EMAIL_CHANNEL,
    GOOGLE_CHAT_CHANNEL,
    AlertResult,
    ChannelResult,
    Notification,
    NotificationTemplateError,
    ReminderRunResult,
)
from .payloads import (
    alert_subject,
    build_alert_context,
    build_chat_card,
    build_reminder_context,
    build_test_chat_card,
)
from .recipients import RecipientResolver
from .smtp_client import SMTPClient
from .templates import TemplateRenderer
from .triggers import (
    ReminderTrigger,
    already_sent,
    evaluate_reminder,
    event_type_for_status_change,
)
from .webhooks import resolve_chat_webhook

logger = get_logger(__name__, component="notification")

ScopeFactory = Callable[[], ContextManager[Repositories]]

TEST_NOTIFICATION_TYPE = "test"
TEST_EMAIL_SUBJECT = "Control Tower - Test Email"
TEST_EMAIL_BODY = (
    "This is a test email from Control Tower. "
    "If you received this, email notifications are working correctly!"
)
TEST_EMAIL_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Control Tower - Test Email</h2>
  <p>This is a test email from Control Tower.</p>
  <p>If you received this, email notifications are working correctly!</p>
  <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;" />
  <p style="color: #666; font-size: 12px;">This is an automated message from Control Tower.</p>
</div>
"""


class NotificationService:
    """Decides who is notified about a deployment, when, and over which channel.

    Only RecordNotFoundError for the requested deployment escapes the
    public methods; lookup, transport and audit failures degrade to a
    partial result and a log line.
    """

    def __init__(
        self,
        dispatcher: ChannelDispatcher,
        notifications_config: Optional[NotificationsConfig] = None,
        default_webhook_url: Optional[str] = None,
        resolver: Optional[RecipientResolver] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        scope: ScopeFactory = repository_scope,
        timezone: Optional[tzinfo] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            dispatcher: Channel dispatcher for email, chat and audit
            notifications_config: App URL, broadcast role and display name
            default_webhook_url: Process-wide Google Chat fallback webhook
            resolver: Recipient resolver (built from notifications_config if None)
            template_renderer: Template renderer instance (creates default if None)
            scope: Factory yielding a Repositories bundle per transaction
            timezone: Timezone "today" is computed in (UTC if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.dispatcher = dispatcher
        self.config = notifications_config or NotificationsConfig()
        self.default_webhook_url = default_webhook_url
        self.resolver = resolver or RecipientResolver(self.config.broadcast_role)
        self.template_renderer = template_renderer or TemplateRenderer()
        self.scope = scope
        self.timezone = timezone
        self.logger = logger_instance or logger

    @classmethod
    def from_config(
        cls,
        app_config: AppConfig,
        env_config: EnvironmentConfig,
        scope: ScopeFactory = repository_scope,
    ) -> "NotificationService":
        """Wire the service and its transports from loaded configuration."""
        smtp_client = SMTPClient(
            env_config,
            app_config.email,
            sender_name=app_config.notifications.product_name,
        )
        chat_client = GoogleChatClient(app_config.google_chat)
        dispatcher = ChannelDispatcher(smtp_client, chat_client, scope=scope)
        return cls(
            dispatcher,
            notifications_config=app_config.notifications,
            default_webhook_url=env_config.google_chat_webhook_url,
            scope=scope,
            timezone=app_config.schedule.tzinfo,
        )

    def today(self) -> date:
        return today_in(self.timezone)

    # Daily scheduled path

    def check_deployment_notifications(self, today: Optional[date] = None) -> ReminderRunResult:
        """Evaluate every deployment and send the reminders due today.

        Each deployment is loaded and processed on its own. A failure for
        one (including a stored row that does not parse) is logged and
        counted in ``failed``; the run continues with the next deployment.

        Args:
            today: Calendar date to evaluate against (defaults to today in
                the configured timezone)

        Returns:
            ReminderRunResult with processed, sent and failed counts
        """
        today = today or self.today()
        run_id = uuid.uuid4().hex[:12]
        result = ReminderRunResult()

        with log_context(run_id=run_id):
            self.logger.info(
                f"Starting reminder run for {today.isoformat()}",
                extra={"event": "reminder.run.start", "today": today.isoformat()},
            )

            with self.scope() as repos:
                deployment_ids = repos.deployments.list_ids()

            for deployment_id in deployment_ids:
                result.processed += 1
                with log_context(deployment_id=deployment_id):
                    try:
                        with self.scope() as repos:
                            deployment = repos.deployments.get_or_raise(deployment_id)
                        if self._process_reminder(deployment, today):
                            result.sent += 1
                    except Exception as e:
                        result.failed += 1
                        self.logger.error(
                            f"Reminder processing failed for deployment {deployment_id}: {e}",
                            exc_info=True,
                            extra={
                                "event": "reminder.failed",
                                "error_type": type(e).__name__,
                            },
                        )

            self.logger.info(
                f"Reminder run complete: {result.processed} processed, "
                f"{result.sent} sent, {result.failed} failed",
                extra={"event": "reminder.run.complete", **result.to_dict()},
            )

        return result

    def _process_reminder(self, deployment: Deployment, today: date) -> bool:
        """Handle one deployment. Returns True if a reminder was dispatched."""
        trigger = evaluate_reminder(deployment, today)
        if trigger is None:
            return False

        reminder_key = trigger.reminder_class.value
        with log_context(reminder_class=reminder_key):
            if already_sent(deployment, trigger.reminder_class, today):
                self.logger.debug(
                    f"Reminder {reminder_key} already sent today for deployment {deployment.id}",
                    extra={"event": "reminder.duplicate"},
                )
                return False

            with self.scope() as repos:
                product = repos.products.get(deployment.product_id)
                recipients = self.resolver.resolve(
                    repos.users, deployment, product, include_broadcast=True
                )

            if not recipients:
                self.logger.info(
                    f"No recipients for deployment {deployment.id}, skipping {reminder_key}",
                    extra={"event": "reminder.skipped", "reason": "no_recipients"},
                )
                return False

            notification = self._build_reminder(deployment, trigger, recipients)

            # Committed before sending: a failed send is not retried the same day
            with self.scope() as repos:
                repos.deployments.mark_notification_sent(deployment.id, reminder_key, today)

            self._deliver_notification(deployment, notification)
            return True

    def _build_reminder(
        self,
        deployment: Deployment,
        trigger: Optional[ReminderTrigger],
        recipients: List[str],
        subject: Optional[str] = None,
    ) -> Notification:
        context = build_reminder_context(
            deployment, trigger, self.config.app_url, self.config.product_name
        )
        return Notification(
            deployment_id=deployment.id,
            recipients=recipients,
            subject=subject or trigger.subject(deployment.product_name),
            body=self.template_renderer.render_reminder(context),
            notification_type=trigger.reminder_class.value if trigger else TEST_NOTIFICATION_TYPE,
        )

    def _deliver_notification(self, deployment: Deployment, notification: Notification) -> ChannelResult:
        self.logger.info(
            f"Sending {notification.notification_type} notification for deployment "
            f"{deployment.id} to {len(notification.recipients)} recipient(s)",
            extra={
                "event": "reminder.send",
                "notification_type": notification.notification_type,
                "recipient_count": len(notification.recipients),
            },
        )
        result = self.dispatcher.deliver(notification)

        if not result.sent:
            self.logger.warning(
                f"Reminder for deployment {deployment.id} was not delivered: "
                f"{result.reason or result.error}",
                extra={"event": "reminder.not_delivered", **result.to_dict()},
            )

        # Recorded whatever the outcome; the marker is already committed
        self.dispatcher.record_audit(
            AuditEntry(
                action="notification_sent",
                resource_type="deployment",
                resource_id=deployment.id,
                resource_name=deployment.product_name,
                metadata={
                    "recipients": notification.recipients,
                    "notificationType": notification.notification_type,
                    "subject": notification.subject,
                    "result": result.to_dict(),
                },
            )
        )
        return result

    # Event-based path

    def send_alert(
        self,
        deployment_id: str,
        event_type: AlertEventType,
        event_data: Optional[Dict[str, Any]] = None,
        actor: Optional[Dict[str, str]] = None,
    ) -> AlertResult:
        """Send an event-based alert for one deployment.

        Args:
            deployment_id: Deployment the event happened to
            event_type: One of AlertEventType (or its string value)
            event_data: Optional details; ``message`` is shown in the email
            actor: user_id/user_name/user_email recorded in the audit log
                (defaults to the system user)

        Returns:
            AlertResult. ``sent`` is False only when alerts or this event
            type are switched off for the deployment.

        Raises:
            RecordNotFoundError: If the deployment does not exist
            ValueError: If event_type is not a known event
        """
        event_type = AlertEventType(event_type)

        with log_context(deployment_id=deployment_id, event_type=event_type.value):
            with self.scope() as repos:
                deployment = repos.deployments.get_or_raise(deployment_id)
                product = repos.products.get(deployment.product_id)
                config = deployment.alert_config

                if not config.enabled:
                    self.logger.info(
                        f"Alerts disabled for deployment {deployment_id}",
                        extra={"event": "alert.skipped", "reason": "alerts_disabled"},
                    )
                    return AlertResult(sent=False, reason=ALERTS_DISABLED)

                if not config.events.is_enabled(event_type):
                    self.logger.info(
                        f"Event type '{event_type.value}' disabled for deployment {deployment_id}",
                        extra={"event": "alert.skipped", "reason": "event_disabled"},
                    )
                    return AlertResult(
                        sent=False, reason=f"Event type '{event_type.value}' is disabled"
                    )

                recipients = self.resolver.resolve(repos.users, deployment, product, config)

            results: Dict[str, Optional[ChannelResult]] = {
                EMAIL_CHANNEL: None,
                GOOGLE_CHAT_CHANNEL: None,
            }

            if recipients:
                results[EMAIL_CHANNEL] = self._send_alert_email(
                    deployment, event_type, event_data, recipients
                )

            webhook_url = resolve_chat_webhook(deployment, product, self.default_webhook_url)
            if webhook_url and config.google_chat.enabled:
                card = build_chat_card(deployment, event_type, self.config.app_url)
                results[GOOGLE_CHAT_CHANNEL] = self.dispatcher.send_chat(webhook_url, card)

            result = AlertResult(sent=True, results=results)
            self.logger.info(
                f"Alert '{event_type.value}' processed for deployment {deployment_id}",
                extra={"event": "alert.sent", "results": result.to_dict()["results"]},
            )

            self.dispatcher.record_audit(
                AuditEntry(
                    action="alert_sent",
                    resource_type="deployment",
                    resource_id=deployment.id,
                    resource_name=f"{deployment.product_name} - {deployment.client_name}",
                    metadata={"eventType": event_type.value, "results": result.to_dict()["results"]},
                    **{**SYSTEM_ACTOR, **(actor or {})},
                )
            )
            return result

    def _send_alert_email(
        self,
        deployment: Deployment,
        event_type: AlertEventType,
        event_data: Optional[Dict[str, Any]],
        recipients: List[str],
    ) -> ChannelResult:
        try:
            context = build_alert_context(
                deployment,
                event_type,
                self.config.app_url,
                event_data,
                self.config.product_name,
            )
            rendered = self.template_renderer.render_alert(context)
        except NotificationTemplateError as e:
            return ChannelResult(sent=False, error=str(e))

        return self.dispatcher.send_email(
            recipients,
            alert_subject(deployment, event_type),
            rendered["text_body"],
            rendered["html_body"],
        )

    def notify_status_change(
        self,
        deployment_id: str,
        old_status: Optional[DeploymentStatus],
        new_status: DeploymentStatus,
        actor: Optional[Dict[str, str]] = None,
    ) -> Optional[AlertResult]:
        """Send the alert matching a status transition.

        Returns:
            AlertResult, or None when the status did not change
        """
        event_type = event_type_for_status_change(old_status, new_status)
        if event_type is None:
            return None

        old_label = DeploymentStatus(old_status).value if old_status else "unset"
        event_data = {
            "fromStatus": old_label,
            "toStatus": DeploymentStatus(new_status).value,
            "message": f"Status changed from {old_label} to {DeploymentStatus(new_status).value}",
        }
        return self.send_alert(deployment_id, event_type, event_data, actor)

    def update_status(
        self,
        deployment_id: str,
        new_status: DeploymentStatus,
        actor: Optional[Dict[str, str]] = None,
    ) -> Optional[AlertResult]:
        """Persist a status change and send the matching alert.

        Raises:
            RecordNotFoundError: If the deployment does not exist
        """
        with self.scope() as repos:
            old_status = repos.deployments.get_or_raise(deployment_id).status
            repos.deployments.update_status(deployment_id, new_status)

        return self.notify_status_change(deployment_id, old_status, new_status, actor)

    # Recipient previews and test actions

    def get_recipients(self, deployment_id: str) -> List[str]:
        """Recipients an event-based alert for this deployment would reach.

        Raises:
            RecordNotFoundError: If the deployment does not exist
        """
        with self.scope() as repos:
            deployment = repos.deployments.get_or_raise(deployment_id)
            product = repos.products.get(deployment.product_id)
            return self.resolver.resolve(repos.users, deployment, product)

    def get_reminder_recipients(self, deployment_id: str) -> List[str]:
        """Recipients a scheduled reminder for this deployment would reach.

        Raises:
            RecordNotFoundError: If the deployment does not exist
        """
        with self.scope() as repos:
            deployment = repos.deployments.get_or_raise(deployment_id)
            product = repos.products.get(deployment.product_id)
            return self.resolver.resolve(repos.users, deployment, product, include_broadcast=True)

    def send_test_notification(self, deployment_id: str, email: str) -> ChannelResult:
        """Send a reminder-style email for a deployment to one address.

        The once-per-day marker is not touched.

        Raises:
            RecordNotFoundError: If the deployment does not exist
        """
        with self.scope() as repos:
            deployment = repos.deployments.get_or_raise(deployment_id)

        with log_context(deployment_id=deployment_id):
            notification = self._build_reminder(
                deployment,
                None,
                [email],
                subject=f"[Test] Deployment Reminder: {deployment.product_name}",
            )
            return self._deliver_notification(deployment, notification)

    def test_email(self, email: str) -> ChannelResult:
        """Send a fixed test message to check SMTP settings."""
        return self.dispatcher.send_email([email], TEST_EMAIL_SUBJECT, TEST_EMAIL_BODY, TEST_EMAIL_HTML)

    def test_google_chat(self, webhook_url: str) -> ChannelResult:
        """Post a fixed test card to a Google Chat webhook."""
        return self.dispatcher.send_chat(webhook_url, build_test_chat_card())
