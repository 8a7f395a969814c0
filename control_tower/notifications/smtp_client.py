"""SMTP email transport.

Wraps smtplib with implicit-TLS (port 465) or STARTTLS negotiation,
optional authentication and connection cleanup. Settings are fixed at
construction; nothing here reads the process environment.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Callable, Iterable, List, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from control_tower.config.environment import EnvironmentConfig
from control_tower.config.models import EmailConfig

from .models import SMTP_NOT_CONFIGURED, ChannelResult, SMTPDeliveryError

logger = logging.getLogger(__name__)

SENDER_NAME = "Control Tower"


class SMTPClient:
    """Sends email through an SMTP relay.

    When no SMTP user is configured, send_email() returns a
    "SMTP not configured" result instead of connecting.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: Optional[EmailConfig] = None,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
        sender_name: str = SENDER_NAME,
    ):
        """Initialize SMTP client.

        Args:
            env_config: SMTP host, port, credentials and from address
            email_config: TLS and timeout settings (defaults if None)
            smtp_factory: Factory for SMTP instances (for mocking)
            smtp_ssl_factory: Factory for SMTP_SSL instances (for mocking)
            sender_name: Display name used in the From header
        """
        self.env_config = env_config
        self.email_config = email_config or EmailConfig()
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL
        self.sender_name = sender_name

    @property
    def configured(self) -> bool:
        return self.env_config.smtp_configured

    def send_email(
        self,
        to: Iterable[str],
        subject: str,
        body: str,
        html: Optional[str] = None,
    ) -> ChannelResult:
        """Build and send one message to every address in ``to``.

        Returns:
            ChannelResult with sent=True and the Message-ID on success, or
            sent=False with a reason when SMTP is not configured or no
            recipient address is valid.

        Raises:
            SMTPDeliveryError: If the relay rejects the message or the
                connection fails
        """
        if not self.configured:
            logger.warning(
                "SMTP not configured, skipping email",
                extra={"event": "email.skipped", "reason": "not_configured"},
            )
            return ChannelResult(sent=False, reason=SMTP_NOT_CONFIGURED)

        recipients, rejected = validate_recipients(to)
        if rejected:
            logger.warning(
                f"Dropping invalid recipient address(es): {', '.join(rejected)}",
                extra={"event": "email.recipients_rejected", "rejected_count": len(rejected)},
            )
        if not recipients:
            return ChannelResult(sent=False, reason="No valid recipient addresses")

        message = self.build_message(recipients, subject, body, html)
        self.send(message)
        return ChannelResult(
            sent=True,
            recipients=len(recipients),
            message_id=message["Message-ID"],
        )

    def build_message(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        html: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = build_sender_address(self.env_config, self.sender_name)
        message["To"] = ", ".join(recipients)
        message["Message-ID"] = make_msgid(domain=_sender_domain(self.env_config.smtp_from))
        message.set_content(body)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    def send(self, message: EmailMessage) -> None:
        """Send a fully built message.

        Raises:
            SMTPDeliveryError: If message delivery fails
        """
        env = self.env_config
        timeout = self.email_config.timeout_seconds
        smtp = None
        try:
            if env.smtp_port == 465:
                logger.debug(f"Connecting to {env.smtp_host}:{env.smtp_port} with implicit TLS")
                context = ssl.create_default_context()
                smtp = self.smtp_ssl_factory(
                    env.smtp_host, env.smtp_port, context=context, timeout=timeout
                )
            else:
                logger.debug(f"Connecting to {env.smtp_host}:{env.smtp_port}")
                smtp = self.smtp_factory(env.smtp_host, env.smtp_port, timeout=timeout)

                if self.email_config.use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())

            if env.smtp_user and env.smtp_pass:
                logger.debug(f"Authenticating as {env.smtp_user}")
                smtp.login(env.smtp_user, env.smtp_pass)

            smtp.send_message(message)
            logger.debug(f"Message sent successfully to {message['To']}")

        except smtplib.SMTPException as e:
            error_msg = f"SMTP error during message delivery: {e}"
            logger.error(error_msg)
            raise SMTPDeliveryError(error_msg) from e
        except OSError as e:
            error_msg = f"Network error during SMTP connection: {e}"
            logger.error(error_msg)
            raise SMTPDeliveryError(error_msg) from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def validate_recipients(addresses: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split addresses into (valid, rejected), normalising the valid ones.

    Deliverability (DNS) is not checked.
    """
    valid: List[str] = []
    rejected: List[str] = []

    for address in addresses:
        address = (address or "").strip()
        if not address:
            continue
        try:
            validated = validate_email(address, check_deliverability=False)
        except EmailNotValidError:
            rejected.append(address)
            continue
        if validated.normalized not in valid:
            valid.append(validated.normalized)

    return valid, rejected


def build_sender_address(env_config: EnvironmentConfig, sender_name: str = SENDER_NAME) -> str:
    """Build the 'From' header, e.g. "Control Tower <noreply@controltower.com>".

    SMTP_FROM values that already carry a display name are used as-is.
    """
    sender = env_config.smtp_from
    if "<" in sender:
        return sender
    return f"{sender_name} <{sender}>"


def _sender_domain(smtp_from: str) -> Optional[str]:
    address = smtp_from.rsplit("<", 1)[-1].rstrip(">").strip()
    if "@" not in address:
        return None
    return address.rsplit("@", 1)[1]
