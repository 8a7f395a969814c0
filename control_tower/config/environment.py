"""Environment variable loading and validation."""

import os
import re
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_SMTP_HOST = "localhost"
DEFAULT_SMTP_PORT = 587
DEFAULT_FROM_EMAIL = "noreply@controltower.com"
DEFAULT_DATABASE_URL = "sqlite:///./data/control_tower.db"


class EnvironmentConfig:
    """Environment variable configuration holder.

    SMTP credentials are optional. When they are missing the email transport
    reports "SMTP not configured" instead of failing.
    """

    def __init__(
        self,
        smtp_host: str = DEFAULT_SMTP_HOST,
        smtp_port: int = DEFAULT_SMTP_PORT,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        smtp_from: Optional[str] = None,
        google_chat_webhook_url: Optional[str] = None,
        app_url: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.smtp_host = smtp_host or DEFAULT_SMTP_HOST
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.smtp_from = smtp_from or DEFAULT_FROM_EMAIL
        self.google_chat_webhook_url = google_chat_webhook_url or None
        self.app_url = app_url
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL

    @property
    def smtp_configured(self) -> bool:
        """Whether SMTP credentials are available for sending email."""
        return bool(self.smtp_user)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Optional environment variables:
    - SMTP_HOST: SMTP server hostname (default: localhost)
    - SMTP_PORT: SMTP server port (1-65535, default: 587)
    - SMTP_USER / SMTP_PASS: SMTP credentials (email is skipped when unset)
    - SMTP_FROM: From address for outgoing email
    - GOOGLE_CHAT_WEBHOOK_URL: Global fallback Google Chat webhook
    - APP_URL: Base URL of the dashboard, used for deployment links
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: Database URL (default: sqlite:///./data/control_tower.db)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is present but invalid
    """
    errors = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    smtp_from = os.getenv("SMTP_FROM")
    webhook_url = os.getenv("GOOGLE_CHAT_WEBHOOK_URL")
    app_url = os.getenv("APP_URL")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")

    smtp_port = DEFAULT_SMTP_PORT
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if smtp_port < 1 or smtp_port > 65535:
                errors.append(
                    f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535."
                )
        except ValueError:
            errors.append(
                f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer."
            )

    if smtp_from and not _is_valid_email(smtp_from):
        errors.append(f"Invalid email address format in SMTP_FROM: '{smtp_from}'")

    if webhook_url and not webhook_url.startswith(("http://", "https://")):
        errors.append(
            f"Invalid GOOGLE_CHAT_WEBHOOK_URL: '{webhook_url}'. Must be an http(s) URL."
        )

    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

    if smtp_user and not smtp_pass:
        errors.append(
            "SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication."
        )
    elif smtp_pass and not smtp_user:
        errors.append(
            "SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Leave SMTP_USER and SMTP_PASS unset to disable email delivery",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        smtp_from=smtp_from,
        google_chat_webhook_url=webhook_url,
        app_url=app_url,
        log_level=log_level,
        database_url=database_url,
    )


def _is_valid_email(email: str) -> bool:
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email))
