"""Configuration schema models using Pydantic."""

from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ScheduleConfig(BaseModel):
    """When the daily reminder check runs."""

    hour: int = Field(9, ge=0, le=23, description="Local hour of the daily run")
    minute: int = Field(0, ge=0, le=59, description="Local minute of the daily run")
    timezone: str = Field(
        "America/New_York",
        description="IANA timezone used for the run time and for computing 'today'",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown IANA timezone names."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: '{v}'") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class NotificationsConfig(BaseModel):
    """Recipient and content settings shared by reminders and alerts."""

    broadcast_role: str = Field(
        "general_manager",
        description="Users holding this role receive every scheduled reminder",
    )
    app_url: str = Field(
        "http://localhost:5173", description="Dashboard base URL for deployment links"
    )
    product_name: str = Field(
        "Control Tower", min_length=1, description="Display name used in message footers"
    )

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so links can be joined with '/'."""
        return v.strip().rstrip("/")


class EmailConfig(BaseModel):
    """Email transport settings."""

    use_tls: bool = Field(True, description="Use TLS/STARTTLS for secure connection")
    timeout_seconds: int = Field(
        30, ge=1, le=300, description="SMTP connection timeout in seconds"
    )


class GoogleChatConfig(BaseModel):
    """Google Chat webhook transport settings."""

    timeout_seconds: int = Field(
        10, ge=1, le=120, description="Webhook POST timeout in seconds"
    )
    user_agent: str = Field(
        "ControlTowerNotifier/1.0",
        min_length=1,
        description="User-Agent header for webhook requests",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the Control Tower notifier."""

    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    google_chat: GoogleChatConfig = Field(default_factory=GoogleChatConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
