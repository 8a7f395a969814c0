"""Configuration management module for the Control Tower notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AppConfig,
    EmailConfig,
    GoogleChatConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    NotificationsConfig,
    ScheduleConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ScheduleConfig",
    "NotificationsConfig",
    "EmailConfig",
    "GoogleChatConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
