"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    schedule = config_dict.get("schedule", {})
    if isinstance(schedule, dict):
        hour = schedule.get("hour", 9)
        if isinstance(hour, int) and (hour < 6 or hour > 20):
            warning_messages.append(
                f"Daily reminders scheduled at hour {hour}, outside business hours"
            )

    notifications = config_dict.get("notifications", {})
    if isinstance(notifications, dict):
        role = notifications.get("broadcast_role", "general_manager")
        if isinstance(role, str) and not role.strip():
            warning_messages.append(
                "notifications.broadcast_role is empty; no users will receive broadcast reminders"
            )

        app_url = notifications.get("app_url")
        if isinstance(app_url, str) and app_url.startswith("http://") and "localhost" not in app_url:
            warning_messages.append(
                f"notifications.app_url ({app_url}) is not HTTPS; links in emails will be insecure"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
