"""Structured logging helpers for the notifier."""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component name and keeps call-site extras."""

    def process(self, msg, kwargs):
        # Call-site extra wins over the adapter's component field
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally bound to a component.

    Example:
        >>> logger = get_logger(__name__, component="reminders")
        >>> logger.info("Run started", extra={"event": "reminders.run.started"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
