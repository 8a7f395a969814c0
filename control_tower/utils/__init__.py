"""Utility functions for time handling."""

from .timestamps import ensure_utc, format_timestamp_for_log, today_in, utc_now

__all__ = [
    "utc_now",
    "ensure_utc",
    "today_in",
    "format_timestamp_for_log",
]
