"""Timestamp utilities.

Audit timestamps are timezone-aware UTC. Reminder classification works on
calendar dates, so "today" is taken in the scheduler's configured timezone.
"""

from datetime import date, datetime, timezone, tzinfo
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC (SQLite returns them that way).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def today_in(tz: Optional[tzinfo] = None) -> date:
    """Current calendar date in ``tz`` (UTC if None).

    Example:
        >>> from zoneinfo import ZoneInfo
        >>> isinstance(today_in(ZoneInfo("America/New_York")), date)
        True
    """
    return datetime.now(tz or timezone.utc).date()


def format_timestamp_for_log(dt: Optional[datetime]) -> str:
    """Format a datetime for human-readable log lines, e.g. "2025-11-04 09:00:00 EST"."""
    if dt is None:
        return "n/a"
    return dt.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
