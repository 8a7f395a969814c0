"""Scheduling of the daily deployment reminder run."""

from .service import SchedulerService

__all__ = [
    "SchedulerService",
]
