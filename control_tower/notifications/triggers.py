"""Reminder classification for the daily scheduled path.

A deployment's delivery date is compared with "today" as calendar dates.
The resulting whole-day distance picks at most one reminder class:

    7  -> 7_days
    3  -> 3_days
    0  -> due_today
    <0 -> overdue (every day while overdue)

Released deployments and deployments without a delivery date never match.

Status transitions map to event-based alerts via event_type_for_status_change().
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from control_tower.domain.models import (
    AlertEventType,
    Deployment,
    DeploymentStatus,
    ReminderClass,
)

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class ReminderTrigger:
    """A reminder that is due for a deployment today."""

    reminder_class: ReminderClass
    days_until: int

    @property
    def days_overdue(self) -> int:
        return abs(self.days_until) if self.days_until < 0 else 0

    def subject(self, product_name: str) -> str:
        return reminder_subject(self.reminder_class, product_name, self.days_overdue)

    def urgency_message(self) -> str:
        return urgency_message(self.reminder_class, self.days_overdue)


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until(delivery_date: DateLike, today: DateLike) -> int:
    """Whole calendar days from today to the delivery date (negative when past)."""
    return (_as_date(delivery_date) - _as_date(today)).days


def classify_days(days: int) -> Optional[ReminderClass]:
    if days == 7:
        return ReminderClass.SEVEN_DAYS
    if days == 3:
        return ReminderClass.THREE_DAYS
    if days == 0:
        return ReminderClass.DUE_TODAY
    if days < 0:
        return ReminderClass.OVERDUE
    return None


def evaluate_reminder(deployment: Deployment, today: DateLike) -> Optional[ReminderTrigger]:
    """Return the reminder due for ``deployment`` today, ignoring idempotency."""
    if deployment.is_released or deployment.next_delivery_date is None:
        return None

    days = days_until(deployment.next_delivery_date, today)
    reminder_class = classify_days(days)
    if reminder_class is None:
        return None
    return ReminderTrigger(reminder_class=reminder_class, days_until=days)


def already_sent(deployment: Deployment, reminder_class: ReminderClass, today: DateLike) -> bool:
    """Whether this reminder class was already sent for the deployment today."""
    last_sent = deployment.last_notification_sent.get(ReminderClass(reminder_class).value)
    return last_sent == _as_date(today).isoformat()


def reminder_subject(
    reminder_class: ReminderClass, product_name: str, days_overdue: int = 0
) -> str:
    if reminder_class == ReminderClass.SEVEN_DAYS:
        return f"[Reminder] Deployment in 7 days: {product_name}"
    if reminder_class == ReminderClass.THREE_DAYS:
        return f"[Reminder] Deployment in 3 days: {product_name}"
    if reminder_class == ReminderClass.DUE_TODAY:
        return f"[ACTION REQUIRED] Deployment Due Today: {product_name}"
    return f"[OVERDUE] Deployment {days_overdue} days overdue: {product_name}"


def urgency_message(reminder_class: ReminderClass, days_overdue: int = 0) -> str:
    if reminder_class == ReminderClass.SEVEN_DAYS:
        return "You have 7 days until deployment. Please review the status and prepare accordingly."
    if reminder_class == ReminderClass.THREE_DAYS:
        return "Only 3 days remaining. Please verify all checklist items are on track."
    if reminder_class == ReminderClass.DUE_TODAY:
        return "This deployment is DUE TODAY. Please ensure all tasks are completed."
    return (
        f"This deployment is {days_overdue} day(s) OVERDUE and requires immediate attention."
    )


def event_type_for_status_change(
    old_status: Optional[DeploymentStatus], new_status: DeploymentStatus
) -> Optional[AlertEventType]:
    """Alert event raised by a status transition, or None when nothing changed."""
    new_status = DeploymentStatus(new_status)
    if old_status is not None and DeploymentStatus(old_status) == new_status:
        return None
    if new_status == DeploymentStatus.BLOCKED:
        return AlertEventType.BLOCKED
    if new_status == DeploymentStatus.RELEASED:
        return AlertEventType.RELEASED
    return AlertEventType.STATUS_CHANGED
