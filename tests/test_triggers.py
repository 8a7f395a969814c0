"""Tests for reminder classification and status-change mapping."""

from datetime import date, datetime, timedelta

import pytest

from control_tower.domain.models import AlertEventType, DeploymentStatus, ReminderClass
from control_tower.notifications.triggers import (
    ReminderTrigger,
    already_sent,
    classify_days,
    days_until,
    evaluate_reminder,
    event_type_for_status_change,
    reminder_subject,
    urgency_message,
)

from tests.helpers.factories import TODAY, make_deployment


def due_in(days, **overrides):
    return make_deployment(next_delivery_date=TODAY + timedelta(days=days), **overrides)


class TestDaysUntil:
    def test_calendar_difference(self):
        assert days_until(date(2025, 11, 17), TODAY) == 7
        assert days_until(date(2025, 11, 5), TODAY) == -5

    def test_time_of_day_ignored(self):
        assert days_until(datetime(2025, 11, 13, 0, 1), datetime(2025, 11, 10, 23, 59)) == 3


class TestClassification:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (7, ReminderClass.SEVEN_DAYS),
            (3, ReminderClass.THREE_DAYS),
            (0, ReminderClass.DUE_TODAY),
            (-1, ReminderClass.OVERDUE),
            (-30, ReminderClass.OVERDUE),
            (1, None),
            (2, None),
            (6, None),
            (8, None),
        ],
    )
    def test_classify_days(self, days, expected):
        assert classify_days(days) == expected

    def test_evaluate_three_days(self):
        trigger = evaluate_reminder(due_in(3), TODAY)

        assert trigger == ReminderTrigger(ReminderClass.THREE_DAYS, 3)

    def test_overdue_trigger_reports_days_overdue(self):
        trigger = evaluate_reminder(due_in(-5), TODAY)

        assert trigger.reminder_class == ReminderClass.OVERDUE
        assert trigger.days_overdue == 5

    @pytest.mark.parametrize("days", [7, 3, 0, -1, -100])
    def test_released_never_triggers(self, days):
        assert evaluate_reminder(due_in(days, status="Released"), TODAY) is None

    def test_blocked_still_triggers(self):
        assert evaluate_reminder(due_in(0, status="Blocked"), TODAY) is not None

    def test_missing_delivery_date(self):
        assert evaluate_reminder(make_deployment(next_delivery_date=None), TODAY) is None


class TestAlreadySent:
    def test_sent_today(self):
        deployment = due_in(3, last_notification_sent={"3_days": "2025-11-10"})

        assert already_sent(deployment, ReminderClass.THREE_DAYS, TODAY) is True

    def test_other_class_sent_today_does_not_count(self):
        deployment = due_in(3, last_notification_sent={"7_days": "2025-11-10"})

        assert already_sent(deployment, ReminderClass.THREE_DAYS, TODAY) is False

    def test_overdue_fires_again_next_day(self):
        deployment = due_in(-5, last_notification_sent={"overdue": "2025-11-10"})
        tomorrow = TODAY + timedelta(days=1)

        assert already_sent(deployment, ReminderClass.OVERDUE, TODAY) is True
        assert already_sent(deployment, ReminderClass.OVERDUE, tomorrow) is False


class TestMessages:
    @pytest.mark.parametrize(
        "reminder_class,days_overdue,expected",
        [
            (ReminderClass.SEVEN_DAYS, 0, "[Reminder] Deployment in 7 days: Atlas"),
            (ReminderClass.THREE_DAYS, 0, "[Reminder] Deployment in 3 days: Atlas"),
            (ReminderClass.DUE_TODAY, 0, "[ACTION REQUIRED] Deployment Due Today: Atlas"),
            (ReminderClass.OVERDUE, 5, "[OVERDUE] Deployment 5 days overdue: Atlas"),
        ],
    )
    def test_subjects(self, reminder_class, days_overdue, expected):
        assert reminder_subject(reminder_class, "Atlas", days_overdue) == expected

    def test_trigger_subject(self):
        assert ReminderTrigger(ReminderClass.OVERDUE, -2).subject("Atlas") == (
            "[OVERDUE] Deployment 2 days overdue: Atlas"
        )

    def test_urgency_messages(self):
        assert "7 days until deployment" in urgency_message(ReminderClass.SEVEN_DAYS)
        assert "Only 3 days remaining" in urgency_message(ReminderClass.THREE_DAYS)
        assert "DUE TODAY" in urgency_message(ReminderClass.DUE_TODAY)
        assert urgency_message(ReminderClass.OVERDUE, 4) == (
            "This deployment is 4 day(s) OVERDUE and requires immediate attention."
        )


class TestStatusChange:
    def test_unchanged_status_raises_nothing(self):
        assert event_type_for_status_change(
            DeploymentStatus.BLOCKED, DeploymentStatus.BLOCKED
        ) is None

    def test_blocked(self):
        assert event_type_for_status_change("In Progress", "Blocked") == AlertEventType.BLOCKED

    def test_released(self):
        assert event_type_for_status_change("Blocked", "Released") == AlertEventType.RELEASED

    def test_other_transition(self):
        assert event_type_for_status_change(
            DeploymentStatus.NOT_STARTED, DeploymentStatus.IN_PROGRESS
        ) == AlertEventType.STATUS_CHANGED

    def test_unknown_previous_status(self):
        assert event_type_for_status_change(None, "In Progress") == AlertEventType.STATUS_CHANGED
