"""Tests for domain models."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from control_tower.domain import (
    AlertConfig,
    AlertEventType,
    AuditEntry,
    Deployment,
    DeploymentStatus,
    Product,
    ReminderClass,
)

from tests.helpers.factories import make_deployment


class TestAlertConfig:
    """AlertConfig defaults are applied once, at validation time."""

    def test_all_defaults_enabled(self):
        config = AlertConfig()

        assert config.enabled is True
        assert config.notify_product_owners is True
        assert config.notify_engineering_owners is True
        assert config.notify_delivery_lead is True
        assert config.additional_emails == []
        assert config.google_chat.enabled is True
        assert config.google_chat.use_product_webhook is True
        assert all(config.events.is_enabled(event) for event in AlertEventType)

    def test_camel_case_json(self):
        config = AlertConfig.model_validate(
            {
                "enabled": True,
                "events": {"onBlocked": False},
                "notifyProductOwners": False,
                "additionalEmails": ["ops@x.com"],
                "googleChat": {"webhookUrl": "https://hook", "useProductWebhook": False},
            }
        )

        assert config.events.is_enabled(AlertEventType.BLOCKED) is False
        assert config.events.is_enabled(AlertEventType.RELEASED) is True
        assert config.notify_product_owners is False
        assert config.additional_emails == ["ops@x.com"]
        assert config.google_chat.webhook_url == "https://hook"
        assert config.google_chat.use_product_webhook is False

    def test_nulls_mean_default(self):
        config = AlertConfig.model_validate(
            {"enabled": None, "events": {"onCreated": None}, "googleChat": None}
        )

        assert config.enabled is True
        assert config.events.is_enabled(AlertEventType.CREATED) is True
        assert config.google_chat.enabled is True

    def test_blank_webhook_is_none(self):
        config = AlertConfig.model_validate({"googleChat": {"webhookUrl": "   "}})

        assert config.google_chat.webhook_url is None

    def test_additional_emails_skip_nulls_and_blanks(self):
        config = AlertConfig.model_validate({"additionalEmails": [None, " ", "ops@x.com"]})

        assert config.additional_emails == ["ops@x.com"]

    def test_event_switch_accepts_string_value(self):
        config = AlertConfig.model_validate({"events": {"onStatusChange": False}})

        assert config.events.is_enabled("statusChanged") is False

    def test_round_trips_through_aliases(self):
        config = AlertConfig(notify_delivery_lead=False)

        dumped = config.model_dump(by_alias=True)

        assert dumped["notifyDeliveryLead"] is False
        assert AlertConfig.model_validate(dumped) == config


class TestDeployment:
    def test_delivery_date_truncates_datetime(self):
        deployment = make_deployment(next_delivery_date=datetime(2025, 11, 10, 23, 30))

        assert deployment.next_delivery_date == date(2025, 11, 10)

    def test_delivery_date_truncates_iso_timestamp(self):
        deployment = make_deployment(next_delivery_date="2025-11-10T00:00:00.000Z")

        assert deployment.next_delivery_date == date(2025, 11, 10)

    def test_missing_delivery_date(self):
        deployment = make_deployment(next_delivery_date=None)

        assert deployment.next_delivery_date is None

    def test_status_values(self):
        assert make_deployment(status="Released").is_released is True
        assert make_deployment(status="Blocked").status == DeploymentStatus.BLOCKED

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            make_deployment(status="Archived")

    def test_client_display_prefers_client_names(self):
        assert make_deployment(client_names=["A", "B"]).client_display == "A, B"
        assert make_deployment(client_names=[]).client_display == "Acme Corp"
        assert make_deployment(client_name=None).client_display == "N/A"

    def test_list_fields_skip_nulls_and_blanks(self):
        deployment = make_deployment(
            notification_emails=[None, "", "b@x.com"], client_names=[None, "Acme"]
        )

        assert deployment.notification_emails == ["b@x.com"]
        assert deployment.client_names == ["Acme"]

    def test_camel_case_input(self):
        deployment = Deployment.model_validate(
            {
                "id": "d-9",
                "productName": "Atlas",
                "notificationEmails": ["a@x.com"],
                "lastNotificationSent": {"overdue": "2025-11-09"},
                "alertConfig": {"enabled": False},
            }
        )

        assert deployment.product_name == "Atlas"
        assert deployment.notification_emails == ["a@x.com"]
        assert deployment.last_notification_sent == {"overdue": "2025-11-09"}
        assert deployment.alert_config.enabled is False


class TestEnums:
    def test_reminder_class_values_are_state_keys(self):
        assert [c.value for c in ReminderClass] == ["7_days", "3_days", "due_today", "overdue"]

    def test_event_titles(self):
        assert AlertEventType.CREATED.display_title == "New Deployment Created"
        assert AlertEventType.STATUS_CHANGED.display_title == "Deployment Status Changed"
        assert AlertEventType("overdue").display_title == "Deployment Overdue"


def test_product_webhook_fallback_parsed():
    product = Product.model_validate(
        {"id": "p1", "name": "Atlas", "alertConfig": {"googleChatWebhookUrl": "https://p"}}
    )

    assert product.alert_config.google_chat_webhook_url == "https://p"


def test_audit_entry_defaults_to_system_actor():
    entry = AuditEntry(action="notification_sent")

    assert entry.user_id == "system"
    assert entry.user_name == "System"
    assert entry.user_email == "system@controltower.com"
    assert entry.timestamp.tzinfo == timezone.utc
