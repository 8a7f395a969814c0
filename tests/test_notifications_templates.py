"""Unit tests for email template rendering."""

import pytest

from control_tower.domain.models import AlertEventType, ReminderClass
from control_tower.notifications.models import NotificationTemplateError
from control_tower.notifications.payloads import build_alert_context, build_reminder_context
from control_tower.notifications.templates import TemplateRenderer
from control_tower.notifications.triggers import ReminderTrigger

from tests.helpers.factories import make_deployment

APP_URL = "https://tower.example.com"


@pytest.fixture
def renderer():
    return TemplateRenderer()


class TestReminderTemplate:
    def test_renders_all_fields(self, renderer):
        deployment = make_deployment(
            owner_name="Jane", delivery_person="Dan", feature_name="SSO", notes="Watch DNS"
        )
        context = build_reminder_context(
            deployment, ReminderTrigger(ReminderClass.DUE_TODAY, 0), APP_URL
        )

        body = renderer.render_reminder(context)

        assert body.startswith("=" * 40 + "\nDEPLOYMENT NOTIFICATION\n")
        assert "🚨 This deployment is DUE TODAY." in body
        assert "Product: Atlas" in body
        assert "Client(s): Acme Corp" in body
        assert "Type: ONBOARDING" in body
        assert "Delivery Date: 2025-11-10" in body
        assert "Status: 🟡 In Progress" in body
        assert "Owner: Jane" in body
        assert "Delivery Person: Dan" in body
        assert "Feature: SSO" in body
        assert "Notes: Watch DNS" in body
        assert f"View deployment: {APP_URL}/deployments/dep-1" in body
        assert "This is an automated notification from Control Tower." in body

    def test_test_send_has_no_banner_or_optional_lines(self, renderer):
        context = build_reminder_context(make_deployment(), None, APP_URL)

        body = renderer.render_reminder(context)

        assert "DEPLOYMENT NOTIFICATION\n========================================\n\nProduct:" in body
        assert "Feature:" not in body
        assert "Notes:" not in body
        assert "Owner: Not assigned" in body

    def test_text_is_not_escaped(self, renderer):
        context = build_reminder_context(
            make_deployment(notes="<b>cutover</b> & rollback"), None, APP_URL
        )

        assert "Notes: <b>cutover</b> & rollback" in renderer.render_reminder(context)


class TestAlertTemplates:
    def test_render_alert_returns_both_bodies(self, renderer):
        context = build_alert_context(
            make_deployment(),
            AlertEventType.BLOCKED,
            APP_URL,
            event_data={"message": "Status changed from In Progress to Blocked"},
        )

        bodies = renderer.render_alert(context)

        assert set(bodies) == {"text_body", "html_body"}
        assert "Event: Deployment Blocked" in bodies["text_body"]
        assert "Status changed from In Progress to Blocked" in bodies["text_body"]
        assert "Delivery Date: 2025-11-10" in bodies["text_body"]
        assert f'href="{APP_URL}/deployments/dep-1"' in bodies["html_body"]

    def test_html_is_escaped(self, renderer):
        context = build_alert_context(
            make_deployment(client_name="<script>x</script>"), AlertEventType.CREATED, APP_URL
        )

        html = renderer.render_alert(context)["html_body"]

        assert "<script>x</script>" not in html
        assert "&lt;script&gt;" in html

    def test_optional_rows_omitted(self, renderer):
        context = build_alert_context(
            make_deployment(next_delivery_date=None), AlertEventType.CREATED, APP_URL
        )

        bodies = renderer.render_alert(context)

        assert "Delivery Date" not in bodies["text_body"]
        assert "Delivery Date" not in bodies["html_body"]


class TestErrors:
    def test_missing_variable_raises(self, renderer):
        with pytest.raises(NotificationTemplateError, match="reminder_body.txt.j2"):
            renderer.render_reminder({"product_name": "Atlas"})

    def test_missing_template_raises(self, renderer):
        with pytest.raises(NotificationTemplateError):
            renderer.render("nope.txt.j2", {})
