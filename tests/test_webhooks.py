"""Tests for Google Chat webhook precedence."""

from control_tower.domain.models import AlertConfig, GoogleChatSettings, ProductAlertConfig
from control_tower.notifications.webhooks import resolve_chat_webhook

from tests.helpers.factories import make_deployment, make_product


def deployment_with(webhook_url=None, use_product_webhook=True):
    return make_deployment(
        alert_config=AlertConfig(
            google_chat=GoogleChatSettings(
                webhook_url=webhook_url, use_product_webhook=use_product_webhook
            )
        )
    )


def product_with(webhook_url):
    return make_product(alert_config=ProductAlertConfig(google_chat_webhook_url=webhook_url))


def test_deployment_override_wins():
    assert resolve_chat_webhook(deployment_with("A"), product_with("B"), "C") == "A"


def test_product_webhook_when_no_override():
    assert resolve_chat_webhook(deployment_with(), product_with("B"), "C") == "B"


def test_default_when_product_has_none():
    assert resolve_chat_webhook(deployment_with(), product_with(None), "C") == "C"


def test_default_when_product_webhook_disabled():
    deployment = deployment_with(use_product_webhook=False)

    assert resolve_chat_webhook(deployment, product_with("B"), "C") == "C"


def test_default_when_product_missing():
    assert resolve_chat_webhook(deployment_with(), None, "C") == "C"


def test_none_when_nothing_configured():
    assert resolve_chat_webhook(deployment_with(), product_with(None)) is None
    assert resolve_chat_webhook(deployment_with(), None, "") is None
