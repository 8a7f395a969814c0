"""Template contexts, subjects and Google Chat cards.

Builds the dictionaries handed to the Jinja2 templates and the JSON card
payloads posted to Google Chat.
"""

from typing import Any, Dict, Optional

from control_tower.domain.models import (
    AlertEventType,
    Deployment,
    DeploymentStatus,
    ReminderClass,
)

from .triggers import ReminderTrigger

STATUS_MARKERS = {
    DeploymentStatus.NOT_STARTED: "🔵",
    DeploymentStatus.IN_PROGRESS: "🟡",
    DeploymentStatus.BLOCKED: "🔴",
    DeploymentStatus.RELEASED: "🟢",
}

URGENCY_MARKERS = {
    ReminderClass.SEVEN_DAYS: "📅",
    ReminderClass.THREE_DAYS: "⏰",
    ReminderClass.DUE_TODAY: "🚨",
    ReminderClass.OVERDUE: "⚠️",
}

CHAT_TITLE_MARKERS = {
    AlertEventType.BLOCKED: "🚫",
    AlertEventType.RELEASED: "🚀",
    AlertEventType.APPROACHING: "⏰",
    AlertEventType.OVERDUE: "⚠️",
}


def deployment_url(app_url: str, deployment_id: str) -> str:
    return f"{app_url.rstrip('/')}/deployments/{deployment_id}"


def _delivery_date(deployment: Deployment) -> Optional[str]:
    if deployment.next_delivery_date is None:
        return None
    return deployment.next_delivery_date.isoformat()


def build_reminder_context(
    deployment: Deployment,
    trigger: Optional[ReminderTrigger],
    app_url: str,
    product_name: str = "Control Tower",
) -> Dict[str, Any]:
    """Context for reminder_body.txt.j2.

    ``trigger`` is None for test sends, which carry no urgency banner.
    """
    return {
        "urgency_marker": URGENCY_MARKERS[trigger.reminder_class] if trigger else "",
        "urgency_message": trigger.urgency_message() if trigger else "",
        "product_name": deployment.product_name,
        "client_display": deployment.client_display,
        "deployment_type": (deployment.deployment_type or "N/A").upper(),
        "environment": deployment.environment or "N/A",
        "delivery_date": _delivery_date(deployment) or "Not set",
        "status_marker": STATUS_MARKERS.get(deployment.status, "⚪"),
        "status": deployment.status.value,
        "owner_name": deployment.owner_name or "Not assigned",
        "delivery_person": deployment.delivery_person or "Not assigned",
        "feature_name": deployment.feature_name,
        "notes": deployment.notes,
        "deployment_url": deployment_url(app_url, deployment.id),
        "app_name": product_name,
    }


def alert_subject(deployment: Deployment, event_type: AlertEventType) -> str:
    event_title = AlertEventType(event_type).display_title
    return (
        f"[Control Tower] {event_title}: "
        f"{deployment.product_name} - {deployment.client_name or 'N/A'}"
    )


def build_alert_context(
    deployment: Deployment,
    event_type: AlertEventType,
    app_url: str,
    event_data: Optional[Dict[str, Any]] = None,
    product_name: str = "Control Tower",
) -> Dict[str, Any]:
    """Context for alert_body.txt.j2 and alert_body.html.j2."""
    event_data = event_data or {}
    return {
        "event_title": AlertEventType(event_type).display_title,
        "product_name": deployment.product_name,
        "client_name": deployment.client_name or "N/A",
        "status": deployment.status.value,
        "environment": deployment.environment or "N/A",
        "delivery_date": _delivery_date(deployment),
        "message": event_data.get("message"),
        "deployment_url": deployment_url(app_url, deployment.id),
        "app_name": product_name,
    }


def _key_value(label: str, content: str, icon: str) -> Dict[str, Any]:
    return {"keyValue": {"topLabel": label, "content": content, "icon": icon}}


def build_chat_card(
    deployment: Deployment,
    event_type: AlertEventType,
    app_url: str,
) -> Dict[str, Any]:
    """Google Chat card for an event-based alert."""
    event_type = AlertEventType(event_type)
    marker = CHAT_TITLE_MARKERS.get(event_type)
    subtitle = f"{marker} {event_type.display_title}" if marker else event_type.display_title

    widgets = [
        _key_value("Product", deployment.product_name, "BOOKMARK"),
        _key_value("Client", deployment.client_name or "N/A", "MEMBERSHIP"),
        _key_value("Status", deployment.status.value, "FLIGHT_DEPARTURE"),
    ]
    if deployment.environment:
        widgets.append(_key_value("Environment", deployment.environment, "HOTEL_ROOM_TYPE"))
    if deployment.next_delivery_date is not None:
        widgets.append(_key_value("Delivery Date", _delivery_date(deployment), "INVITE"))

    widgets.append(
        {
            "buttons": [
                {
                    "textButton": {
                        "text": "VIEW DEPLOYMENT",
                        "onClick": {"openLink": {"url": deployment_url(app_url, deployment.id)}},
                    }
                }
            ]
        }
    )

    return {
        "cards": [
            {
                "header": {"title": "Control Tower Alert", "subtitle": subtitle},
                "sections": [{"widgets": widgets}],
            }
        ]
    }


def build_test_chat_card() -> Dict[str, Any]:
    return {
        "cards": [
            {
                "header": {
                    "title": "Control Tower - Test Message",
                    "subtitle": "Webhook Test",
                },
                "sections": [
                    {
                        "widgets": [
                            {
                                "textParagraph": {
                                    "text": (
                                        "This is a test message from Control Tower. If you see this, "
                                        "your Google Chat webhook is configured correctly!"
                                    )
                                }
                            }
                        ]
                    }
                ],
            }
        ]
    }
