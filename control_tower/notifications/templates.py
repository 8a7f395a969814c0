"""Template rendering for email bodies using Jinja2.

Templates live in control_tower/notifications/email_templates. HTML
templates are auto-escaped; plain-text templates are not. StrictUndefined
turns a missing context key into an error instead of an empty string.
"""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)

REMINDER_TEXT_TEMPLATE = "reminder_body.txt.j2"
ALERT_TEXT_TEMPLATE = "alert_body.txt.j2"
ALERT_HTML_TEMPLATE = "alert_body.html.j2"


class TemplateRenderer:
    """Renders reminder and alert email bodies."""

    def __init__(self, template_dir: str = "email_templates"):
        self.env = Environment(
            loader=PackageLoader("control_tower.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render one template.

        Raises:
            NotificationTemplateError: If the template is missing or rendering fails
        """
        try:
            return self.env.get_template(template_name).render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for {template_name}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

    def render_reminder(self, context: Dict[str, Any]) -> str:
        return self.render(REMINDER_TEXT_TEMPLATE, context)

    def render_alert(self, context: Dict[str, Any]) -> Dict[str, str]:
        """Render the alert email.

        Returns:
            Dictionary with "text_body" and "html_body"
        """
        return {
            "text_body": self.render(ALERT_TEXT_TEMPLATE, context),
            "html_body": self.render(ALERT_HTML_TEMPLATE, context),
        }
