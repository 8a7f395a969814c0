"""Google Chat webhook selection.

Precedence, first non-empty wins:
    1. deployment alert_config.google_chat.webhook_url
    2. product alert_config.google_chat_webhook_url, unless the deployment
       sets use_product_webhook to false
    3. the process-wide default (GOOGLE_CHAT_WEBHOOK_URL)
"""

from typing import Optional

from control_tower.domain.models import Deployment, Product


def resolve_chat_webhook(
    deployment: Deployment,
    product: Optional[Product],
    default_url: Optional[str] = None,
) -> Optional[str]:
    chat = deployment.alert_config.google_chat

    if chat.webhook_url:
        return chat.webhook_url

    if chat.use_product_webhook and product is not None:
        product_url = product.alert_config.google_chat_webhook_url
        if product_url:
            return product_url

    return default_url or None
