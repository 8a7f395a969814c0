"""Google Chat incoming-webhook transport."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import requests

from control_tower.config.models import GoogleChatConfig
from control_tower.logging import get_logger

from .models import ChannelResult, ChatDeliveryError

logger = get_logger(__name__, component="google_chat")


class GoogleChatClient:
    """Posts card payloads to Google Chat webhooks.

    No retries: one POST per call. Any non-2xx response, timeout or
    connection error raises ChatDeliveryError.
    """

    def __init__(
        self,
        chat_config: Optional[GoogleChatConfig] = None,
        session: Optional[requests.Session] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.chat_config = chat_config or GoogleChatConfig()
        self.timeout = self.chat_config.timeout_seconds
        self.logger = logger_instance or logger

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": self.chat_config.user_agent,
                "Content-Type": "application/json; charset=UTF-8",
            }
        )

    def post(self, webhook_url: str, payload: Dict[str, Any]) -> ChannelResult:
        """POST ``payload`` as JSON to ``webhook_url``.

        Raises:
            ChatDeliveryError: On non-2xx status or network failure
        """
        host = _webhook_host(webhook_url)

        try:
            self.logger.debug(
                f"POST Google Chat webhook on {host}",
                extra={"event": "chat.post.request", "webhook_host": host, "timeout": self.timeout},
            )
            response = self._session.post(webhook_url, json=payload, timeout=self.timeout)

        except requests.exceptions.Timeout as e:
            error_msg = f"Google Chat webhook timed out after {self.timeout} seconds"
            self.logger.error(
                error_msg, extra={"event": "chat.post.timeout", "webhook_host": host}
            )
            raise ChatDeliveryError(error_msg) from e
        except requests.exceptions.RequestException as e:
            error_msg = f"Google Chat webhook request failed: {e}"
            self.logger.error(
                error_msg, extra={"event": "chat.post.failure", "webhook_host": host}
            )
            raise ChatDeliveryError(error_msg) from e

        if not 200 <= response.status_code < 300:
            error_msg = f"Google Chat webhook returned HTTP {response.status_code}: {response.reason}"
            self.logger.error(
                error_msg,
                extra={
                    "event": "chat.post.failure",
                    "webhook_host": host,
                    "status_code": response.status_code,
                },
            )
            raise ChatDeliveryError(error_msg, status_code=response.status_code)

        self.logger.debug(
            f"Google Chat webhook accepted message (HTTP {response.status_code})",
            extra={"event": "chat.post.success", "status_code": response.status_code},
        )
        return ChannelResult(sent=True, status=response.status_code)

    def close(self) -> None:
        self._session.close()


def _webhook_host(url: str) -> str:
    """Host part of a webhook URL; the query string carries the secret key."""
    return urlsplit(url).netloc or "<invalid url>"
