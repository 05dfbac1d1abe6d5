"""Telegram Bot API channel."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from polymarket_watcher.alerter.channels.base import NotificationError

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT_SECONDS = 10.0


class TelegramChannel:
    """Sends HTML messages to Telegram chats through ``sendMessage``.

    A send succeeds if at least one chat accepted the message. Failures for
    individual chats are logged; if every chat fails, NotificationError is
    raised with the last failure as its cause.
    """

    def __init__(
        self,
        bot_token: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        api_url: str = TELEGRAM_API_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token)

    async def send(self, recipients: Sequence[str], text: str) -> None:
        if not self._bot_token:
            raise NotificationError("Telegram bot token is not configured")

        chat_ids = [c.strip() for c in recipients if c and c.strip()]
        if not chat_ids:
            raise NotificationError("No Telegram chat IDs configured")

        delivered = 0
        last_error: Exception | None = None
        for chat_id in chat_ids:
            try:
                await self._send_message(chat_id, text)
                delivered += 1
            except (httpx.HTTPError, NotificationError) as e:
                last_error = e
                logger.warning("Telegram delivery to chat %s failed: %s", chat_id, e)

        if delivered == 0:
            raise NotificationError("Telegram delivery failed for every chat", cause=last_error)

        logger.debug("Telegram message delivered to %d/%d chats", delivered, len(chat_ids))

    async def _send_message(self, chat_id: str, text: str) -> None:
        url = f"{self._api_url}/bot{self._bot_token}/sendMessage"
        resp = await self._client.post(
            url,
            json={
                "chat_id": chat_id,
                "text": text,
                "parse_mode": "HTML",
                "disable_web_page_preview": True,
            },
        )
        if resp.status_code != httpx.codes.OK:
            raise NotificationError(f"Telegram API returned HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise NotificationError("Telegram API response is not JSON", cause=e) from e
        if not isinstance(body, dict) or not body.get("ok", False):
            description = body.get("description", "unknown") if isinstance(body, dict) else "unknown"
            raise NotificationError(f"Telegram API error: {description}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
