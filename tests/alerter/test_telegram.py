"""Tests for the Telegram channel."""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import SecretStr

from polymarket_watcher.alerter.channels import NotificationError, TelegramChannel, build_channel
from polymarket_watcher.alerter.models import NotificationConfig

TOKEN = "123456:ABC-DEF"


def _channel(handler, token: str = TOKEN) -> TelegramChannel:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TelegramChannel(token, api_url="https://telegram.test", client=client)


class TestTelegramChannel:
    @pytest.mark.asyncio
    async def test_send_posts_html_message(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True, "result": {}})

        channel = _channel(handler)
        await channel.send(["111", "222"], "<b>hi</b>")

        assert len(requests) == 2
        assert str(requests[0].url) == f"https://telegram.test/bot{TOKEN}/sendMessage"
        body = json.loads(requests[0].content)
        assert body == {
            "chat_id": "111",
            "text": "<b>hi</b>",
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    @pytest.mark.asyncio
    async def test_partial_failure_still_succeeds(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            chat_id = json.loads(request.content)["chat_id"]
            if chat_id == "bad":
                return httpx.Response(400, json={"ok": False, "description": "chat not found"})
            return httpx.Response(200, json={"ok": True})

        await _channel(handler).send(["bad", "good"], "text")

    @pytest.mark.asyncio
    async def test_all_failures_raise(self) -> None:
        channel = _channel(lambda request: httpx.Response(200, json={"ok": False, "description": "blocked"}))
        with pytest.raises(NotificationError) as exc_info:
            await channel.send(["111"], "text")
        assert isinstance(exc_info.value.cause, NotificationError)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NotificationError):
            await _channel(handler).send(["111"], "text")

    @pytest.mark.asyncio
    async def test_requires_token_and_recipients(self) -> None:
        ok = lambda request: httpx.Response(200, json={"ok": True})  # noqa: E731
        with pytest.raises(NotificationError):
            await _channel(ok, token="").send(["111"], "text")
        with pytest.raises(NotificationError):
            await _channel(ok).send([" ", ""], "text")


class TestBuildChannel:
    @pytest.mark.asyncio
    async def test_builds_telegram_channel(self) -> None:
        config = NotificationConfig(enabled=True, telegram_bot_token=SecretStr(TOKEN), telegram_chat_ids=("1",))
        channel = build_channel(config, timeout_seconds=3)
        assert isinstance(channel, TelegramChannel)
        assert channel.is_configured
        await channel.aclose()
