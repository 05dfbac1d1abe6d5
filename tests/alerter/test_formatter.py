"""Tests for the notification formatter."""

from __future__ import annotations

import dataclasses
from decimal import Decimal

from polymarket_watcher.alerter.formatter import (
    TEST_MESSAGE,
    NotificationFormatter,
    format_usdc,
    truncate_address,
)
from polymarket_watcher.alerter.models import NotificationEventType, NotificationPriority
from polymarket_watcher.ingestor.models import Side
from polymarket_watcher.profiler.models import FreshnessLevel


def test_truncate_address() -> None:
    assert truncate_address("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"
    assert truncate_address("0xabc") == "0xabc"


def test_format_usdc() -> None:
    assert format_usdc(Decimal("1234567.891")) == "$1,234,567.89"


class TestBigTrade:
    def test_buy_message(self, make_trade) -> None:
        content = NotificationFormatter().big_trade(make_trade(price="0.5", size="5000"))

        assert content.event_type == NotificationEventType.BIG_TRADE
        assert content.priority == NotificationPriority.HIGH
        assert "🟢 Big Trade Alert" in content.message
        assert "<b>Market:</b> Weather" in content.message
        assert "<b>Outcome:</b> Yes" in content.message
        assert "<b>Value:</b> $2,500.00" in content.message
        assert "<b>Side:</b> BUY" in content.message
        assert "<code>0x1234...5678</code>" in content.message
        assert "https://polymarket.com/profile/0x1234567890abcdef1234567890abcdef12345678" in content.message
        assert "Trades:" not in content.message

    def test_sell_message(self, make_trade) -> None:
        content = NotificationFormatter().big_trade(make_trade(side=Side.SELL))
        assert "🔴 Big Trade Alert" in content.message
        assert "<b>Side:</b> SELL" in content.message

    def test_includes_profile_when_enriched(self, make_trade, make_profile) -> None:
        trade = make_trade().with_enrichment(make_profile(3, FreshnessLevel.INSIDER))
        content = NotificationFormatter().big_trade(trade)
        assert "<b>Trades:</b> 3" in content.message
        assert "<b>Join Date:</b> Jan 2026" in content.message
        assert content.metadata["bet_count"] == "3"

    def test_escapes_html(self, make_trade) -> None:
        trade = dataclasses.replace(make_trade(market_name="<script>"), event_title="")
        content = NotificationFormatter().big_trade(trade)
        assert "&lt;script&gt;" in content.message
        assert "<script>" not in content.message


class TestFreshWallet:
    def test_message(self, make_profile) -> None:
        content = NotificationFormatter().fresh_wallet(make_profile(0, FreshnessLevel.INSIDER))

        assert content.event_type == NotificationEventType.FRESH_WALLET
        assert "🚨 Fresh Wallet Detected" in content.message
        assert "<b>Total Trades:</b> 0" in content.message
        assert "<b>Freshness:</b> insider" in content.message
        assert "View Profile" in content.message

    def test_emoji_per_band(self, make_profile) -> None:
        content = NotificationFormatter().fresh_wallet(make_profile(15, FreshnessLevel.NEWBIE))
        assert "⚡ Fresh Wallet Detected" in content.message


def test_test_message() -> None:
    content = NotificationFormatter().test()
    assert content.event_type == NotificationEventType.TEST
    assert content.message == TEST_MESSAGE
