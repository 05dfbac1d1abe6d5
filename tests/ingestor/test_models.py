"""Tests for ingestor data models."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from polymarket_watcher.detector.models import FreshWalletSignal
from polymarket_watcher.ingestor.models import EventType, Side, TradeEvent, parse_decimal
from polymarket_watcher.profiler.models import FreshnessLevel


class TestParseDecimal:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("0.65", Decimal("0.65")),
            (" 1500 ", Decimal("1500")),
            (12, Decimal("12")),
            ("", Decimal(0)),
            (None, Decimal(0)),
            ("abc", Decimal(0)),
            ("NaN", Decimal(0)),
            ("Infinity", Decimal(0)),
            (True, Decimal(0)),
        ],
    )
    def test_parse(self, raw: object, expected: Decimal) -> None:
        assert parse_decimal(raw) == expected


class TestEnums:
    def test_event_type_parse(self) -> None:
        assert EventType.parse("price_change") == EventType.PRICE_CHANGE
        assert EventType.parse("BOOK") == EventType.BOOK
        assert EventType.parse(None) == EventType.TRADE
        assert EventType.parse("something_else") == EventType.TRADE

    def test_side_parse(self) -> None:
        assert Side.parse("buy") == Side.BUY
        assert Side.parse("SELL") == Side.SELL
        assert Side.parse("") is None
        assert Side.parse("hold") is None


class TestTradeEvent:
    def test_notional_value(self, make_trade) -> None:
        trade = make_trade(price="0.65", size="1000")
        assert trade.notional_value == Decimal("650.00")

    def test_notional_value_with_malformed_fields(self, make_trade) -> None:
        assert make_trade(price="n/a", size="1000").notional_value == Decimal(0)
        assert make_trade(price="0.5", size="").notional_value == Decimal(0)

    def test_has_price(self, make_trade) -> None:
        assert make_trade(price="0.5").has_price
        assert not make_trade(price="").has_price

    def test_is_frozen(self, make_trade) -> None:
        trade = make_trade()
        with pytest.raises(AttributeError):
            trade.price = "0.9"  # type: ignore[misc]

    def test_from_feed_message(self) -> None:
        payload = {
            "asset": "123456",
            "conditionId": "0x" + "c" * 64,
            "eventSlug": "us-election",
            "icon": "https://img.test/icon.png",
            "name": "whale",
            "outcome": "Yes",
            "outcomeIndex": 0,
            "price": 0.42,
            "proxyWallet": "0xABCDEF0000000000000000000000000000000001",
            "side": "BUY",
            "size": "2500",
            "slug": "will-x-win",
            "timestamp": 1736942400,
            "title": "Will X win?",
            "transactionHash": "0xhash",
        }
        event = TradeEvent.from_feed_message(payload)

        assert event.event_type == EventType.TRADE
        assert event.wallet_address == "0xabcdef0000000000000000000000000000000001"
        assert event.price == "0.42"
        assert event.size == "2500"
        assert event.side == Side.BUY
        assert event.trade_id == "0xhash"
        assert event.market_name == "Will X win?"
        assert event.market_link == "https://polymarket.com/event/us-election"
        assert event.timestamp == datetime.fromtimestamp(1736942400, tz=UTC)
        assert event.notional_value == Decimal("1050.00")
        assert not event.is_enriched

    def test_from_feed_message_millisecond_timestamp(self) -> None:
        event = TradeEvent.from_feed_message({"timestamp": 1736942400000, "event_type": "book"})
        assert event.event_type == EventType.BOOK
        assert event.timestamp == datetime.fromtimestamp(1736942400, tz=UTC)
        assert event.price == ""
        assert event.side is None

    def test_from_feed_message_iso_timestamp(self) -> None:
        event = TradeEvent.from_feed_message({"timestamp": "2026-01-15T12:00:00Z"})
        assert event.timestamp == datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

    @pytest.mark.parametrize("raw", [1e20, float("nan"), float("-inf"), "99999999999999999999", "soon"])
    def test_from_feed_message_unusable_timestamp_reads_as_now(self, raw: object) -> None:
        before = datetime.now(UTC)
        event = TradeEvent.from_feed_message({"timestamp": raw, "price": "0.5", "size": "1000"})
        after = datetime.now(UTC)

        assert before <= event.timestamp <= after
        assert event.notional_value == Decimal("500.0")

    def test_with_enrichment(self, make_trade, make_profile) -> None:
        trade = make_trade()
        profile = make_profile(1, FreshnessLevel.INSIDER)
        signal = FreshWalletSignal(
            wallet_address=profile.address,
            freshness_level=profile.freshness_level,
            bet_count=1,
            trade_size=trade.notional_value,
            confidence=0.8,
            factors={"base": 0.5, "insider": 0.3},
            risk_signals=("🚨 Fresh Insider (1 bets)",),
        )

        enriched = trade.with_enrichment(profile, signal)

        assert enriched.is_enriched
        assert enriched.is_fresh_wallet
        assert enriched.risk_score == 0.8
        assert enriched.risk_signals == ("🚨 Fresh Insider (1 bets)",)
        assert not trade.is_enriched

    def test_with_enrichment_without_signal(self, make_trade, make_profile) -> None:
        enriched = make_trade().with_enrichment(make_profile(400, FreshnessLevel.NONE))
        assert enriched.is_enriched
        assert not enriched.is_fresh_wallet
        assert enriched.risk_score == 0.0
        assert enriched.risk_signals == ()

    def test_to_dict(self, make_trade) -> None:
        data = make_trade(price="0.5", size="400").to_dict()
        assert data["notional_value"] == "200.0"
        assert data["side"] == "BUY"
        assert data["wallet_profile"] is None
