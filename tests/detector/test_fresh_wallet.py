"""Tests for the fresh wallet detector."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from polymarket_watcher.detector.fresh_wallet import (
    BASE_CONFIDENCE,
    LARGE_TRADE_THRESHOLD,
    FreshWalletDetector,
)
from polymarket_watcher.detector.models import FreshWalletSignal
from polymarket_watcher.profiler.models import FreshnessLevel, FreshnessThresholds, WalletProfile


@pytest.fixture
def mock_analyzer() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def detector(mock_analyzer: AsyncMock) -> FreshWalletDetector:
    return FreshWalletDetector(mock_analyzer, FreshnessThresholds)


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_fresh_wallet_produces_signal(self, detector, mock_analyzer, make_trade, make_profile) -> None:
        mock_analyzer.analyze.return_value = make_profile(2, FreshnessLevel.INSIDER)
        trade = make_trade(price="0.5", size="1000")

        signal = await detector.analyze(trade)

        assert isinstance(signal, FreshWalletSignal)
        assert signal.wallet_address == trade.wallet_address
        assert signal.freshness_level == FreshnessLevel.INSIDER
        assert signal.bet_count == 2
        assert signal.trade_size == Decimal("500.0")
        assert signal.confidence == pytest.approx(0.8)
        assert signal.risk_signals == ("🚨 Fresh Insider (2 bets)",)

    @pytest.mark.asyncio
    async def test_experienced_wallet_produces_nothing(
        self, detector, mock_analyzer, make_trade, make_profile
    ) -> None:
        mock_analyzer.analyze.return_value = make_profile(400, FreshnessLevel.NONE)
        assert await detector.analyze(make_trade()) is None

    @pytest.mark.asyncio
    async def test_small_trade_skips_lookup(self, detector, mock_analyzer, make_trade) -> None:
        assert await detector.analyze(make_trade(price="0.5", size="100")) is None
        mock_analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_trade_without_wallet_skips_lookup(self, detector, mock_analyzer, make_trade) -> None:
        assert await detector.analyze(make_trade(wallet="")) is None
        mock_analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_current_min_trade_size(self, mock_analyzer, make_trade, make_profile) -> None:
        thresholds = FreshnessThresholds(min_trade_size=Decimal("5000"))
        detector = FreshWalletDetector(mock_analyzer, lambda: thresholds)
        mock_analyzer.analyze.return_value = make_profile(0)

        assert await detector.analyze(make_trade(price="0.5", size="1000")) is None
        assert await detector.analyze(make_trade(price="0.5", size="10000")) is not None


class TestEnrich:
    @pytest.mark.asyncio
    async def test_enrich_attaches_profile_and_signal(self, detector, mock_analyzer, make_trade, make_profile) -> None:
        mock_analyzer.analyze.return_value = make_profile(5, FreshnessLevel.FRESH)
        enriched = await detector.enrich(make_trade())

        assert enriched is not None
        assert enriched.is_fresh_wallet
        assert enriched.wallet_profile is not None
        assert enriched.fresh_wallet_signal is not None
        assert enriched.risk_score == pytest.approx(0.7)

    @pytest.mark.asyncio
    async def test_enrich_experienced_wallet_has_profile_only(
        self, detector, mock_analyzer, make_trade, make_profile
    ) -> None:
        mock_analyzer.analyze.return_value = make_profile(99, FreshnessLevel.NONE)
        enriched = await detector.enrich(make_trade())

        assert enriched is not None
        assert not enriched.is_fresh_wallet
        assert enriched.fresh_wallet_signal is None
        assert enriched.risk_score == 0.0

    @pytest.mark.asyncio
    async def test_enrich_skips_unknown_profile(self, detector, mock_analyzer, make_trade, wallet_address) -> None:
        mock_analyzer.analyze.return_value = WalletProfile.unknown(wallet_address, 20)
        assert await detector.enrich(make_trade()) is None


class TestConfidence:
    def _profile(self, bets: int, level: FreshnessLevel) -> WalletProfile:
        return WalletProfile(
            address="0xabc",
            bet_count=bets,
            freshness_level=level,
            is_fresh=level != FreshnessLevel.NONE,
            analyzed_at=datetime.now(UTC),
            fresh_threshold=20,
        )

    @pytest.mark.parametrize(
        ("bets", "level", "expected"),
        [
            (2, FreshnessLevel.INSIDER, 0.8),
            (5, FreshnessLevel.FRESH, 0.7),
            (15, FreshnessLevel.NEWBIE, 0.6),
            (25, FreshnessLevel.CUSTOM, 0.6),
        ],
    )
    def test_level_bonus(self, detector, bets: int, level: FreshnessLevel, expected: float) -> None:
        confidence, factors = detector.calculate_confidence(self._profile(bets, level), Decimal("500"))
        assert confidence == pytest.approx(expected)
        assert factors["base"] == BASE_CONFIDENCE
        assert level.value in factors

    def test_zero_bets_bonus(self, detector) -> None:
        confidence, factors = detector.calculate_confidence(self._profile(0, FreshnessLevel.INSIDER), Decimal("500"))
        assert confidence == pytest.approx(0.9)
        assert factors["zero_bets"] == 0.1

    def test_large_trade_bonus_is_strictly_greater(self, detector) -> None:
        profile = self._profile(5, FreshnessLevel.FRESH)
        at_threshold, factors = detector.calculate_confidence(profile, LARGE_TRADE_THRESHOLD)
        assert "large_trade" not in factors
        above, factors = detector.calculate_confidence(profile, LARGE_TRADE_THRESHOLD + 1)
        assert factors["large_trade"] == 0.1
        assert above == pytest.approx(at_threshold + 0.1)

    def test_confidence_is_clamped(self, detector) -> None:
        confidence, _ = detector.calculate_confidence(self._profile(0, FreshnessLevel.INSIDER), Decimal("50000"))
        assert confidence == 1.0

    def test_risk_signals(self, detector) -> None:
        signals = detector.risk_signals(self._profile(0, FreshnessLevel.INSIDER), Decimal("25000"))
        assert signals == ("🚨 Fresh Insider (0 bets)", "💰 Large Position ($25,000.00)")

    def test_large_position_signal_includes_threshold(self, detector) -> None:
        profile = self._profile(5, FreshnessLevel.FRESH)
        at_threshold = detector.risk_signals(profile, LARGE_TRADE_THRESHOLD)
        below = detector.risk_signals(profile, LARGE_TRADE_THRESHOLD - Decimal("0.01"))

        assert at_threshold == ("🔥 Fresh Wallet (5 bets)", "💰 Large Position ($10,000.00)")
        assert below == ("🔥 Fresh Wallet (5 bets)",)

    def test_risk_signals_for_non_fresh_wallet(self, detector) -> None:
        assert detector.risk_signals(self._profile(100, FreshnessLevel.NONE), Decimal("500")) == ()


class TestSignalModel:
    def test_dict_round_trip(self) -> None:
        signal = FreshWalletSignal(
            wallet_address="0xabc",
            freshness_level=FreshnessLevel.FRESH,
            bet_count=6,
            trade_size=Decimal("1234.5"),
            confidence=0.7,
            factors={"base": 0.5, "fresh": 0.2},
            risk_signals=("🔥 Fresh Wallet (6 bets)",),
        )
        assert FreshWalletSignal.from_dict(signal.to_dict()) == signal
        assert signal.is_high_confidence
