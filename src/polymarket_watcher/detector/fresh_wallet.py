"""Fresh wallet detection algorithm.

This module provides the FreshWalletDetector class that scores trades
placed by fresh wallets and annotates them with risk signals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from polymarket_watcher.detector.models import FreshWalletSignal
from polymarket_watcher.ingestor.models import TradeEvent
from polymarket_watcher.profiler.analyzer import WalletAnalyzer, short_address
from polymarket_watcher.profiler.models import (
    FreshnessLevel,
    FreshnessThresholds,
    WalletProfile,
)

logger = logging.getLogger(__name__)

# Confidence scoring constants
BASE_CONFIDENCE = 0.5
LEVEL_BONUS: dict[FreshnessLevel, float] = {
    FreshnessLevel.INSIDER: 0.3,
    FreshnessLevel.FRESH: 0.2,
    FreshnessLevel.NEWBIE: 0.1,
    FreshnessLevel.CUSTOM: 0.1,
}
ZERO_BETS_BONUS = 0.1
LARGE_TRADE_BONUS = 0.1
LARGE_TRADE_THRESHOLD = Decimal("10000")

_SIGNAL_LABELS: dict[FreshnessLevel, str] = {
    FreshnessLevel.INSIDER: "🚨 Fresh Insider",
    FreshnessLevel.FRESH: "🔥 Fresh Wallet",
    FreshnessLevel.NEWBIE: "⚡ Fresh Newbie",
    FreshnessLevel.CUSTOM: "✨ Fresher",
}


class FreshWalletDetector:
    """Detector for trades placed by fresh wallets.

    A trade produces a signal when its notional value reaches the
    configured floor and the trader's wallet falls in a freshness band.

    The confidence score combines:
    - the wallet's freshness band (insider > fresh > newbie = custom)
    - a brand-new wallet with zero bets
    - a trade above the large-trade threshold

    Example:
        ```python
        detector = FreshWalletDetector(analyzer, lambda: config.thresholds)

        signal = await detector.analyze(trade_event)
        if signal is not None:
            print(f"Fresh wallet! Confidence: {signal.confidence}")
        ```
    """

    def __init__(
        self,
        wallet_analyzer: WalletAnalyzer,
        thresholds_provider: Callable[[], FreshnessThresholds],
    ) -> None:
        self._analyzer = wallet_analyzer
        self._thresholds = thresholds_provider

    async def analyze(self, trade: TradeEvent) -> FreshWalletSignal | None:
        """Analyze a trade event for fresh wallet signals.

        Args:
            trade: TradeEvent to analyze.

        Returns:
            FreshWalletSignal if the trade is from a fresh wallet,
            None otherwise.
        """
        profile = await self.profile_for(trade)
        if profile is None:
            return None
        return self.assess(trade, profile)

    async def enrich(self, trade: TradeEvent) -> TradeEvent | None:
        """Return a copy of the trade carrying its wallet profile and signal.

        None when the trade is not analyzed or the wallet lookup failed.
        """
        profile = await self.profile_for(trade)
        if profile is None or not profile.is_analyzed:
            return None
        return trade.with_enrichment(profile, self.assess(trade, profile))

    async def profile_for(self, trade: TradeEvent) -> WalletProfile | None:
        """Look up the trader's profile if the trade is worth analyzing."""
        if not trade.wallet_address:
            return None

        floor = self._thresholds().min_notional
        if trade.notional_value < floor:
            logger.debug(
                "Trade %s below minimum size: %s < %s",
                trade.trade_id,
                trade.notional_value,
                floor,
            )
            return None

        return await self._analyzer.analyze(trade.wallet_address)

    def assess(self, trade: TradeEvent, profile: WalletProfile) -> FreshWalletSignal | None:
        """Score a trade against an already resolved wallet profile."""
        if not profile.is_fresh or trade.notional_value < self._thresholds().min_notional:
            return None

        notional = trade.notional_value
        confidence, factors = self.calculate_confidence(profile, notional)
        signals = self.risk_signals(profile, notional)

        logger.info(
            "Fresh wallet signal: wallet=%s, market=%s, size=%s, confidence=%.2f",
            short_address(profile.address),
            trade.market_name or trade.market_slug,
            notional,
            confidence,
        )

        return FreshWalletSignal(
            wallet_address=profile.address,
            freshness_level=profile.freshness_level,
            bet_count=profile.bet_count,
            trade_size=notional,
            confidence=confidence,
            factors=factors,
            risk_signals=signals,
        )

    def calculate_confidence(
        self,
        profile: WalletProfile,
        notional: Decimal,
    ) -> tuple[float, dict[str, float]]:
        """Calculate confidence score based on multiple factors.

        Confidence scoring:
        - Base: 0.5 (fresh wallet detected)
        - +0.3 insider, +0.2 fresh, +0.1 newbie or custom band
        - +0.1 if bet count == 0 (brand new wallet)
        - +0.1 if trade size > $10,000 (large trade)

        Final confidence is clamped to [0.0, 1.0].

        Returns:
            Tuple of (confidence_score, factors_dict).
        """
        factors: dict[str, float] = {"base": BASE_CONFIDENCE}
        confidence = BASE_CONFIDENCE

        level_bonus = LEVEL_BONUS.get(profile.freshness_level)
        if level_bonus:
            factors[profile.freshness_level.value] = level_bonus
            confidence += level_bonus

        if profile.bet_count == 0:
            factors["zero_bets"] = ZERO_BETS_BONUS
            confidence += ZERO_BETS_BONUS

        if notional > LARGE_TRADE_THRESHOLD:
            factors["large_trade"] = LARGE_TRADE_BONUS
            confidence += LARGE_TRADE_BONUS

        confidence = max(0.0, min(1.0, confidence))
        return confidence, factors

    @staticmethod
    def risk_signals(profile: WalletProfile, notional: Decimal) -> tuple[str, ...]:
        """Human-readable annotations for display alongside the score."""
        signals: list[str] = []
        label = _SIGNAL_LABELS.get(profile.freshness_level)
        if label:
            signals.append(f"{label} ({profile.bet_count} bets)")
        if notional >= LARGE_TRADE_THRESHOLD:
            signals.append(f"💰 Large Position (${notional:,.2f})")
        return tuple(signals)
