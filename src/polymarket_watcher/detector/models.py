"""Data models for the detector module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from polymarket_watcher.profiler.models import FreshnessLevel


@dataclass(frozen=True)
class FreshWalletSignal:
    """Signal attached to a trade placed by a fresh wallet.

    Attributes:
        wallet_address: Trader's wallet.
        freshness_level: Band the wallet was classified into.
        bet_count: Historical bet count at analysis time.
        trade_size: Notional value of the trade.
        confidence: Overall confidence score (0.0 to 1.0).
        factors: Individual contributions to ``confidence``.
        risk_signals: Human-readable annotations for display.
        timestamp: When this signal was generated.
    """

    wallet_address: str
    freshness_level: FreshnessLevel
    bet_count: int
    trade_size: Decimal
    confidence: float
    factors: dict[str, float]
    risk_signals: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_high_confidence(self) -> bool:
        """Return True if confidence reaches 0.7."""
        return self.confidence >= 0.7

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_address": self.wallet_address,
            "freshness_level": self.freshness_level.value,
            "bet_count": self.bet_count,
            "trade_size": str(self.trade_size),
            "confidence": self.confidence,
            "factors": dict(self.factors),
            "risk_signals": list(self.risk_signals),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FreshWalletSignal:
        return cls(
            wallet_address=str(data.get("wallet_address", "")),
            freshness_level=FreshnessLevel(data.get("freshness_level", FreshnessLevel.NONE.value)),
            bet_count=int(data.get("bet_count", -1)),
            trade_size=Decimal(str(data.get("trade_size", "0"))),
            confidence=float(data.get("confidence", 0.0)),
            factors={str(k): float(v) for k, v in (data.get("factors") or {}).items()},
            risk_signals=tuple(str(s) for s in data.get("risk_signals") or ()),
            timestamp=datetime.fromisoformat(data["timestamp"]) if data.get("timestamp") else datetime.now(UTC),
        )
