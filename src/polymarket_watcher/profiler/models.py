"""Data models for the wallet profiler."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Default bet-count cut-offs for each freshness band
DEFAULT_INSIDER_MAX_BETS = 3
DEFAULT_FRESH_MAX_BETS = 10
DEFAULT_NEWBIE_MAX_BETS = 20
DEFAULT_MIN_TRADE_SIZE = Decimal("100")

DEFAULT_ALERT_THRESHOLD = 0.7

UNKNOWN_BET_COUNT = -1


class FreshnessLevel(str, Enum):
    """Freshness band of a wallet, ordered from most to least suspicious."""

    INSIDER = "insider"
    FRESH = "fresh"
    NEWBIE = "newbie"
    CUSTOM = "custom_fresh"
    NONE = "none"


class FreshnessThresholds(BaseModel):
    """Bet-count cut-offs used to classify wallets.

    Non-positive standard cut-offs fall back to their defaults, so a partially
    filled config still classifies sensibly. ``custom_max_bets`` of zero
    disables the custom band.
    """

    model_config = ConfigDict(frozen=True)

    insider_max_bets: int = DEFAULT_INSIDER_MAX_BETS
    fresh_max_bets: int = DEFAULT_FRESH_MAX_BETS
    newbie_max_bets: int = DEFAULT_NEWBIE_MAX_BETS
    custom_max_bets: int = 0
    min_trade_size: Decimal = DEFAULT_MIN_TRADE_SIZE

    @property
    def insider(self) -> int:
        return self.insider_max_bets if self.insider_max_bets > 0 else DEFAULT_INSIDER_MAX_BETS

    @property
    def fresh(self) -> int:
        return self.fresh_max_bets if self.fresh_max_bets > 0 else DEFAULT_FRESH_MAX_BETS

    @property
    def newbie(self) -> int:
        return self.newbie_max_bets if self.newbie_max_bets > 0 else DEFAULT_NEWBIE_MAX_BETS

    @property
    def custom(self) -> int:
        return max(self.custom_max_bets, 0)

    @property
    def min_notional(self) -> Decimal:
        return self.min_trade_size if self.min_trade_size > 0 else DEFAULT_MIN_TRADE_SIZE

    @property
    def max_fresh_threshold(self) -> int:
        """Largest bet count that still counts as fresh."""
        return self.custom if self.custom > 0 else self.newbie

    @model_validator(mode="after")
    def _check_ordering(self) -> FreshnessThresholds:
        if not self.insider <= self.fresh <= self.newbie:
            raise ValueError(
                "freshness cut-offs must satisfy insider <= fresh <= newbie "
                f"(got {self.insider}, {self.fresh}, {self.newbie})"
            )
        return self


class WatcherConfig(BaseModel):
    """User-editable watcher configuration, persisted as JSON."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    alert_threshold: float = Field(default=DEFAULT_ALERT_THRESHOLD, ge=0.0, le=1.0)
    thresholds: FreshnessThresholds = Field(default_factory=FreshnessThresholds)


@dataclass(frozen=True)
class WalletProfile:
    """Reputation summary of a trading wallet.

    ``bet_count`` of -1 means the wallet has not been analyzed yet, or the
    last lookup failed.
    """

    address: str
    bet_count: int
    freshness_level: FreshnessLevel
    is_fresh: bool
    analyzed_at: datetime
    fresh_threshold: int
    join_date: str = ""
    first_seen_at: datetime | None = None

    @property
    def is_analyzed(self) -> bool:
        return self.bet_count >= 0

    @classmethod
    def unknown(cls, address: str, fresh_threshold: int) -> WalletProfile:
        """Profile returned when the wallet could not be looked up."""
        return cls(
            address=address,
            bet_count=UNKNOWN_BET_COUNT,
            freshness_level=FreshnessLevel.NONE,
            is_fresh=False,
            analyzed_at=datetime.now(UTC),
            fresh_threshold=fresh_threshold,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "bet_count": self.bet_count,
            "join_date": self.join_date,
            "freshness_level": self.freshness_level.value,
            "is_fresh": self.is_fresh,
            "fresh_threshold": self.fresh_threshold,
            "analyzed_at": self.analyzed_at.isoformat(),
            "first_seen_at": self.first_seen_at.isoformat() if self.first_seen_at else None,
        }


@dataclass(frozen=True)
class ProfileStats:
    """Raw statistics returned by the wallet profile endpoint."""

    trades: int
    join_date: str = ""
    largest_win: float = 0.0
    views: int = 0
