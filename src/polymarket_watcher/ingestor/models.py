"""Data models for the ingestor module."""

from __future__ import annotations

import contextlib
import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from polymarket_watcher.detector.models import FreshWalletSignal
    from polymarket_watcher.profiler.models import WalletProfile

POLYMARKET_EVENT_URL = "https://polymarket.com/event/"

_ZERO = Decimal(0)


def parse_decimal(value: Any) -> Decimal:
    """Parse a feed-supplied number, mapping anything unusable to zero.

    The feed sends prices and sizes as text; empty strings, garbage and
    non-finite values all read as ``Decimal(0)``.
    """
    if value is None or isinstance(value, bool):
        return _ZERO
    text = str(value).strip()
    if not text:
        return _ZERO
    try:
        parsed = Decimal(text)
    except (InvalidOperation, ValueError):
        return _ZERO
    if not parsed.is_finite():
        return _ZERO
    return parsed


def _parse_timestamp(raw: Any) -> datetime:
    """Read epoch seconds, epoch millis or ISO-8601; anything unusable is now."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            ts = float(raw)
            if ts > 1e12:
                ts /= 1000.0
            return datetime.fromtimestamp(ts, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return datetime.now(UTC)
    if isinstance(raw, str) and raw:
        if raw.isdigit():
            return _parse_timestamp(int(raw))
        with contextlib.suppress(ValueError):
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return parsed.astimezone(UTC)
    return datetime.now(UTC)


class EventType(str, Enum):
    """Kinds of market events carried by the live feed."""

    TRADE = "trade"
    BOOK = "book"
    PRICE_CHANGE = "price_change"
    LAST_TRADE_PRICE = "last_trade_price"
    TICK_SIZE_CHANGE = "tick_size_change"

    @classmethod
    def parse(cls, value: Any) -> EventType:
        try:
            return cls(str(value or "").lower())
        except ValueError:
            return cls.TRADE


class Side(str, Enum):
    """Trade side."""

    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value: Any) -> Side | None:
        text = str(value or "").upper()
        if text == "BUY":
            return cls.BUY
        if text == "SELL":
            return cls.SELL
        return None


@dataclass(frozen=True)
class TradeEvent:
    """One observed market event.

    Price and size stay as the feed's text; use ``notional_value`` for
    arithmetic. The enrichment fields are filled in later through
    ``with_enrichment``.
    """

    event_type: EventType
    timestamp: datetime
    price: str = ""
    size: str = ""
    side: Side | None = None
    asset_id: str = ""
    market_slug: str = ""
    market_name: str = ""
    market_image: str = ""
    market_link: str = ""
    best_bid: str = ""
    best_ask: str = ""
    trade_id: str = ""
    wallet_address: str = ""
    outcome: str = ""
    outcome_index: int = 0
    event_slug: str = ""
    event_title: str = ""
    trader_name: str = ""
    condition_id: str = ""
    id: int | None = None

    is_fresh_wallet: bool = False
    wallet_profile: WalletProfile | None = None
    risk_score: float = 0.0
    risk_signals: tuple[str, ...] = field(default_factory=tuple)
    fresh_wallet_signal: FreshWalletSignal | None = None

    @property
    def notional_value(self) -> Decimal:
        """Price times size, zero when either is unusable."""
        return parse_decimal(self.price) * parse_decimal(self.size)

    @property
    def has_price(self) -> bool:
        return bool(self.price.strip())

    @property
    def is_enriched(self) -> bool:
        return self.wallet_profile is not None

    def with_enrichment(
        self,
        profile: WalletProfile,
        signal: FreshWalletSignal | None = None,
    ) -> TradeEvent:
        """Return a copy carrying the wallet profile and, if any, its signal."""
        return dataclasses.replace(
            self,
            wallet_profile=profile,
            is_fresh_wallet=profile.is_fresh,
            fresh_wallet_signal=signal,
            risk_score=signal.confidence if signal is not None else 0.0,
            risk_signals=signal.risk_signals if signal is not None else (),
        )

    @classmethod
    def from_feed_message(cls, data: dict[str, Any]) -> TradeEvent:
        """Create a TradeEvent from a live-data feed payload.

        Args:
            data: Activity/trade or market-channel message payload.

        Returns:
            TradeEvent instance.
        """
        event_type = EventType.parse(data.get("event_type") or data.get("type"))
        event_slug = str(data.get("eventSlug") or data.get("event_slug") or "")
        market_link = str(data.get("market_link") or data.get("marketLink") or "")
        if not market_link and event_slug:
            market_link = POLYMARKET_EVENT_URL + event_slug

        outcome_index = 0
        with contextlib.suppress(TypeError, ValueError):
            outcome_index = int(data.get("outcomeIndex", data.get("outcome_index", 0)) or 0)

        price = data.get("price")
        size = data.get("size")
        best_bid = data.get("best_bid")
        best_ask = data.get("best_ask")

        return cls(
            event_type=event_type,
            timestamp=_parse_timestamp(data.get("timestamp", data.get("time"))),
            price="" if price is None else str(price),
            size="" if size is None else str(size),
            side=Side.parse(data.get("side")),
            asset_id=str(data.get("asset") or data.get("asset_id") or data.get("assetId") or ""),
            market_slug=str(data.get("slug") or data.get("market_slug") or ""),
            market_name=str(data.get("market_name") or data.get("question") or data.get("title") or ""),
            market_image=str(data.get("icon") or data.get("image") or ""),
            market_link=market_link,
            best_bid="" if best_bid is None else str(best_bid),
            best_ask="" if best_ask is None else str(best_ask),
            trade_id=str(data.get("transactionHash") or data.get("transaction_hash") or data.get("id") or ""),
            wallet_address=str(data.get("proxyWallet") or data.get("proxy_wallet") or "").lower(),
            outcome=str(data.get("outcome") or ""),
            outcome_index=outcome_index,
            event_slug=event_slug,
            event_title=str(data.get("title") or data.get("event_title") or ""),
            trader_name=str(data.get("name") or data.get("pseudonym") or ""),
            condition_id=str(data.get("conditionId") or data.get("condition_id") or data.get("market") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "price": self.price,
            "size": self.size,
            "side": self.side.value if self.side else None,
            "notional_value": str(self.notional_value),
            "market_name": self.market_name,
            "market_link": self.market_link,
            "trade_id": self.trade_id,
            "wallet_address": self.wallet_address,
            "outcome": self.outcome,
            "event_title": self.event_title,
            "is_fresh_wallet": self.is_fresh_wallet,
            "risk_score": self.risk_score,
            "risk_signals": list(self.risk_signals),
            "wallet_profile": self.wallet_profile.to_dict() if self.wallet_profile else None,
        }
