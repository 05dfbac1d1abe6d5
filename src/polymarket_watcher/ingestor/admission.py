"""Event admission filter.

Decides which incoming events are persisted and forwarded. The check is a
pure function of the event, the active filter and the configured minimum
trade size, so callers can evaluate it against a config snapshot without
holding any lock.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from polymarket_watcher.ingestor.models import EventType, Side, TradeEvent, parse_decimal

DEFAULT_SAVE_MIN_SIZE = Decimal("100")
DEFAULT_QUERY_LIMIT = 100


class EventFilter(BaseModel):
    """Predicate configuration for event admission and event queries.

    ``fresh_wallets_only``, ``min_risk_score``, ``max_wallet_bet_count``,
    ``limit`` and ``offset`` only shape queries over stored events; the
    admission check ignores them.
    """

    model_config = ConfigDict(frozen=True)

    event_types: tuple[EventType, ...] = ()
    market_name: str = ""
    min_price: Decimal = Decimal(0)
    max_price: Decimal = Decimal(0)
    side: Side | None = None
    min_size: Decimal = Decimal(0)

    fresh_wallets_only: bool = False
    min_risk_score: float = 0.0
    max_wallet_bet_count: int = 0
    limit: int = Field(default=DEFAULT_QUERY_LIMIT, ge=0)
    offset: int = Field(default=0, ge=0)

    @classmethod
    def default_save_filter(cls) -> EventFilter:
        return cls(min_size=DEFAULT_SAVE_MIN_SIZE)


def should_admit(event: TradeEvent, event_filter: EventFilter, default_min_size: Decimal) -> bool:
    """Return True if the event passes every admission check.

    Checks run in order: notional floor, event type, side, price band,
    market name. A non-positive ``min_size`` falls back to
    ``default_min_size``. The price band only applies to events that carry
    a price, and each bound only when positive.
    """
    min_size = event_filter.min_size if event_filter.min_size > 0 else default_min_size
    if event.notional_value < min_size:
        return False

    if event_filter.event_types and event.event_type not in event_filter.event_types:
        return False

    if event_filter.side is not None and event.side != event_filter.side:
        return False

    if event.has_price:
        price = parse_decimal(event.price)
        if event_filter.min_price > 0 and price < event_filter.min_price:
            return False
        if event_filter.max_price > 0 and price > event_filter.max_price:
            return False

    if event_filter.market_name:
        needle = event_filter.market_name.lower()
        if needle not in event.market_name.lower() and needle not in event.event_title.lower():
            return False

    return True
