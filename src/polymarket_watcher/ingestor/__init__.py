"""Data ingestion layer - Live feed event parsing and admission."""

from polymarket_watcher.ingestor.admission import EventFilter, should_admit
from polymarket_watcher.ingestor.models import (
    EventType,
    Side,
    TradeEvent,
    parse_decimal,
)

__all__ = [
    "EventFilter",
    "EventType",
    "Side",
    "TradeEvent",
    "parse_decimal",
    "should_admit",
]
