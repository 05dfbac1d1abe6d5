"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from polymarket_watcher.ingestor.models import EventType, Side, TradeEvent
from polymarket_watcher.profiler.models import FreshnessLevel, WalletProfile
from polymarket_watcher.storage.database import DatabaseManager
from polymarket_watcher.storage.store import WatcherStore

WALLET = "0x1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def wallet_address() -> str:
    """Sample proxy wallet address for testing."""
    return WALLET


@pytest.fixture
def make_trade():
    """Factory for trade events with sensible defaults."""

    def _make(
        *,
        price: str = "0.50",
        size: str = "1000",
        wallet: str = WALLET,
        trade_id: str = "0xtrade1",
        side: Side | None = Side.BUY,
        event_type: EventType = EventType.TRADE,
        market_name: str = "Will it rain tomorrow?",
        timestamp: datetime | None = None,
    ) -> TradeEvent:
        return TradeEvent(
            event_type=event_type,
            timestamp=timestamp or datetime(2026, 1, 15, 12, 0, tzinfo=UTC),
            price=price,
            size=size,
            side=side,
            market_slug="will-it-rain",
            market_name=market_name,
            market_link="https://polymarket.com/event/will-it-rain",
            trade_id=trade_id,
            wallet_address=wallet,
            outcome="Yes",
            event_title="Weather",
        )

    return _make


@pytest.fixture
def make_profile():
    """Factory for analyzed wallet profiles."""

    def _make(
        bet_count: int = 2,
        level: FreshnessLevel = FreshnessLevel.INSIDER,
        *,
        address: str = WALLET,
        fresh_threshold: int = 20,
    ) -> WalletProfile:
        return WalletProfile(
            address=address,
            bet_count=bet_count,
            freshness_level=level,
            is_fresh=level != FreshnessLevel.NONE,
            analyzed_at=datetime(2026, 1, 15, 12, 0, tzinfo=UTC),
            fresh_threshold=fresh_threshold,
            join_date="Jan 2026",
        )

    return _make


@pytest.fixture
async def db_manager(tmp_path):
    """File-backed SQLite database with the schema created."""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path}/watcher.db")
    await manager.init_schema_async()
    yield manager
    await manager.dispose_async()


@pytest.fixture
async def store(db_manager: DatabaseManager) -> WatcherStore:
    return WatcherStore(db_manager)


@pytest.fixture
def big_notional() -> Decimal:
    return Decimal("20000")
