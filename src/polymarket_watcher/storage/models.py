"""SQLAlchemy models for persistent storage.

This module defines the database schema for admitted market events,
tracked wallets, runtime settings and the notification ledger.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TradeEventModel(Base):
    """Admitted market events.

    Price and size keep the feed's text form; notional value is computed
    on read. Enrichment columns are NULL until the wallet has been scored.
    """

    __tablename__ = "polymarket_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    asset_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    market_slug: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    market_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    market_image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    market_link: Mapped[str] = mapped_column(Text, nullable=False, default="")

    price: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    size: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    side: Mapped[str | None] = mapped_column(String(4), nullable=True)
    best_bid: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    best_ask: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    trade_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    wallet_address: Mapped[str] = mapped_column(String(42), nullable=False, default="")
    outcome: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    outcome_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    event_slug: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    event_title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    trader_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    condition_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    is_fresh_wallet: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    wallet_bet_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    wallet_join_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    freshness_level: Mapped[str | None] = mapped_column(String(16), nullable=True)
    risk_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    risk_signals_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    fresh_wallet_signal_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        Index("idx_polymarket_events_timestamp", "timestamp"),
        Index("idx_polymarket_events_wallet", "wallet_address"),
        Index("idx_polymarket_events_type", "event_type"),
        Index("idx_polymarket_events_fresh", "is_fresh_wallet"),
    )


class WalletModel(Base):
    """Wallets seen on admitted events, with their last analysis."""

    __tablename__ = "polymarket_wallets"

    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    bet_count: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    join_date: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    freshness_level: Mapped[str] = mapped_column(String(16), nullable=False, default="none")
    is_fresh: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fresh_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    first_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    last_analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_attempted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_polymarket_wallets_bet_count", "bet_count"),
        Index("idx_polymarket_wallets_is_fresh", "is_fresh"),
        Index("idx_polymarket_wallets_last_analyzed", "last_analyzed_at"),
        Index("idx_polymarket_wallets_last_attempted", "last_attempted_at"),
    )


class SettingModel(Base):
    """Key-value store for runtime configuration blobs."""

    __tablename__ = "polymarket_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )


class NotifiedItemModel(Base):
    """Append-only ledger of items that have already been notified."""

    __tablename__ = "notified_items"

    item_type: Mapped[str] = mapped_column(String(32), primary_key=True)
    item_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    notified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
