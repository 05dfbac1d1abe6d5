"""Repository pattern implementations for data access.

This module provides data access abstractions for admitted events, tracked
wallets, runtime settings and the notification ledger. Each repository
works on a caller-supplied session; the caller owns the transaction.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import and_, case, delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from polymarket_watcher.detector.models import FreshWalletSignal
from polymarket_watcher.ingestor.admission import DEFAULT_QUERY_LIMIT, EventFilter
from polymarket_watcher.ingestor.models import EventType, Side, TradeEvent
from polymarket_watcher.profiler.models import (
    UNKNOWN_BET_COUNT,
    FreshnessLevel,
    WalletProfile,
)
from polymarket_watcher.storage.models import (
    NotifiedItemModel,
    SettingModel,
    TradeEventModel,
    WalletModel,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_MAX_BET_COUNT = 50


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _dialect_insert(session: AsyncSession, model: type[Any]) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise RuntimeError(f"Unsupported database dialect: {dialect}")


def _numeric(column: Any) -> Any:
    return sa.cast(func.nullif(column, ""), sa.Float)


class TradeEventRepository:
    """Repository for admitted market events."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, event: TradeEvent) -> int:
        """Insert an event and return its row id."""
        model = TradeEventModel(
            event_type=event.event_type.value,
            timestamp=event.timestamp,
            asset_id=event.asset_id,
            market_slug=event.market_slug,
            market_name=event.market_name,
            market_image=event.market_image,
            market_link=event.market_link,
            price=event.price,
            size=event.size,
            side=event.side.value if event.side else None,
            best_bid=event.best_bid,
            best_ask=event.best_ask,
            trade_id=event.trade_id,
            wallet_address=event.wallet_address,
            outcome=event.outcome,
            outcome_index=event.outcome_index,
            event_slug=event.event_slug,
            event_title=event.event_title,
            trader_name=event.trader_name,
            condition_id=event.condition_id,
        )
        if event.wallet_profile is not None:
            self._apply_enrichment(model, event.wallet_profile, event.fresh_wallet_signal)
        self.session.add(model)
        await self.session.flush()
        return model.id

    async def query(self, event_filter: EventFilter) -> list[TradeEvent]:
        """Return stored events matching the filter, newest first."""
        stmt = select(TradeEventModel)
        conditions = self._conditions(event_filter)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        limit = event_filter.limit or DEFAULT_QUERY_LIMIT
        stmt = (
            stmt.order_by(TradeEventModel.timestamp.desc(), TradeEventModel.id.desc())
            .limit(limit)
            .offset(event_filter.offset)
        )
        result = await self.session.execute(stmt)
        return [self.to_event(m) for m in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(TradeEventModel))
        return int(result.scalar_one())

    async def count_fresh(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(TradeEventModel)
            .where(TradeEventModel.is_fresh_wallet.is_(True))
        )
        return int(result.scalar_one())

    async def list_unenriched(self, wallet_address: str, *, limit: int = 500) -> list[TradeEvent]:
        """Events of one wallet that have not been scored yet."""
        result = await self.session.execute(
            select(TradeEventModel)
            .where(
                TradeEventModel.wallet_address == wallet_address.lower(),
                TradeEventModel.wallet_bet_count.is_(None),
            )
            .order_by(TradeEventModel.id.asc())
            .limit(limit)
        )
        return [self.to_event(m) for m in result.scalars().all()]

    async def update_enrichment(
        self,
        event_id: int,
        profile: WalletProfile,
        signal: FreshWalletSignal | None,
    ) -> bool:
        """Back-fill enrichment columns; a row is enriched at most once."""
        values = self._enrichment_values(profile, signal)
        result = await self.session.execute(
            update(TradeEventModel)
            .where(TradeEventModel.id == event_id, TradeEventModel.wallet_bet_count.is_(None))
            .values(**values)
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def delete_all(self) -> int:
        result = await self.session.execute(delete(TradeEventModel))
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    @staticmethod
    def _conditions(event_filter: EventFilter) -> list[Any]:
        conditions: list[Any] = []
        if event_filter.event_types:
            conditions.append(
                TradeEventModel.event_type.in_([t.value for t in event_filter.event_types])
            )
        if event_filter.market_name:
            pattern = f"%{event_filter.market_name}%"
            conditions.append(
                or_(
                    TradeEventModel.market_name.ilike(pattern),
                    TradeEventModel.event_title.ilike(pattern),
                )
            )
        if event_filter.min_price > 0:
            conditions.append(_numeric(TradeEventModel.price) >= float(event_filter.min_price))
        if event_filter.max_price > 0:
            conditions.append(_numeric(TradeEventModel.price) <= float(event_filter.max_price))
        if event_filter.side is not None:
            conditions.append(TradeEventModel.side == event_filter.side.value)
        if event_filter.min_size > 0:
            notional = _numeric(TradeEventModel.price) * _numeric(TradeEventModel.size)
            conditions.append(notional >= float(event_filter.min_size))
        if event_filter.fresh_wallets_only:
            conditions.append(TradeEventModel.is_fresh_wallet.is_(True))
        if event_filter.min_risk_score > 0:
            conditions.append(TradeEventModel.risk_score >= event_filter.min_risk_score)
        if event_filter.max_wallet_bet_count > 0:
            conditions.append(TradeEventModel.wallet_bet_count >= 0)
            conditions.append(TradeEventModel.wallet_bet_count <= event_filter.max_wallet_bet_count)
        return conditions

    @staticmethod
    def _enrichment_values(
        profile: WalletProfile,
        signal: FreshWalletSignal | None,
    ) -> dict[str, Any]:
        return {
            "is_fresh_wallet": profile.is_fresh,
            "wallet_bet_count": profile.bet_count,
            "wallet_join_date": profile.join_date,
            "freshness_level": profile.freshness_level.value,
            "risk_score": signal.confidence if signal else 0.0,
            "risk_signals_json": json.dumps(list(signal.risk_signals)) if signal else None,
            "fresh_wallet_signal_json": json.dumps(signal.to_dict()) if signal else None,
        }

    def _apply_enrichment(
        self,
        model: TradeEventModel,
        profile: WalletProfile,
        signal: FreshWalletSignal | None,
    ) -> None:
        for key, value in self._enrichment_values(profile, signal).items():
            setattr(model, key, value)

    @staticmethod
    def to_event(model: TradeEventModel) -> TradeEvent:
        timestamp = _as_utc(model.timestamp) or datetime.now(UTC)
        profile = None
        if model.wallet_bet_count is not None:
            level = FreshnessLevel(model.freshness_level or FreshnessLevel.NONE.value)
            profile = WalletProfile(
                address=model.wallet_address,
                bet_count=model.wallet_bet_count,
                freshness_level=level,
                is_fresh=model.is_fresh_wallet,
                analyzed_at=_as_utc(model.created_at) or timestamp,
                fresh_threshold=0,
                join_date=model.wallet_join_date or "",
            )
        signal = None
        if model.fresh_wallet_signal_json:
            signal = FreshWalletSignal.from_dict(json.loads(model.fresh_wallet_signal_json))
        return TradeEvent(
            id=model.id,
            event_type=EventType.parse(model.event_type),
            timestamp=timestamp,
            price=model.price,
            size=model.size,
            side=Side.parse(model.side),
            asset_id=model.asset_id,
            market_slug=model.market_slug,
            market_name=model.market_name,
            market_image=model.market_image,
            market_link=model.market_link,
            best_bid=model.best_bid,
            best_ask=model.best_ask,
            trade_id=model.trade_id,
            wallet_address=model.wallet_address,
            outcome=model.outcome,
            outcome_index=model.outcome_index,
            event_slug=model.event_slug,
            event_title=model.event_title,
            trader_name=model.trader_name,
            condition_id=model.condition_id,
            is_fresh_wallet=model.is_fresh_wallet,
            wallet_profile=profile,
            risk_score=model.risk_score,
            risk_signals=tuple(json.loads(model.risk_signals_json)) if model.risk_signals_json else (),
            fresh_wallet_signal=signal,
        )


class WalletRepository:
    """Repository for tracked wallets and their last analysis."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, address: str) -> WalletProfile | None:
        result = await self.session.execute(
            select(WalletModel).where(WalletModel.address == address.lower())
        )
        model = result.scalar_one_or_none()
        return self.to_profile(model) if model else None

    async def upsert(self, profile: WalletProfile) -> None:
        """Insert or update a wallet's analysis, keeping its first-seen time."""
        now = datetime.now(UTC)
        analyzed_at = profile.analyzed_at if profile.is_analyzed else None
        values = {
            "address": profile.address.lower(),
            "bet_count": profile.bet_count,
            "join_date": profile.join_date,
            "freshness_level": profile.freshness_level.value,
            "is_fresh": profile.is_fresh,
            "fresh_threshold": profile.fresh_threshold,
            "last_analyzed_at": analyzed_at,
            "last_attempted_at": analyzed_at,
        }
        stmt = _dialect_insert(self.session, WalletModel).values(
            **values, first_seen_at=profile.first_seen_at or now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["address"],
            set_={
                "bet_count": stmt.excluded.bet_count,
                "join_date": stmt.excluded.join_date,
                "freshness_level": stmt.excluded.freshness_level,
                "is_fresh": stmt.excluded.is_fresh,
                "fresh_threshold": stmt.excluded.fresh_threshold,
                "last_analyzed_at": stmt.excluded.last_analyzed_at,
                "last_attempted_at": stmt.excluded.last_attempted_at,
            },
        )
        await self.session.execute(stmt)

    async def insert_if_absent(self, address: str) -> bool:
        """Queue a wallet for analysis. Returns True if it was not known."""
        stmt = (
            _dialect_insert(self.session, WalletModel)
            .values(
                address=address.lower(),
                bet_count=UNKNOWN_BET_COUNT,
                join_date="",
                freshness_level=FreshnessLevel.NONE.value,
                is_fresh=False,
                fresh_threshold=0,
                first_seen_at=datetime.now(UTC),
            )
            .on_conflict_do_nothing(index_elements=["address"])
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def list_for_refresh(
        self,
        limit: int,
        *,
        max_bet_count: int = DEFAULT_REFRESH_MAX_BET_COUNT,
    ) -> list[str]:
        """Addresses due for re-analysis.

        Unanalyzed wallets come first, then analyzed wallets still under
        the bet-count ceiling. Within each group the least recently
        attempted go first, so wallets whose lookups keep failing rotate
        behind the rest of their group.
        """
        bet_count = WalletModel.bet_count
        last_attempt = func.coalesce(WalletModel.last_attempted_at, WalletModel.last_analyzed_at)
        stmt = (
            select(WalletModel.address)
            .where(
                or_(
                    bet_count == UNKNOWN_BET_COUNT,
                    and_(bet_count >= 0, bet_count <= max_bet_count),
                )
            )
            .order_by(
                case((bet_count == UNKNOWN_BET_COUNT, 0), else_=1),
                last_attempt.asc().nulls_first(),
                WalletModel.first_seen_at.asc(),
            )
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def record_attempt(self, address: str) -> None:
        """Stamp a lookup attempt that produced no analysis."""
        await self.session.execute(
            update(WalletModel)
            .where(WalletModel.address == address.lower())
            .values(last_attempted_at=datetime.now(UTC))
        )

    async def list_all(self, *, limit: int = 100) -> list[WalletProfile]:
        result = await self.session.execute(
            select(WalletModel).order_by(WalletModel.first_seen_at.desc()).limit(limit)
        )
        return [self.to_profile(m) for m in result.scalars().all()]

    async def list_fresh(self, *, limit: int = 100) -> list[WalletProfile]:
        result = await self.session.execute(
            select(WalletModel)
            .where(WalletModel.is_fresh.is_(True))
            .order_by(WalletModel.bet_count.asc(), WalletModel.last_analyzed_at.desc())
            .limit(limit)
        )
        return [self.to_profile(m) for m in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(WalletModel))
        return int(result.scalar_one())

    async def delete_all(self) -> int:
        result = await self.session.execute(delete(WalletModel))
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    @staticmethod
    def to_profile(model: WalletModel) -> WalletProfile:
        first_seen = _as_utc(model.first_seen_at)
        return WalletProfile(
            address=model.address,
            bet_count=model.bet_count,
            freshness_level=FreshnessLevel(model.freshness_level),
            is_fresh=model.is_fresh,
            analyzed_at=_as_utc(model.last_analyzed_at) or first_seen or datetime.now(UTC),
            fresh_threshold=model.fresh_threshold,
            join_date=model.join_date,
            first_seen_at=first_seen,
        )


class SettingsRepository:
    """Key-value repository for runtime configuration blobs."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str) -> str | None:
        result = await self.session.execute(select(SettingModel.value).where(SettingModel.key == key))
        return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        now = datetime.now(UTC)
        stmt = _dialect_insert(self.session, SettingModel).values(key=key, value=value, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"value": stmt.excluded.value, "updated_at": now},
        )
        await self.session.execute(stmt)


class NotificationLedgerRepository:
    """Append-only ledger of notified items."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, item_type: str, item_id: str) -> bool:
        result = await self.session.execute(
            select(NotifiedItemModel.item_id).where(
                NotifiedItemModel.item_type == item_type,
                NotifiedItemModel.item_id == item_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def claim(self, item_type: str, item_id: str) -> bool:
        """Record an item as notified. Returns False if it already was."""
        stmt = (
            _dialect_insert(self.session, NotifiedItemModel)
            .values(item_type=item_type, item_id=item_id, notified_at=datetime.now(UTC))
            .on_conflict_do_nothing(index_elements=["item_type", "item_id"])
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]
