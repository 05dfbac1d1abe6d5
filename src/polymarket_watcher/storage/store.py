"""Persisted store used by the watcher core.

``WatcherStore`` wraps the repositories behind one object. Every method
runs in its own session, so concurrent callers never share a transaction.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from polymarket_watcher.alerter.models import NotificationConfig
from polymarket_watcher.detector.models import FreshWalletSignal
from polymarket_watcher.ingestor.admission import EventFilter
from polymarket_watcher.ingestor.models import TradeEvent
from polymarket_watcher.profiler.models import WalletProfile, WatcherConfig
from polymarket_watcher.storage.database import DatabaseManager, sqlite_database_path
from polymarket_watcher.storage.repos import (
    DEFAULT_REFRESH_MAX_BET_COUNT,
    NotificationLedgerRepository,
    SettingsRepository,
    TradeEventRepository,
    WalletRepository,
)

logger = logging.getLogger(__name__)

CONFIG_KEY = "config"
FILTER_KEY = "filter"
NOTIFICATION_CONFIG_KEY = "notification_config"


@dataclass(frozen=True)
class DatabaseInfo:
    """Summary of the backing database."""

    backend: str
    event_count: int
    fresh_event_count: int
    wallet_count: int
    path: str | None = None
    size_bytes: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "event_count": self.event_count,
            "fresh_event_count": self.fresh_event_count,
            "wallet_count": self.wallet_count,
            "path": self.path,
            "size_bytes": self.size_bytes,
        }


class WatcherStore:
    """Store facade over events, wallets, settings and the notification ledger."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    @property
    def database(self) -> DatabaseManager:
        return self._db

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def save_event(self, event: TradeEvent) -> int:
        async with self._db.get_async_session() as session:
            return await TradeEventRepository(session).insert(event)

    async def get_events(self, event_filter: EventFilter) -> list[TradeEvent]:
        async with self._db.get_async_session() as session:
            return await TradeEventRepository(session).query(event_filter)

    async def update_event_enrichment(
        self,
        event_id: int,
        profile: WalletProfile,
        signal: FreshWalletSignal | None,
    ) -> bool:
        async with self._db.get_async_session() as session:
            return await TradeEventRepository(session).update_enrichment(event_id, profile, signal)

    async def list_unenriched_events(self, wallet_address: str) -> list[TradeEvent]:
        async with self._db.get_async_session() as session:
            return await TradeEventRepository(session).list_unenriched(wallet_address)

    async def count_events(self) -> int:
        async with self._db.get_async_session() as session:
            return await TradeEventRepository(session).count()

    async def count_fresh_events(self) -> int:
        async with self._db.get_async_session() as session:
            return await TradeEventRepository(session).count_fresh()

    async def clear_events(self) -> int:
        """Delete all events and wallets. The notification ledger is kept."""
        async with self._db.get_async_session() as session:
            deleted = await TradeEventRepository(session).delete_all()
            await WalletRepository(session).delete_all()
        logger.info("Cleared %d stored events and all tracked wallets", deleted)
        return deleted

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def save_wallet(self, profile: WalletProfile) -> None:
        async with self._db.get_async_session() as session:
            await WalletRepository(session).upsert(profile)

    async def get_wallet(self, address: str) -> WalletProfile | None:
        async with self._db.get_async_session() as session:
            return await WalletRepository(session).get(address)

    async def save_wallet_address(self, address: str) -> bool:
        async with self._db.get_async_session() as session:
            return await WalletRepository(session).insert_if_absent(address)

    async def get_wallets_for_refresh(
        self,
        limit: int,
        *,
        max_bet_count: int = DEFAULT_REFRESH_MAX_BET_COUNT,
    ) -> list[str]:
        async with self._db.get_async_session() as session:
            return await WalletRepository(session).list_for_refresh(limit, max_bet_count=max_bet_count)

    async def record_refresh_attempt(self, address: str) -> None:
        async with self._db.get_async_session() as session:
            await WalletRepository(session).record_attempt(address)

    async def get_all_wallets(self, *, limit: int = 100) -> list[WalletProfile]:
        async with self._db.get_async_session() as session:
            return await WalletRepository(session).list_all(limit=limit)

    async def get_fresh_wallets(self, *, limit: int = 100) -> list[WalletProfile]:
        async with self._db.get_async_session() as session:
            return await WalletRepository(session).list_fresh(limit=limit)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def save_setting(self, key: str, value: str) -> None:
        async with self._db.get_async_session() as session:
            await SettingsRepository(session).set(key, value)

    async def load_setting(self, key: str) -> str | None:
        async with self._db.get_async_session() as session:
            return await SettingsRepository(session).get(key)

    async def save_config(self, config: WatcherConfig) -> None:
        await self.save_setting(CONFIG_KEY, config.model_dump_json())

    async def load_config(self) -> WatcherConfig | None:
        return await self._load_model(CONFIG_KEY, WatcherConfig)

    async def save_filter(self, event_filter: EventFilter) -> None:
        await self.save_setting(FILTER_KEY, event_filter.model_dump_json())

    async def load_filter(self) -> EventFilter | None:
        return await self._load_model(FILTER_KEY, EventFilter)

    async def save_notification_config(self, config: NotificationConfig) -> None:
        await self.save_setting(NOTIFICATION_CONFIG_KEY, config.to_storage_json())

    async def load_notification_config(self) -> NotificationConfig | None:
        return await self._load_model(NOTIFICATION_CONFIG_KEY, NotificationConfig)

    async def _load_model(self, key: str, model: type[Any]) -> Any:
        raw = await self.load_setting(key)
        if raw is None:
            return None
        try:
            parsed: BaseModel = model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring unreadable %r setting: %s", key, e)
            return None
        return parsed

    # ------------------------------------------------------------------
    # Notification ledger
    # ------------------------------------------------------------------

    async def has_notified(self, item_type: str, item_id: str) -> bool:
        async with self._db.get_async_session() as session:
            return await NotificationLedgerRepository(session).exists(item_type, item_id)

    async def mark_notified(self, item_type: str, item_id: str) -> bool:
        """Claim an item for notification. Returns False if already claimed."""
        async with self._db.get_async_session() as session:
            return await NotificationLedgerRepository(session).claim(item_type, item_id)

    # ------------------------------------------------------------------
    # Info
    # ------------------------------------------------------------------

    async def get_database_info(self) -> DatabaseInfo:
        async with self._db.get_async_session() as session:
            events = TradeEventRepository(session)
            event_count = await events.count()
            fresh_count = await events.count_fresh()
            wallet_count = await WalletRepository(session).count()

        path = sqlite_database_path(self._db.database_url)
        size = os.path.getsize(path) if path and os.path.exists(path) else None
        return DatabaseInfo(
            backend=self._db.dialect_name,
            event_count=event_count,
            fresh_event_count=fresh_count,
            wallet_count=wallet_count,
            path=path,
            size_bytes=size,
        )
