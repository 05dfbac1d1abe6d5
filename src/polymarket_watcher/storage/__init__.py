"""Storage layer - Database schemas, repositories and the store facade."""

from polymarket_watcher.storage.database import (
    DatabaseManager,
    create_async_db_engine,
    create_async_session_factory,
    init_async_db,
)
from polymarket_watcher.storage.models import (
    Base,
    NotifiedItemModel,
    SettingModel,
    TradeEventModel,
    WalletModel,
)
from polymarket_watcher.storage.repos import (
    NotificationLedgerRepository,
    SettingsRepository,
    TradeEventRepository,
    WalletRepository,
)
from polymarket_watcher.storage.store import DatabaseInfo, WatcherStore

__all__ = [
    "Base",
    "DatabaseInfo",
    "DatabaseManager",
    "NotificationLedgerRepository",
    "NotifiedItemModel",
    "SettingModel",
    "SettingsRepository",
    "TradeEventModel",
    "TradeEventRepository",
    "WalletModel",
    "WalletRepository",
    "WatcherStore",
    "create_async_db_engine",
    "create_async_session_factory",
    "init_async_db",
]
