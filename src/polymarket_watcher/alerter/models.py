"""Data models for the alerter module."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, SecretStr


class NotificationChannelType(str, Enum):
    """Supported delivery channels."""

    TELEGRAM = "telegram"


class NotificationEventType(str, Enum):
    """Kinds of notification, also used as dedup ledger item types."""

    BIG_TRADE = "big_trade"
    FRESH_WALLET = "fresh_wallet"
    TEST = "test"


class NotificationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationConfig(BaseModel):
    """User-editable notification settings, persisted as JSON."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    channel: NotificationChannelType = NotificationChannelType.TELEGRAM
    telegram_bot_token: SecretStr | None = None
    telegram_chat_ids: tuple[str, ...] = ()
    notify_big_trades: bool = False
    notify_fresh_wallets: bool = False
    big_trade_min_notional: Decimal = Decimal(0)

    @property
    def recipients(self) -> tuple[str, ...]:
        return tuple(c.strip() for c in self.telegram_chat_ids if c.strip())

    @property
    def bot_token(self) -> str:
        return self.telegram_bot_token.get_secret_value() if self.telegram_bot_token else ""

    @property
    def is_configured(self) -> bool:
        """True when notifications are enabled and the channel has credentials."""
        if not self.enabled:
            return False
        if self.channel == NotificationChannelType.TELEGRAM:
            return bool(self.bot_token) and bool(self.recipients)
        return False

    def to_storage_json(self) -> str:
        """Serialize with the bot token in clear text for the settings table."""
        data = self.model_dump(mode="json")
        data["telegram_bot_token"] = self.bot_token or None
        return json.dumps(data)


@dataclass(frozen=True)
class NotificationContent:
    """A rendered notification ready for delivery."""

    event_type: NotificationEventType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)
