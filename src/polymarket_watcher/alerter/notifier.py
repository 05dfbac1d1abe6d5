"""Notification orchestration.

The NotificationService listens for qualifying events and fresh-wallet
detections, applies the notification policy, deduplicates through the
persisted ledger and delivers in background tasks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from polymarket_watcher.alerter.channels import MessagingChannel, NotificationError, build_channel
from polymarket_watcher.alerter.formatter import NotificationFormatter
from polymarket_watcher.alerter.models import (
    NotificationConfig,
    NotificationContent,
    NotificationEventType,
)
from polymarket_watcher.events import (
    TOPIC_FRESH_WALLET_DETECTED,
    TOPIC_QUALIFYING_EVENT,
    BusMessage,
    EventBus,
    FreshWalletDetected,
    QualifyingEvent,
)

if TYPE_CHECKING:
    from polymarket_watcher.ingestor.models import TradeEvent
    from polymarket_watcher.storage.store import WatcherStore

logger = logging.getLogger(__name__)

DEFAULT_DELIVERY_TIMEOUT_SECONDS = 10.0

ChannelFactory = Callable[[NotificationConfig], MessagingChannel]


def big_trade_key(event: TradeEvent) -> str:
    """Dedup key for a big-trade alert: the trade id, else wallet plus timestamp."""
    if event.trade_id:
        return event.trade_id
    return f"{event.wallet_address}_{event.timestamp.isoformat()}"


@dataclass
class NotificationStats:
    """Counters for the notification service."""

    sent: int = 0
    failed: int = 0
    deduplicated: int = 0
    ledger_errors: int = 0


class NotificationService:
    """Deduplicated alert delivery driven by the event bus.

    Bus handlers only read the current config and schedule a delivery task,
    so publishers are never blocked on I/O. Each task claims its ledger
    entry before sending: an item is recorded as notified even if delivery
    then fails, so it is never sent twice.

    Example:
        ```python
        service = NotificationService(store, bus)
        await service.load_config()
        service.start()
        ...
        await service.aclose()
        ```
    """

    def __init__(
        self,
        store: WatcherStore,
        bus: EventBus,
        *,
        default_config: NotificationConfig | None = None,
        channel_factory: ChannelFactory = build_channel,
        formatter: NotificationFormatter | None = None,
        delivery_timeout: float = DEFAULT_DELIVERY_TIMEOUT_SECONDS,
        dry_run: bool = False,
    ) -> None:
        self._store = store
        self._bus = bus
        self._channel_factory = channel_factory
        self._formatter = formatter or NotificationFormatter()
        self._timeout = delivery_timeout
        self._dry_run = dry_run

        self._config = default_config or NotificationConfig()
        self._channel: MessagingChannel | None = self._build_channel(self._config)
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()
        self._subscribed = False
        self._stats = NotificationStats()

    @property
    def stats(self) -> NotificationStats:
        return self._stats

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def get_config(self) -> NotificationConfig:
        return self._config

    def is_configured(self) -> bool:
        return self._config.is_configured

    async def load_config(self) -> NotificationConfig:
        """Replace the in-memory config with the persisted one, if any."""
        try:
            persisted = await self._store.load_notification_config()
        except Exception as e:
            logger.warning("Failed to load notification config, keeping defaults: %s", e)
            return self._config
        if persisted is not None:
            await self._swap(persisted)
        return self._config

    async def update_config(self, config: NotificationConfig) -> None:
        """Persist and apply a new notification config.

        Raises:
            Exception: Whatever the store raises; the old config stays active.
        """
        await self._store.save_notification_config(config)
        await self._swap(config)
        logger.info(
            "Notification config updated: enabled=%s big_trades=%s fresh_wallets=%s",
            config.enabled,
            config.notify_big_trades,
            config.notify_fresh_wallets,
        )

    async def send_test_notification(self) -> None:
        """Send a test message through the configured channel.

        Raises:
            NotificationError: If notifications are disabled, not configured,
                or delivery fails.
        """
        config, channel = self._config, self._channel
        if not config.enabled:
            raise NotificationError("Notifications are not enabled")
        if not config.is_configured or channel is None:
            raise NotificationError(
                "Telegram is not configured. Provide a bot token and at least one chat ID."
            )
        content = self._formatter.test()
        try:
            await asyncio.wait_for(channel.send(config.recipients, content.message), timeout=self._timeout)
        except TimeoutError as e:
            raise NotificationError("Test notification timed out", cause=e) from e

    def start(self) -> None:
        if self._subscribed:
            return
        self._bus.subscribe(TOPIC_QUALIFYING_EVENT, self._on_qualifying_event)
        self._bus.subscribe(TOPIC_FRESH_WALLET_DETECTED, self._on_fresh_wallet)
        self._subscribed = True
        logger.info("Notification service started")

    def stop(self) -> None:
        """Unsubscribe. In-flight deliveries are left to finish on their own."""
        if not self._subscribed:
            return
        self._bus.unsubscribe(TOPIC_QUALIFYING_EVENT, self._on_qualifying_event)
        self._bus.unsubscribe(TOPIC_FRESH_WALLET_DETECTED, self._on_fresh_wallet)
        self._subscribed = False
        logger.info("Notification service stopped (%d deliveries in flight)", len(self._pending))

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding deliveries."""
        if self._pending:
            await asyncio.wait(set(self._pending), timeout=timeout)

    async def aclose(self) -> None:
        self.stop()
        if self._channel is not None:
            await self._channel.aclose()
            self._channel = None

    # ------------------------------------------------------------------
    # Bus handlers
    # ------------------------------------------------------------------

    def _on_qualifying_event(self, message: BusMessage) -> None:
        if not isinstance(message, QualifyingEvent):
            return
        config = self._config
        if not (config.enabled and config.notify_big_trades):
            return
        event = message.event
        if config.big_trade_min_notional > 0 and event.notional_value < config.big_trade_min_notional:
            return
        self._schedule(
            NotificationEventType.BIG_TRADE,
            big_trade_key(event),
            self._formatter.big_trade(event),
        )

    def _on_fresh_wallet(self, message: BusMessage) -> None:
        if not isinstance(message, FreshWalletDetected):
            return
        config = self._config
        if not (config.enabled and config.notify_fresh_wallets):
            return
        profile = message.profile
        self._schedule(
            NotificationEventType.FRESH_WALLET,
            profile.address,
            self._formatter.fresh_wallet(profile),
        )

    def _schedule(
        self,
        item_type: NotificationEventType,
        item_id: str,
        content: NotificationContent,
    ) -> None:
        task = asyncio.create_task(self._deliver(item_type, item_id, content))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(
        self,
        item_type: NotificationEventType,
        item_id: str,
        content: NotificationContent,
    ) -> None:
        try:
            if await self._store.has_notified(item_type.value, item_id):
                self._stats.deduplicated += 1
                return
            if not await self._store.mark_notified(item_type.value, item_id):
                self._stats.deduplicated += 1
                return
        except Exception as e:
            self._stats.ledger_errors += 1
            logger.error("Notification ledger error for %s %s: %s", item_type.value, item_id, e)
            return

        config, channel = self._config, self._channel
        if self._dry_run:
            logger.info("[DRY RUN] Would send %s notification for %s", item_type.value, item_id)
            return
        if channel is None or not config.is_configured:
            logger.warning("Skipping %s notification for %s: channel not configured", item_type.value, item_id)
            return

        try:
            await asyncio.wait_for(channel.send(config.recipients, content.message), timeout=self._timeout)
        except (NotificationError, TimeoutError) as e:
            self._stats.failed += 1
            logger.error("Failed to send %s notification for %s: %s", item_type.value, item_id, e)
            return
        except Exception as e:
            self._stats.failed += 1
            logger.exception("Unexpected error sending %s notification for %s: %s", item_type.value, item_id, e)
            return

        self._stats.sent += 1
        logger.info("Sent %s notification for %s", item_type.value, item_id)

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def _build_channel(self, config: NotificationConfig) -> MessagingChannel | None:
        if not config.bot_token:
            return None
        try:
            return self._channel_factory(config)
        except NotificationError as e:
            logger.warning("Notification channel unavailable: %s", e)
            return None

    async def _swap(self, config: NotificationConfig) -> None:
        new_channel = self._build_channel(config)
        async with self._lock:
            old_channel = self._channel
            self._config = config
            self._channel = new_channel
        if old_channel is not None and old_channel is not new_channel:
            await old_channel.aclose()
