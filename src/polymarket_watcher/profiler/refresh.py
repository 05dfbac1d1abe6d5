"""Background wallet refresh worker.

Keeps wallet profiles warm by re-analyzing queued and low-activity
wallets on a fixed interval, one external lookup at a time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from polymarket_watcher.events import EventBus, FreshWalletDetected
from polymarket_watcher.profiler.analyzer import WalletAnalyzer, short_address
from polymarket_watcher.profiler.stats_client import ProfileStatsError
from polymarket_watcher.storage.repos import DEFAULT_REFRESH_MAX_BET_COUNT

if TYPE_CHECKING:
    from polymarket_watcher.storage.store import WatcherStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 10.0
DEFAULT_REFRESH_BATCH_SIZE = 10
DEFAULT_CALL_DELAY_SECONDS = 0.5


@dataclass
class RefreshStats:
    """Counters for the refresh worker."""

    batches: int = 0
    refreshed: int = 0
    failed: int = 0
    fresh_wallets_found: int = 0
    last_batch_at: datetime | None = None


class WalletRefreshWorker:
    """Periodically forces fresh lookups for wallets that need them.

    Each tick takes up to ``batch_size`` addresses from the store (queued
    wallets first, then the stalest low-activity ones) and refreshes them
    sequentially with ``call_delay`` between calls. A fresh result is
    published as ``FreshWalletDetected`` once per refresh; deduplication is
    left to subscribers.
    """

    def __init__(
        self,
        store: WatcherStore,
        analyzer: WalletAnalyzer,
        bus: EventBus,
        *,
        interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        batch_size: int = DEFAULT_REFRESH_BATCH_SIZE,
        call_delay_seconds: float = DEFAULT_CALL_DELAY_SECONDS,
        max_bet_count: int = DEFAULT_REFRESH_MAX_BET_COUNT,
    ) -> None:
        self._store = store
        self._analyzer = analyzer
        self._bus = bus
        self._interval = interval_seconds
        self._batch_size = batch_size
        self._call_delay = call_delay_seconds
        self._max_bet_count = max_bet_count
        self._stats = RefreshStats()

    @property
    def stats(self) -> RefreshStats:
        return self._stats

    async def run(self, stop_event: asyncio.Event) -> None:
        """Tick every ``interval_seconds`` until ``stop_event`` is set."""
        logger.info(
            "Wallet refresh worker started (interval=%.1fs, batch=%d)",
            self._interval,
            self._batch_size,
        )
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                break
            except TimeoutError:
                pass

            try:
                await self.process_batch(stop_event)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Wallet refresh tick failed: %s", e)
        logger.info("Wallet refresh worker stopped")

    async def process_batch(self, stop_event: asyncio.Event | None = None) -> int:
        """Refresh one batch of wallets. Returns the number refreshed."""
        try:
            addresses = await self._store.get_wallets_for_refresh(
                self._batch_size, max_bet_count=self._max_bet_count
            )
        except Exception as e:
            logger.warning("Failed to load wallets for refresh: %s", e)
            return 0

        self._stats.batches += 1
        self._stats.last_batch_at = datetime.now(UTC)
        if not addresses:
            return 0

        refreshed = 0
        for i, address in enumerate(addresses):
            if stop_event is not None and stop_event.is_set():
                break
            if i > 0 and await self._pause(stop_event):
                break

            try:
                profile = await self._analyzer.refresh(address)
            except ProfileStatsError as e:
                self._stats.failed += 1
                logger.debug("Refresh failed for %s: %s", short_address(address), e)
                await self._record_attempt(address)
                continue
            except Exception as e:
                self._stats.failed += 1
                logger.warning("Unexpected error refreshing %s: %s", short_address(address), e)
                await self._record_attempt(address)
                continue

            refreshed += 1
            self._stats.refreshed += 1
            if profile.is_fresh:
                self._stats.fresh_wallets_found += 1
                logger.info(
                    "Fresh wallet detected: %s (%s, %d bets)",
                    short_address(profile.address),
                    profile.freshness_level.value,
                    profile.bet_count,
                )
                self._bus.publish(FreshWalletDetected(profile=profile))

        logger.debug("Refreshed %d/%d wallets", refreshed, len(addresses))
        return refreshed

    async def _record_attempt(self, address: str) -> None:
        """Push a failed wallet behind the rest of the refresh queue."""
        try:
            await self._store.record_refresh_attempt(address)
        except Exception as e:
            logger.warning("Failed to record refresh attempt for %s: %s", short_address(address), e)

    async def _pause(self, stop_event: asyncio.Event | None) -> bool:
        """Sleep between calls. Returns True if a stop was requested meanwhile."""
        if self._call_delay <= 0:
            return stop_event is not None and stop_event.is_set()
        if stop_event is None:
            await asyncio.sleep(self._call_delay)
            return False
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=self._call_delay)
            return True
        except TimeoutError:
            return False
