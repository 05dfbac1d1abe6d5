"""Main pipeline orchestrator for the Polymarket Fresh Wallet Watcher.

This module provides the Pipeline class that wires together admission,
wallet analysis, the background refresh worker and notifications, and
owns the runtime configuration they share.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from polymarket_watcher.alerter.channels import build_channel
from polymarket_watcher.alerter.notifier import ChannelFactory, NotificationService
from polymarket_watcher.config import Settings, get_settings
from polymarket_watcher.detector.fresh_wallet import FreshWalletDetector
from polymarket_watcher.events import (
    TOPIC_FRESH_WALLET_DETECTED,
    BusMessage,
    EventBus,
    FreshWalletDetected,
    QualifyingEvent,
)
from polymarket_watcher.ingestor.admission import EventFilter, should_admit
from polymarket_watcher.ingestor.models import EventType
from polymarket_watcher.profiler.analyzer import WalletAnalyzer, short_address
from polymarket_watcher.profiler.cache import WalletProfileCache
from polymarket_watcher.profiler.models import FreshnessThresholds, WalletProfile, WatcherConfig
from polymarket_watcher.profiler.refresh import WalletRefreshWorker
from polymarket_watcher.profiler.stats_client import ProfileStatsClient
from polymarket_watcher.storage.database import DatabaseManager
from polymarket_watcher.storage.store import DatabaseInfo, WatcherStore

if TYPE_CHECKING:
    from polymarket_watcher.ingestor.models import TradeEvent

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Pipeline lifecycle states."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass
class PipelineStats:
    """Statistics for the pipeline."""

    started_at: datetime | None = None
    events_received: int = 0
    trades_received: int = 0
    events_admitted: int = 0
    events_persisted: int = 0
    events_enriched: int = 0
    fresh_wallets_found: int = 0
    errors: int = 0
    last_event_time: datetime | None = None
    last_error: str | None = None


class Pipeline:
    """Main pipeline orchestrator for the Polymarket Fresh Wallet Watcher.

    Pipeline flow:
        Feed event → Admission filter → Store + QualifyingEvent → Notifications
        Queued wallets → Refresh worker → Analyzer → FreshWalletDetected → Notifications

    The watcher config and save filter are immutable objects swapped under a
    lock; readers take the current reference and never wait on writers.

    Example:
        ```python
        from polymarket_watcher.config import get_settings
        from polymarket_watcher.pipeline import Pipeline

        pipeline = Pipeline(get_settings())
        await pipeline.start()
        await pipeline.on_event(TradeEvent.from_feed_message(payload))
        await pipeline.stop()
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: WatcherStore | None = None,
        stats_client: ProfileStatsClient | None = None,
        channel_factory: ChannelFactory | None = None,
        dry_run: bool | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Application settings. If not provided, uses get_settings().
            store: Store to use instead of one built from settings.database.
            stats_client: Wallet statistics client to use instead of building one.
            channel_factory: Builds the notification channel from its config.
            dry_run: If True, skip sending notifications. Overrides settings.dry_run.
        """
        self._settings = settings or get_settings()
        self._dry_run = dry_run if dry_run is not None else self._settings.dry_run

        self._state = PipelineState.STOPPED
        self._stats = PipelineStats()

        self._external_store = store
        self._external_stats_client = stats_client
        self._channel_factory = channel_factory

        self._config = WatcherConfig()
        self._save_filter = EventFilter.default_save_filter()
        self._config_lock = asyncio.Lock()

        self._bus = EventBus()

        # Components (initialized in start())
        self._db_manager: DatabaseManager | None = None
        self._store: WatcherStore | None = None
        self._stats_client: ProfileStatsClient | None = None
        self._analyzer: WalletAnalyzer | None = None
        self._detector: FreshWalletDetector | None = None
        self._refresh_worker: WalletRefreshWorker | None = None
        self._notifications: NotificationService | None = None

        # Synchronization
        self._stop_event: asyncio.Event | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> PipelineState:
        """Current pipeline state."""
        return self._state

    @property
    def stats(self) -> PipelineStats:
        """Current pipeline statistics."""
        return self._stats

    @property
    def is_running(self) -> bool:
        """Check if pipeline is running."""
        return self._state == PipelineState.RUNNING

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def notifications(self) -> NotificationService | None:
        return self._notifications

    @property
    def refresh_worker(self) -> WalletRefreshWorker | None:
        return self._refresh_worker

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the pipeline.

        Raises:
            RuntimeError: If pipeline is already running.
            Exception: If any component fails to initialize.
        """
        if self._state != PipelineState.STOPPED:
            raise RuntimeError(f"Cannot start pipeline in state {self._state}")

        self._state = PipelineState.STARTING
        self._stop_event = asyncio.Event()
        logger.info("Starting pipeline...")

        try:
            await self._initialize_components()
            await self._start_background_services()
            self._stats.started_at = datetime.now(UTC)
            self._state = PipelineState.RUNNING
            logger.info("Pipeline started successfully")
        except Exception as e:
            self._state = PipelineState.ERROR
            self._stats.last_error = str(e)
            logger.error("Failed to start pipeline: %s", e)
            await self._cleanup()
            self._state = PipelineState.STOPPED
            raise

    async def stop(self) -> None:
        """Stop the pipeline gracefully."""
        if self._state == PipelineState.STOPPED:
            return

        self._state = PipelineState.STOPPING
        logger.info("Stopping pipeline...")

        if self._stop_event:
            self._stop_event.set()

        await self._stop_background_services()
        await self._cleanup()

        self._state = PipelineState.STOPPED
        logger.info("Pipeline stopped")

    async def _initialize_components(self) -> None:
        settings = self._settings

        if self._external_store is not None:
            self._store = self._external_store
        else:
            self._db_manager = DatabaseManager(settings.database.url)
            if settings.database.create_schema:
                await self._db_manager.init_schema_async()
            self._store = WatcherStore(self._db_manager)

        await self._load_runtime_config()

        self._stats_client = self._external_stats_client or ProfileStatsClient(
            base_url=settings.profile_api.url,
            timeout_seconds=settings.profile_api.timeout_seconds,
            user_agent=settings.profile_api.user_agent,
        )
        cache = WalletProfileCache(
            ttl_seconds=settings.analyzer.cache_ttl_seconds,
            max_size=settings.analyzer.cache_max_size,
        )
        self._analyzer = WalletAnalyzer(
            self._stats_client,
            self._current_thresholds,
            store=self._store,
            cache=cache,
        )
        self._detector = FreshWalletDetector(self._analyzer, self._current_thresholds)
        self._refresh_worker = WalletRefreshWorker(
            self._store,
            self._analyzer,
            self._bus,
            interval_seconds=settings.refresh.interval_seconds,
            batch_size=settings.refresh.batch_size,
            call_delay_seconds=settings.refresh.call_delay_seconds,
            max_bet_count=settings.refresh.max_bet_count,
        )

        timeout = settings.telegram.timeout_seconds
        self._notifications = NotificationService(
            self._store,
            self._bus,
            default_config=settings.telegram.default_notification_config(),
            channel_factory=self._channel_factory
            or (lambda config: build_channel(config, timeout_seconds=timeout)),
            delivery_timeout=timeout,
            dry_run=self._dry_run,
        )
        await self._notifications.load_config()

        self._bus.subscribe(TOPIC_FRESH_WALLET_DETECTED, self._on_fresh_wallet)
        logger.debug("Pipeline components initialized")

    async def _load_runtime_config(self) -> None:
        if self._store is None:
            return
        try:
            config = await self._store.load_config()
            event_filter = await self._store.load_filter()
        except Exception as e:
            logger.warning("Failed to load persisted watcher settings, using defaults: %s", e)
            return
        async with self._config_lock:
            if config is not None:
                self._config = config
            if event_filter is not None:
                self._save_filter = event_filter

    async def _start_background_services(self) -> None:
        if self._notifications:
            self._notifications.start()
        if self._refresh_worker and self._stop_event:
            logger.debug("Starting wallet refresh worker...")
            self._refresh_task = asyncio.create_task(self._refresh_worker.run(self._stop_event))

    async def _stop_background_services(self) -> None:
        if self._notifications:
            self._notifications.stop()
        self._bus.unsubscribe(TOPIC_FRESH_WALLET_DETECTED, self._on_fresh_wallet)

        if self._refresh_task:
            self._refresh_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._refresh_task
            self._refresh_task = None

        for task in list(self._background):
            task.cancel()
        for task in list(self._background):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._background.clear()

    async def _cleanup(self) -> None:
        """Clean up resources."""
        if self._notifications:
            await self._notifications.aclose()
            self._notifications = None

        if self._stats_client and self._stats_client is not self._external_stats_client:
            await self._stats_client.aclose()
        self._stats_client = None

        if self._db_manager:
            await self._db_manager.dispose_async()
            self._db_manager = None

        self._store = None
        logger.debug("Resources cleaned up")

    async def run(self) -> None:
        """Start the pipeline and run until stopped or cancelled."""
        await self.start()

        try:
            if self._stop_event:
                await self._stop_event.wait()
        except asyncio.CancelledError:
            pass
        finally:
            await self.stop()

    async def __aenter__(self) -> Pipeline:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.stop()

    # ------------------------------------------------------------------
    # Event admission
    # ------------------------------------------------------------------

    async def on_event(self, event: TradeEvent) -> bool:
        """Handle one event from the live feed.

        Admitted events queue their wallet for analysis, are stored and are
        published as QualifyingEvent. Each step logs its own failure and the
        rest still run. Returns True if the event was admitted.
        """
        if self._state != PipelineState.RUNNING or self._store is None:
            logger.debug("Pipeline not running, dropping event")
            return False

        self._stats.events_received += 1
        if event.event_type == EventType.TRADE:
            self._stats.trades_received += 1
        self._stats.last_event_time = datetime.now(UTC)

        config, event_filter = self._config, self._save_filter
        if not config.enabled:
            return False

        try:
            admitted = should_admit(event, event_filter, config.thresholds.min_notional)
        except Exception as e:
            logger.debug("Dropping unevaluable event %s: %s", event.trade_id, e)
            return False
        if not admitted:
            return False

        self._stats.events_admitted += 1

        if event.wallet_address:
            try:
                if await self._store.save_wallet_address(event.wallet_address):
                    logger.debug("Queued new wallet %s", short_address(event.wallet_address))
            except Exception as e:
                self._record_error("Failed to queue wallet %s: %s", short_address(event.wallet_address), e)

        stored = event
        try:
            event_id = await self._store.save_event(event)
            stored = dataclasses.replace(event, id=event_id)
            self._stats.events_persisted += 1
        except Exception as e:
            self._record_error("Failed to save event %s: %s", event.trade_id, e)

        self._bus.publish(QualifyingEvent(event=stored))

        if self._settings.enrich_on_admit and stored.id is not None and stored.wallet_address:
            self._spawn(self._enrich_event(stored))
        return True

    async def _enrich_event(self, event: TradeEvent) -> None:
        if self._detector is None or self._store is None or event.id is None:
            return
        try:
            enriched = await self._detector.enrich(event)
            if enriched is None or enriched.wallet_profile is None:
                return
            if await self._store.update_event_enrichment(
                event.id, enriched.wallet_profile, enriched.fresh_wallet_signal
            ):
                self._stats.events_enriched += 1
        except Exception as e:
            self._record_error("Failed to enrich event %s: %s", event.id, e)

    def _on_fresh_wallet(self, message: BusMessage) -> None:
        if not isinstance(message, FreshWalletDetected):
            return
        self._stats.fresh_wallets_found += 1
        self._spawn(self._backfill_wallet(message.profile))

    async def _backfill_wallet(self, profile: WalletProfile) -> None:
        """Score the stored, not yet enriched events of a fresh wallet."""
        if self._detector is None or self._store is None:
            return
        try:
            events = await self._store.list_unenriched_events(profile.address)
            for event in events:
                if event.id is None:
                    continue
                signal = self._detector.assess(event, profile)
                if await self._store.update_event_enrichment(event.id, profile, signal):
                    self._stats.events_enriched += 1
        except Exception as e:
            self._record_error("Failed to back-fill events for %s: %s", short_address(profile.address), e)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _record_error(self, msg: str, *args: Any) -> None:
        self._stats.errors += 1
        self._stats.last_error = msg % args
        logger.warning(msg, *args)

    # ------------------------------------------------------------------
    # Runtime configuration
    # ------------------------------------------------------------------

    def _current_thresholds(self) -> FreshnessThresholds:
        return self._config.thresholds

    def get_config(self) -> WatcherConfig:
        return self._config

    def get_save_filter(self) -> EventFilter:
        return self._save_filter

    async def update_config(self, config: WatcherConfig) -> None:
        """Apply a new watcher config, then persist it.

        New thresholds take effect on the next analysis without clearing the
        analyzer cache. A persistence failure is logged; the config stays
        applied for this run.
        """
        async with self._config_lock:
            self._config = config
        logger.info(
            "Watcher config updated: enabled=%s thresholds=%s",
            config.enabled,
            config.thresholds.model_dump(mode="json"),
        )
        await self._persist("config", config)

    async def set_save_filter(self, event_filter: EventFilter) -> None:
        """Apply a new admission filter, then persist it."""
        async with self._config_lock:
            self._save_filter = event_filter
        logger.info("Save filter updated: %s", event_filter.model_dump(mode="json", exclude_defaults=True))
        await self._persist("filter", event_filter)

    async def _persist(self, what: str, value: WatcherConfig | EventFilter) -> None:
        if self._store is None:
            return
        try:
            if isinstance(value, WatcherConfig):
                await self._store.save_config(value)
            else:
                await self._store.save_filter(value)
        except Exception as e:
            self._record_error("Failed to persist %s: %s", what, e)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _require_store(self) -> WatcherStore:
        if self._store is None:
            raise RuntimeError("Pipeline is not running")
        return self._store

    async def get_events(self, event_filter: EventFilter | None = None) -> list[TradeEvent]:
        return await self._require_store().get_events(event_filter or EventFilter())

    async def get_wallets(self, *, limit: int = 100) -> list[WalletProfile]:
        return await self._require_store().get_all_wallets(limit=limit)

    async def get_fresh_wallets(self, *, limit: int = 100) -> list[WalletProfile]:
        return await self._require_store().get_fresh_wallets(limit=limit)

    async def clear_events(self) -> int:
        """Delete stored events and tracked wallets and empty the profile cache."""
        deleted = await self._require_store().clear_events()
        if self._analyzer is not None:
            await self._analyzer.cache.clear()
        return deleted

    async def get_database_info(self) -> DatabaseInfo:
        return await self._require_store().get_database_info()

    def get_status(self) -> dict[str, Any]:
        """Snapshot of lifecycle state and counters."""
        status: dict[str, Any] = {
            "state": self._state.value,
            "enabled": self._config.enabled,
            "pipeline": dataclasses.asdict(self._stats),
        }
        if self._refresh_worker is not None:
            status["refresh"] = dataclasses.asdict(self._refresh_worker.stats)
        if self._notifications is not None:
            status["notifications"] = dataclasses.asdict(self._notifications.stats)
            status["notifications_configured"] = self._notifications.is_configured()
        return status
