"""Wallet freshness analysis.

Profiles are resolved from the in-process cache, then the persisted store,
then the external statistics endpoint. Whatever the source, the freshness
classification is recomputed from the thresholds in effect at call time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from polymarket_watcher.profiler.cache import WalletProfileCache
from polymarket_watcher.profiler.freshness import classify_profile, reclassify
from polymarket_watcher.profiler.models import FreshnessThresholds, WalletProfile
from polymarket_watcher.profiler.stats_client import ProfileStatsClient, ProfileStatsError

if TYPE_CHECKING:
    from polymarket_watcher.storage.store import WatcherStore

logger = logging.getLogger(__name__)

ThresholdsProvider = Callable[[], FreshnessThresholds]


def short_address(address: str) -> str:
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"


class WalletAnalyzer:
    """Resolves wallet profiles through cache, store and external lookup.

    ``analyze`` never raises for lookup or store failures: a failed lookup
    yields an unknown profile (bet count -1, not fresh) that is neither
    cached nor persisted, so the next call tries again. ``refresh`` is the
    forced variant used by the background worker and does raise.

    Example:
        ```python
        analyzer = WalletAnalyzer(stats_client, lambda: config.thresholds, store=store)
        profile = await analyzer.analyze("0xabc...")
        if profile.is_fresh:
            ...
        ```
    """

    def __init__(
        self,
        stats_client: ProfileStatsClient,
        thresholds_provider: ThresholdsProvider,
        *,
        store: WatcherStore | None = None,
        cache: WalletProfileCache | None = None,
    ) -> None:
        self._client = stats_client
        self._thresholds = thresholds_provider
        self._store = store
        self._cache = cache or WalletProfileCache()

    @property
    def cache(self) -> WalletProfileCache:
        return self._cache

    async def analyze(self, address: str) -> WalletProfile:
        """Return the wallet's profile, classified with current thresholds.

        Raises:
            ValueError: If ``address`` is empty.
        """
        if not address:
            raise ValueError("wallet address is required")
        address = address.lower()
        thresholds = self._thresholds()

        cached = self._cache.get(address)
        if cached is not None:
            return reclassify(cached, thresholds)

        stored = await self._load_stored(address)
        if stored is not None:
            profile = reclassify(stored, thresholds)
            await self._cache.put(profile)
            return profile

        try:
            profile = await self._lookup(address, thresholds)
        except ProfileStatsError as e:
            logger.warning("Wallet lookup failed for %s: %s", short_address(address), e)
            return WalletProfile.unknown(address, thresholds.max_fresh_threshold)
        except Exception as e:
            logger.warning("Unexpected error looking up wallet %s: %s", short_address(address), e)
            return WalletProfile.unknown(address, thresholds.max_fresh_threshold)

        await self._persist(profile)
        await self._cache.put(profile)
        return profile

    async def refresh(self, address: str) -> WalletProfile:
        """Force an external lookup, bypassing cache and store.

        The result replaces the cached entry and is written to the store.

        Raises:
            ProfileStatsError: If the lookup fails.
        """
        if not address:
            raise ValueError("wallet address is required")
        address = address.lower()
        profile = await self._lookup(address, self._thresholds())
        await self._persist(profile)
        await self._cache.put(profile)
        return profile

    async def _lookup(self, address: str, thresholds: FreshnessThresholds) -> WalletProfile:
        stats = await self._client.fetch(address)
        profile = classify_profile(
            address,
            stats.trades,
            thresholds,
            join_date=stats.join_date,
            analyzed_at=datetime.now(UTC),
        )
        logger.debug(
            "Analyzed wallet %s: bets=%d level=%s",
            short_address(address),
            profile.bet_count,
            profile.freshness_level.value,
        )
        return profile

    async def _load_stored(self, address: str) -> WalletProfile | None:
        if self._store is None:
            return None
        try:
            stored = await self._store.get_wallet(address)
        except Exception as e:
            logger.warning("Failed to read wallet %s from store: %s", short_address(address), e)
            return None
        if stored is None or not stored.is_analyzed:
            return None
        return stored

    async def _persist(self, profile: WalletProfile) -> None:
        if self._store is None:
            return
        try:
            await self._store.save_wallet(profile)
        except Exception as e:
            logger.warning("Failed to save wallet %s: %s", short_address(profile.address), e)
