"""Bounded in-process TTL cache for wallet profiles."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from polymarket_watcher.profiler.models import WalletProfile

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_CACHE_TTL = 300  # 5 minutes
DEFAULT_PROFILE_CACHE_MAX_SIZE = 10_000


@dataclass(frozen=True)
class _Entry:
    profile: WalletProfile
    expires_at: float


class WalletProfileCache:
    """Address-keyed profile cache with per-entry expiry.

    Lookups never take the lock. Inserts and evictions are serialised so
    that two writers cannot both decide to evict at the same time. When an
    insert finds the cache full, expired entries are purged first; if that
    frees nothing, half of the remaining entries (rounded up) are dropped
    in insertion order.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_PROFILE_CACHE_TTL,
        max_size: int = DEFAULT_PROFILE_CACHE_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, address: str) -> WalletProfile | None:
        entry = self._entries.get(address.lower())
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry.profile

    async def put(self, profile: WalletProfile) -> None:
        key = profile.address.lower()
        async with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                self._evict()
            self._entries[key] = _Entry(profile=profile, expires_at=self._clock() + self._ttl)

    async def invalidate(self, address: str) -> None:
        async with self._lock:
            self._entries.pop(address.lower(), None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def _evict(self) -> None:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]

        if len(self._entries) >= self._max_size:
            # Round up so the cache is below capacity after the pending insert.
            victims = list(self._entries)[: (len(self._entries) + 1) // 2]
            for key in victims:
                del self._entries[key]
            logger.debug("Profile cache full, evicted %d entries", len(victims))
        elif expired:
            logger.debug("Profile cache purged %d expired entries", len(expired))
