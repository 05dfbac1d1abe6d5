"""Tests for the wallet profile cache."""

from __future__ import annotations

import pytest

from polymarket_watcher.profiler.cache import WalletProfileCache
from polymarket_watcher.profiler.freshness import classify_profile
from polymarket_watcher.profiler.models import FreshnessThresholds, WalletProfile


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _profile(address: str, bets: int = 1) -> WalletProfile:
    return classify_profile(address, bets, FreshnessThresholds())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestWalletProfileCache:
    @pytest.mark.asyncio
    async def test_put_and_get(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(clock=clock)
        await cache.put(_profile("0xAbC"))
        assert cache.get("0xabc") is not None
        assert cache.get("0xABC") is not None
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_entries_expire(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(ttl_seconds=60, clock=clock)
        await cache.put(_profile("0xa"))
        clock.now += 59
        assert cache.get("0xa") is not None
        clock.now += 1
        assert cache.get("0xa") is None

    @pytest.mark.asyncio
    async def test_put_replaces_existing(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(clock=clock)
        await cache.put(_profile("0xa", 1))
        await cache.put(_profile("0xa", 7))
        cached = cache.get("0xa")
        assert cached is not None
        assert cached.bet_count == 7
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_full_cache_purges_expired_first(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(ttl_seconds=10, max_size=4, clock=clock)
        await cache.put(_profile("0x1"))
        await cache.put(_profile("0x2"))
        clock.now += 5
        await cache.put(_profile("0x3"))
        await cache.put(_profile("0x4"))
        clock.now += 6  # 0x1 and 0x2 expired
        await cache.put(_profile("0x5"))

        assert len(cache) == 3
        assert cache.get("0x3") is not None
        assert cache.get("0x5") is not None

    @pytest.mark.asyncio
    async def test_full_cache_drops_half_in_insertion_order(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(max_size=4, clock=clock)
        for i in range(4):
            await cache.put(_profile(f"0x{i}"))
        await cache.put(_profile("0xnew"))

        assert len(cache) == 3
        assert cache.get("0x0") is None
        assert cache.get("0x1") is None
        assert cache.get("0x2") is not None
        assert cache.get("0xnew") is not None

    @pytest.mark.parametrize("max_size", [2, 3, 5, 8])
    @pytest.mark.asyncio
    async def test_full_cache_ends_below_capacity(self, clock: FakeClock, max_size: int) -> None:
        cache = WalletProfileCache(max_size=max_size, clock=clock)
        for i in range(max_size):
            await cache.put(_profile(f"0x{i}"))
        await cache.put(_profile("0xnew"))

        assert len(cache) < max_size
        assert cache.get("0x0") is None
        assert cache.get("0xnew") is not None

    @pytest.mark.asyncio
    async def test_size_never_exceeds_max(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(max_size=10, clock=clock)
        for i in range(100):
            await cache.put(_profile(f"0x{i}"))
            assert len(cache) <= cache.max_size

    @pytest.mark.asyncio
    async def test_invalidate_and_clear(self, clock: FakeClock) -> None:
        cache = WalletProfileCache(clock=clock)
        await cache.put(_profile("0xa"))
        await cache.put(_profile("0xb"))
        await cache.invalidate("0xA")
        assert cache.get("0xa") is None
        await cache.clear()
        assert len(cache) == 0

    def test_rejects_zero_size(self) -> None:
        with pytest.raises(ValueError):
            WalletProfileCache(max_size=0)
