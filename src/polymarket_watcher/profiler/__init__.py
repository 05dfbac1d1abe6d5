"""Wallet profiling layer - Bet counts, freshness bands and caching."""

from polymarket_watcher.profiler.analyzer import WalletAnalyzer
from polymarket_watcher.profiler.cache import WalletProfileCache
from polymarket_watcher.profiler.models import (
    FreshnessLevel,
    FreshnessThresholds,
    ProfileStats,
    WalletProfile,
    WatcherConfig,
)
from polymarket_watcher.profiler.stats_client import ProfileStatsClient, ProfileStatsError

__all__ = [
    "FreshnessLevel",
    "FreshnessThresholds",
    "ProfileStats",
    "ProfileStatsClient",
    "ProfileStatsError",
    "WalletAnalyzer",
    "WalletProfile",
    "WalletProfileCache",
    "WatcherConfig",
]
