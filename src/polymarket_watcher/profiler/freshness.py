"""Wallet freshness classification."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime

from polymarket_watcher.profiler.models import (
    FreshnessLevel,
    FreshnessThresholds,
    WalletProfile,
)


def determine_freshness_level(bet_count: int, thresholds: FreshnessThresholds) -> FreshnessLevel:
    """Classify a bet count against the given cut-offs.

    When a custom cut-off is set, wallets inside it still report their
    standard band if they have one; only the remainder is ``CUSTOM``.
    """
    if bet_count < 0:
        return FreshnessLevel.NONE

    if bet_count <= thresholds.insider:
        standard = FreshnessLevel.INSIDER
    elif bet_count <= thresholds.fresh:
        standard = FreshnessLevel.FRESH
    elif bet_count <= thresholds.newbie:
        standard = FreshnessLevel.NEWBIE
    else:
        standard = FreshnessLevel.NONE

    custom = thresholds.custom
    if custom > 0 and bet_count <= custom and standard == FreshnessLevel.NONE:
        return FreshnessLevel.CUSTOM
    return standard


def classify_profile(
    address: str,
    bet_count: int,
    thresholds: FreshnessThresholds,
    *,
    join_date: str = "",
    analyzed_at: datetime | None = None,
    first_seen_at: datetime | None = None,
) -> WalletProfile:
    """Build a profile for a freshly looked-up bet count."""
    level = determine_freshness_level(bet_count, thresholds)
    return WalletProfile(
        address=address,
        bet_count=bet_count,
        freshness_level=level,
        is_fresh=level != FreshnessLevel.NONE,
        analyzed_at=analyzed_at or datetime.now(UTC),
        fresh_threshold=thresholds.max_fresh_threshold,
        join_date=join_date,
        first_seen_at=first_seen_at,
    )


def reclassify(profile: WalletProfile, thresholds: FreshnessThresholds) -> WalletProfile:
    """Re-derive the freshness fields of a stored or cached profile.

    Unknown profiles are left as they are.
    """
    if not profile.is_analyzed:
        return dataclasses.replace(profile, fresh_threshold=thresholds.max_fresh_threshold)
    level = determine_freshness_level(profile.bet_count, thresholds)
    return dataclasses.replace(
        profile,
        freshness_level=level,
        is_fresh=level != FreshnessLevel.NONE,
        fresh_threshold=thresholds.max_fresh_threshold,
    )
