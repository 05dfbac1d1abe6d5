"""Notification message formatter.

This module turns qualifying trades and fresh-wallet detections into
HTML messages for the Telegram Bot API.
"""

from __future__ import annotations

import html
from decimal import Decimal

from polymarket_watcher.alerter.models import (
    NotificationContent,
    NotificationEventType,
    NotificationPriority,
)
from polymarket_watcher.ingestor.models import Side, TradeEvent
from polymarket_watcher.profiler.models import FreshnessLevel, WalletProfile

POLYMARKET_PROFILE_URL = "https://polymarket.com/profile/{address}"

TEST_MESSAGE = (
    "This is a test notification from the Polymarket Fresh Wallet Watcher. "
    "If you received this, your Telegram notifications are working correctly!"
)

FRESHNESS_EMOJI: dict[FreshnessLevel, str] = {
    FreshnessLevel.INSIDER: "🚨",
    FreshnessLevel.FRESH: "🔥",
    FreshnessLevel.NEWBIE: "⚡",
    FreshnessLevel.CUSTOM: "✨",
}


def truncate_address(address: str, chars: int = 4) -> str:
    """Truncate an address to 0x1234...5678 format."""
    if len(address) < chars * 2 + 4:
        return address
    return f"{address[: chars + 2]}...{address[-chars:]}"


def format_usdc(amount: Decimal) -> str:
    """Format a USDC amount with commas and 2 decimal places."""
    return f"${amount:,.2f}"


def _profile_link(address: str) -> str:
    url = POLYMARKET_PROFILE_URL.format(address=html.escape(address))
    return f'\n<a href="{url}">View Profile</a>'


class NotificationFormatter:
    """Builds NotificationContent for each notification type."""

    def big_trade(self, event: TradeEvent) -> NotificationContent:
        side = event.side.value if event.side else Side.BUY.value
        side_emoji = "🔴" if event.side == Side.SELL else "🟢"
        notional = event.notional_value
        market = event.event_title or event.market_name

        metadata: dict[str, str] = {
            "market": market,
            "outcome": event.outcome,
            "side": side,
            "wallet_address": event.wallet_address,
            "trade_id": event.trade_id,
        }

        lines = [f"<b>{side_emoji} Big Trade Alert</b>", ""]
        if market:
            lines.append(f"<b>Market:</b> {html.escape(market)}")
        if event.outcome:
            lines.append(f"<b>Outcome:</b> {html.escape(event.outcome)}")
        lines.append(f"<b>Value:</b> {format_usdc(notional)}")
        lines.append(f"<b>Side:</b> {side}")
        if event.wallet_address:
            lines.append(f"<b>Wallet:</b> <code>{html.escape(truncate_address(event.wallet_address))}</code>")

        profile = event.wallet_profile
        if profile is not None and profile.is_analyzed:
            metadata["bet_count"] = str(profile.bet_count)
            lines.append(f"<b>Trades:</b> {profile.bet_count}")
            if profile.join_date:
                metadata["join_date"] = profile.join_date
                lines.append(f"<b>Join Date:</b> {html.escape(profile.join_date)}")

        message = "\n".join(lines) + "\n"
        if event.wallet_address:
            message += _profile_link(event.wallet_address)

        return NotificationContent(
            event_type=NotificationEventType.BIG_TRADE,
            title="Big Trade Alert",
            message=message,
            priority=NotificationPriority.HIGH,
            timestamp=event.timestamp,
            metadata=metadata,
        )

    def fresh_wallet(self, profile: WalletProfile) -> NotificationContent:
        emoji = FRESHNESS_EMOJI.get(profile.freshness_level, "🚨")
        lines = [f"<b>{emoji} Fresh Wallet Detected</b>", ""]
        if profile.address:
            lines.append(f"<b>Wallet:</b> <code>{html.escape(truncate_address(profile.address))}</code>")
        lines.append(f"<b>Total Trades:</b> {profile.bet_count}")
        if profile.join_date:
            lines.append(f"<b>Join Date:</b> {html.escape(profile.join_date)}")
        lines.append(f"<b>Freshness:</b> {html.escape(profile.freshness_level.value)}")

        message = "\n".join(lines) + "\n"
        if profile.address:
            message += _profile_link(profile.address)

        return NotificationContent(
            event_type=NotificationEventType.FRESH_WALLET,
            title="Fresh Wallet Detected",
            message=message,
            priority=NotificationPriority.HIGH,
            timestamp=profile.analyzed_at,
            metadata={
                "wallet_address": profile.address,
                "bet_count": str(profile.bet_count),
                "join_date": profile.join_date,
                "freshness_level": profile.freshness_level.value,
            },
        )

    def test(self) -> NotificationContent:
        return NotificationContent(
            event_type=NotificationEventType.TEST,
            title="Test Notification",
            message=TEST_MESSAGE,
            priority=NotificationPriority.LOW,
        )
