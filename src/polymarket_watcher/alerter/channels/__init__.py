"""Notification delivery channels."""

from __future__ import annotations

from polymarket_watcher.alerter.channels.base import MessagingChannel, NotificationError
from polymarket_watcher.alerter.channels.telegram import TelegramChannel
from polymarket_watcher.alerter.models import NotificationChannelType, NotificationConfig


def build_channel(config: NotificationConfig, *, timeout_seconds: float = 10.0) -> MessagingChannel:
    """Create the delivery channel selected by ``config.channel``."""
    if config.channel == NotificationChannelType.TELEGRAM:
        return TelegramChannel(config.bot_token, timeout_seconds=timeout_seconds)
    raise NotificationError(f"Unsupported notification channel: {config.channel}")


__all__ = [
    "MessagingChannel",
    "NotificationError",
    "TelegramChannel",
    "build_channel",
]
