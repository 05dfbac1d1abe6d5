"""Alerting layer - Notification formatting and delivery."""

from polymarket_watcher.alerter.models import (
    NotificationChannelType,
    NotificationConfig,
    NotificationContent,
    NotificationEventType,
    NotificationPriority,
)

__all__ = [
    "NotificationChannelType",
    "NotificationConfig",
    "NotificationContent",
    "NotificationEventType",
    "NotificationPriority",
]
