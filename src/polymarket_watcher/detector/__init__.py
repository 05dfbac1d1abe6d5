"""Detection layer - Fresh wallet scoring."""

from polymarket_watcher.detector.fresh_wallet import FreshWalletDetector
from polymarket_watcher.detector.models import FreshWalletSignal

__all__ = [
    "FreshWalletDetector",
    "FreshWalletSignal",
]
