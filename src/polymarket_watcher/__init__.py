"""Polymarket Fresh Wallet Watcher - trade stream admission, wallet freshness and alerting."""

__version__ = "0.1.0"
