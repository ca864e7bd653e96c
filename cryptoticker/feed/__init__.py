"""
Live price feeds with per-symbol streams.

Simple usage:
    manager = FeedManager()
    await manager.start()

    snapshot = manager.get_snapshot("btcusdt")
    await manager.toggle_selection("ethusdt")
"""

from cryptoticker.feed.manager import FeedManager, FeedState
from cryptoticker.feed.price_store import PriceStore, StoreEvent

__all__ = ['FeedManager', 'FeedState', 'PriceStore', 'StoreEvent']
