"""Change detection and broadcast of venue prices to subscribed observers."""
from price_exchange.broadcast.channel import (BULK_PRICE_UPDATE, ERROR,
                                              INITIAL_PRICES, PRICE_UPDATE,
                                              NotificationChannelABC,
                                              WebSocketChannel)
from price_exchange.broadcast.registry import SubscriptionRegistry, WatchStatus
from price_exchange.broadcast.watcher import ChangeWatcher

__all__ = [
    "BULK_PRICE_UPDATE",
    "ERROR",
    "INITIAL_PRICES",
    "PRICE_UPDATE",
    "ChangeWatcher",
    "NotificationChannelABC",
    "SubscriptionRegistry",
    "WatchStatus",
    "WebSocketChannel",
]
