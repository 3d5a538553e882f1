"""API routers for the price exchange.

Includes routes for:
- /venues/{id}/exchange - start/stop/reset order-driven pricing
- /venues/{id}/orders, /venues/{id}/products, /exchange/status
- /venues/{id}/watch - explicit change-watcher control
- /venues/stream - WebSocket price stream
"""
from price_exchange.routers.exchange import router as exchange_router
from price_exchange.routers.stream import router as stream_router
from price_exchange.routers.watch import router as watch_router

__all__ = [
    "exchange_router",
    "stream_router",
    "watch_router",
]
