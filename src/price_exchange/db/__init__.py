"""Database package: models and session management."""
from price_exchange.db.models import PriceChangeReason, PriceHistory, Product, Venue

__all__ = ["PriceChangeReason", "PriceHistory", "Product", "Venue"]
