"""Pydantic schemas for API, WebSocket events and runtime use. Not persisted to DB.

Payloads use camelCase on the wire (productId, oldPrice, ...) and accept
either camelCase or snake_case on input.
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from price_exchange.db.models import PriceChangeReason, Product


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class PriceUpdate(CamelModel):
    """One product's price change, emitted as a price-update event."""

    product_id: int
    product_name: str
    old_price: float
    new_price: float
    change_percentage: float
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class BulkPriceUpdate(CamelModel):
    """Every change found in one poll tick, emitted as bulk-price-update."""

    venue_id: int
    updates: list[PriceUpdate]
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ProductView(CamelModel):
    """Current pricing state of a product."""

    product_id: int
    product_name: str
    regular_price: float
    current_price: float | None = None
    previous_price: float | None = None
    min_price: float | None = None
    max_price: float | None = None
    last_tracked_price: float | None = None

    @classmethod
    def from_product(
        cls, product: Product, last_tracked_price: float | None = None
    ) -> "ProductView":
        return cls(
            product_id=product.id,
            product_name=product.name,
            regular_price=product.regular_price,
            current_price=product.current_price,
            previous_price=product.previous_price,
            min_price=product.min_price,
            max_price=product.max_price,
            last_tracked_price=last_tracked_price,
        )


class PriceChangeView(CamelModel):
    """A persisted price change returned by the order trigger."""

    product_id: int
    product_name: str
    old_price: float
    new_price: float
    change_percentage: float
    reason: PriceChangeReason
    created_at: datetime


class OrderRequest(CamelModel):
    """Product ids of one completed purchase."""

    product_ids: list[int] = Field(min_length=1)


class StartExchangeRequest(CamelModel):
    """Optional rebalance interval for the exchange-start trigger."""

    rebalance_interval_ms: int | None = Field(default=None, gt=0)


class ExchangeResponse(CamelModel):
    """Envelope returned by every administrative trigger."""

    success: bool = True
    message: str
    data: dict[str, Any] | None = None


class WatchInfo(CamelModel):
    """Watch state of one venue."""

    venue_id: int
    status: str
    subscribers: int
    tracked_products: int


class ExchangeStatus(CamelModel):
    """Which venues are rebalancing and which are watched."""

    running: bool
    rebalancing_venues: list[int]
    watched_venues: list[WatchInfo]


class StreamMessage(BaseModel):
    """WebSocket push payload: an event name plus its data."""

    event: str
    data: Any


class ClientMessage(CamelModel):
    """WebSocket message sent by an observer."""

    action: str
    venue_id: int


__all__ = [
    "BulkPriceUpdate",
    "CamelModel",
    "ClientMessage",
    "ExchangeResponse",
    "ExchangeStatus",
    "OrderRequest",
    "PriceChangeView",
    "PriceUpdate",
    "ProductView",
    "StartExchangeRequest",
    "StreamMessage",
    "WatchInfo",
]
