"""Database models for the venue price exchange.

Only catalog entities are persisted. Order counters, momentum and watch
snapshots are process-local and rebuilt after a restart.
"""
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel


class PriceChangeReason(str, Enum):
    """Why a price history entry was written."""

    ORDER_RECEIVED = "order_received"
    MARKET_ADJUSTMENT = "market_adjustment"
    REBALANCE_DECAY = "rebalance_decay"


class Venue(SQLModel, table=True):
    """A place whose catalog is priced independently of other venues."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Product(SQLModel, table=True):
    """A product sold at one venue; prices move with demand."""

    id: int | None = Field(default=None, primary_key=True)
    venue_id: int = Field(foreign_key="venue.id", index=True)
    name: str
    regular_price: float
    current_price: float | None = None
    previous_price: float | None = None
    min_price: float | None = None  # defaults to 0.7 x regular when absent
    max_price: float | None = None  # defaults to 1.5 x regular when absent
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PriceHistory(SQLModel, table=True):
    """Append-only record of one realized price change."""

    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    old_price: float
    new_price: float
    change_percentage: float
    reason: PriceChangeReason
    created_at: datetime = Field(default_factory=datetime.utcnow)
