"""Shared fixtures: an in-memory catalog store and a channel that records events."""
from typing import Any

import pytest

from price_exchange.broadcast import NotificationChannelABC
from price_exchange.catalog import CatalogStoreABC
from price_exchange.core import CatalogStoreError
from price_exchange.db.models import PriceHistory, Product, Venue
from price_exchange.pricing import DemandState, PriceEngine, PricingConfig


class FakeCatalogStore(CatalogStoreABC):
    """Dict-backed store handing out copies, like rows loaded per session."""

    def __init__(self) -> None:
        self.venues: dict[int, Venue] = {}
        self.products: dict[int, Product] = {}
        self.history: list[PriceHistory] = []
        self.fail = False
        self.saves = 0

    def add_venue(self, venue_id: int, name: str = "Venue") -> Venue:
        venue = Venue(id=venue_id, name=name)
        self.venues[venue_id] = venue
        return venue

    def add_product(self, product_id: int, venue_id: int, **fields: Any) -> Product:
        fields.setdefault("name", f"Product {product_id}")
        fields.setdefault("regular_price", 10.0)
        product = Product(id=product_id, venue_id=venue_id, **fields)
        self.products[product_id] = product
        return product

    def set_price(self, product_id: int, price: float) -> None:
        self.products[product_id].current_price = price

    def price(self, product_id: int) -> float | None:
        return self.products[product_id].current_price

    def _check(self) -> None:
        if self.fail:
            raise CatalogStoreError("store offline")

    async def get_venue(self, venue_id: int) -> Venue | None:
        self._check()
        return self.venues.get(venue_id)

    async def find_products_by_venue(self, venue_id: int) -> list[Product]:
        self._check()
        return [
            Product(**p.model_dump())
            for _, p in sorted(self.products.items())
            if p.venue_id == venue_id
        ]

    async def save_product(self, product: Product) -> Product:
        self._check()
        self.saves += 1
        self.products[product.id] = Product(**product.model_dump())
        return product

    async def append_history(self, entry: PriceHistory) -> PriceHistory:
        self._check()
        entry.id = len(self.history) + 1
        self.history.append(entry)
        return entry


class RecordingChannel(NotificationChannelABC):
    """Channel that records every publish instead of delivering it."""

    def __init__(self) -> None:
        self.published: list[tuple[int, str, Any]] = []
        self._members: dict[int, set[Any]] = {}

    async def publish(self, topic: int, event: str, data: Any) -> int:
        self.published.append((topic, event, data))
        return self.members(topic)

    def join(self, topic: int, subscriber: Any) -> None:
        self._members.setdefault(topic, set()).add(subscriber)

    def leave(self, topic: int, subscriber: Any) -> None:
        self._members.get(topic, set()).discard(subscriber)

    def members(self, topic: int) -> int:
        return len(self._members.get(topic, ()))

    def events(self, topic: int | None = None) -> list[str]:
        return [e for t, e, _ in self.published if topic is None or t == topic]


@pytest.fixture
def store() -> FakeCatalogStore:
    """Venue 1 with three products in a 7.00-15.00 band, all at 10.00."""
    fake = FakeCatalogStore()
    fake.add_venue(1, "Main Bar")
    for pid in (1, 2, 3):
        fake.add_product(
            pid, 1, regular_price=10.0, current_price=10.0, min_price=7.0, max_price=15.0
        )
    return fake


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def state() -> DemandState:
    return DemandState()


@pytest.fixture
def config() -> PricingConfig:
    return PricingConfig()


@pytest.fixture
def engine(store: FakeCatalogStore, state: DemandState, config: PricingConfig) -> PriceEngine:
    return PriceEngine(store, state, config)
