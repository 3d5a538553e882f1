"""Abstract base class for the catalog store the exchange reads and writes."""
from abc import ABC, abstractmethod

from price_exchange.db.models import PriceHistory, Product, Venue


class CatalogStoreABC(ABC):
    """Durable store of venues, products and price history.

    Every method is a suspension point: callers await it and other tasks
    may run meanwhile. Implementations raise CatalogStoreError for
    transient failures. The exchange never creates or deletes products.
    """

    @abstractmethod
    async def get_venue(self, venue_id: int) -> Venue | None:
        """Fetch a venue by id; None when absent."""

    @abstractmethod
    async def find_products_by_venue(self, venue_id: int) -> list[Product]:
        """All products of a venue, ordered by id. Empty when the venue is unknown."""

    @abstractmethod
    async def save_product(self, product: Product) -> Product:
        """Persist a product's prices and return the stored row."""

    @abstractmethod
    async def append_history(self, entry: PriceHistory) -> PriceHistory:
        """Append a price history entry and return it with its id."""

    async def close(self) -> None:
        """Release resources. Override when cleanup is needed."""

    async def __aenter__(self) -> "CatalogStoreABC":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()
