"""Exceptions shared by the catalog, pricing and broadcast layers."""


class CatalogStoreError(Exception):
    """A query or write against the catalog store failed (transient)."""


class VenueNotFoundError(LookupError):
    """The venue does not exist or has no products."""

    def __init__(self, venue_id: int, detail: str | None = None) -> None:
        self.venue_id = venue_id
        super().__init__(detail or f"Venue '{venue_id}' not found")


class PriceInvariantError(AssertionError):
    """A computed price escaped its [min, max] band after clamping."""
