"""Domain concept for mapping exchange exceptions to HTTP responses."""
import asyncio
from dataclasses import dataclass

from fastapi import HTTPException

from price_exchange.core.exceptions import CatalogStoreError, VenueNotFoundError


@dataclass(frozen=True)
class ExchangeErrorMapper:
    """Maps engine/store exceptions to HTTP (status_code, detail).

    Inject this into services to centralize error-to-HTTP mapping with a
    resource label used in 404 messages.
    """

    resource_name: str = "Venue"
    store_name: str = "Catalog store"

    def to_http(
        self,
        exc: Exception,
        resource_id: int | str | None = None,
    ) -> tuple[int, str]:
        """Map an exception to (status_code, detail) for HTTP responses.

        Args:
            exc: The exception raised by the service, engine or store.
            resource_id: Optional identifier to include in detail (e.g. a venue id).

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, (VenueNotFoundError, LookupError)):
            detail = str(exc) or f"{self.resource_name} not found"
            if resource_id is not None and not str(exc):
                detail = f"{self.resource_name} '{resource_id}' not found"
            return (404, detail)
        if isinstance(exc, CatalogStoreError):
            return (503, f"{self.store_name} unavailable")
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            detail = "Request timed out"
            if resource_id is not None:
                detail = f"Request to {self.store_name} timed out for '{resource_id}'"
            return (504, detail)
        if isinstance(exc, ValueError):
            return (400, str(exc) or "Invalid request")
        return (500, "Internal server error")

    def raise_http(
        self,
        exc: Exception,
        resource_id: int | str | None = None,
    ) -> None:
        """Map exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc, resource_id=resource_id)
        raise HTTPException(status_code=status_code, detail=detail) from exc
