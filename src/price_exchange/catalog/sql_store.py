"""SQLModel-backed catalog store."""
import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from price_exchange.catalog.catalog_store_abc import CatalogStoreABC
from price_exchange.core.exceptions import CatalogStoreError
from price_exchange.db.models import PriceHistory, Product, Venue
from price_exchange.db.sessions import get_session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SQLCatalogStore(CatalogStoreABC):
    """Catalog store over a SQLAlchemy engine.

    SQLModel sessions are synchronous, so each call runs in a worker thread
    and the event loop keeps serving other venues meanwhile.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _run(self, op: Callable[[Session], T], what: str) -> T:
        def call() -> T:
            with get_session(self._engine) as session:
                return op(session)

        try:
            return await asyncio.to_thread(call)
        except SQLAlchemyError as exc:
            logger.warning("Catalog store %s failed: %s", what, exc)
            raise CatalogStoreError(f"{what} failed") from exc

    async def get_venue(self, venue_id: int) -> Venue | None:
        return await self._run(lambda s: s.get(Venue, venue_id), "get_venue")

    async def find_products_by_venue(self, venue_id: int) -> list[Product]:
        def op(session: Session) -> list[Product]:
            stmt = select(Product).where(Product.venue_id == venue_id).order_by(Product.id)
            return list(session.exec(stmt).all())

        return await self._run(op, "find_products_by_venue")

    async def save_product(self, product: Product) -> Product:
        def op(session: Session) -> Product:
            product.updated_at = datetime.utcnow()
            merged = session.merge(product)
            session.flush()
            session.refresh(merged)
            return merged

        return await self._run(op, "save_product")

    async def append_history(self, entry: PriceHistory) -> PriceHistory:
        def op(session: Session) -> PriceHistory:
            session.add(entry)
            session.flush()
            session.refresh(entry)
            return entry

        return await self._run(op, "append_history")

    async def close(self) -> None:
        await asyncio.to_thread(self._engine.dispose)
