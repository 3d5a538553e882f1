"""Polling change detection for venue prices.

Prices changed by the engine are not pushed; each watched venue is polled
on a fixed interval and the stored prices are diffed against the last
broadcast snapshot. Only the final price per interval is observed.
"""
import logging
from datetime import datetime

from price_exchange.broadcast.channel import (BULK_PRICE_UPDATE, PRICE_UPDATE,
                                              NotificationChannelABC)
from price_exchange.catalog import CatalogStoreABC
from price_exchange.core.utils import change_percentage
from price_exchange.db.models import Product
from price_exchange.schemas import BulkPriceUpdate, PriceUpdate, ProductView

logger = logging.getLogger(__name__)


class ChangeWatcher:
    """Owns the last-known price snapshot of every watched venue."""

    def __init__(self, store: CatalogStoreABC, channel: NotificationChannelABC) -> None:
        self._store = store
        self._channel = channel
        self._snapshots: dict[int, dict[int, float | None]] = {}

    def is_tracking(self, venue_id: int) -> bool:
        return venue_id in self._snapshots

    def last_price(self, venue_id: int, product_id: int) -> float | None:
        return self._snapshots.get(venue_id, {}).get(product_id)

    def tracked_count(self, venue_id: int) -> int:
        return len(self._snapshots.get(venue_id, {}))

    async def take_snapshot(self, venue_id: int) -> list[Product]:
        """Record current prices as the baseline; emits nothing."""
        products = await self._store.find_products_by_venue(venue_id)
        self._snapshots[venue_id] = {p.id: p.current_price for p in products}
        logger.info("Tracking %d product prices for venue %s", len(products), venue_id)
        return products

    def forget(self, venue_id: int) -> None:
        """Discard the venue's snapshot."""
        self._snapshots.pop(venue_id, None)

    async def detect_changes(self, venue_id: int) -> list[PriceUpdate]:
        """Diff stored prices against the snapshot and advance it; [] once forgotten."""
        products = await self._store.find_products_by_venue(venue_id)
        snapshot = self._snapshots.get(venue_id)
        if snapshot is None:
            return []
        now = datetime.utcnow()
        updates: list[PriceUpdate] = []
        for product in products:
            new_price = product.current_price
            if product.id not in snapshot:
                # Products added after the baseline start being tracked silently.
                snapshot[product.id] = new_price
                continue
            old_price = snapshot[product.id]
            if old_price is None or new_price is None or old_price == new_price:
                snapshot[product.id] = new_price
                continue
            updates.append(
                PriceUpdate(
                    product_id=product.id,
                    product_name=product.name,
                    old_price=old_price,
                    new_price=new_price,
                    change_percentage=change_percentage(old_price, new_price),
                    updated_at=now,
                )
            )
            snapshot[product.id] = new_price
        return updates

    async def poll_once(self, venue_id: int) -> list[PriceUpdate]:
        """Detect changes and publish them: each one, then one batch."""
        updates = await self.detect_changes(venue_id)
        if not updates:
            return updates
        logger.info("Broadcasting %d price changes for venue %s", len(updates), venue_id)
        for update in updates:
            await self._publish(venue_id, PRICE_UPDATE, update.to_wire())
        bulk = BulkPriceUpdate(venue_id=venue_id, updates=updates)
        await self._publish(venue_id, BULK_PRICE_UPDATE, bulk.to_wire())
        return updates

    async def _publish(self, venue_id: int, event: str, data: dict) -> None:
        try:
            await self._channel.publish(venue_id, event, data)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Publishing %s for venue %s failed", event, venue_id)

    async def current_products(self, venue_id: int) -> list[Product]:
        return await self._store.find_products_by_venue(venue_id)

    async def products_view(self, venue_id: int) -> list[ProductView]:
        """Current products with the last price broadcast for each."""
        products = await self.current_products(venue_id)
        return [
            ProductView.from_product(p, self.last_price(venue_id, p.id)) for p in products
        ]
