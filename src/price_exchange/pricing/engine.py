"""Demand-driven price engine.

Each purchase bumps order counters; every product of the venue is then
repriced from its popularity relative to the venue's best seller, smoothed
through momentum and bounded per step.
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from price_exchange.catalog import CatalogStoreABC
from price_exchange.core.exceptions import CatalogStoreError
from price_exchange.core.utils import change_percentage
from price_exchange.db.models import PriceChangeReason, PriceHistory, Product
from price_exchange.pricing.config import PricingConfig
from price_exchange.pricing.curve import compute_step, effective_band, effective_price
from price_exchange.pricing.state import DemandState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceChange:
    """A persisted price change and its history entry."""

    product: Product
    history: PriceHistory


class PriceEngine:
    """Reprices a venue's products from relative demand.

    Calls for the same venue are serialized by a per-venue lock, since the
    store awaits between reading and writing prices. Different venues run
    concurrently.
    """

    def __init__(
        self,
        store: CatalogStoreABC,
        state: DemandState,
        config: PricingConfig | None = None,
    ) -> None:
        self._store = store
        self._state = state
        self._config = config or PricingConfig()
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def config(self) -> PricingConfig:
        return self._config

    @property
    def state(self) -> DemandState:
        return self._state

    async def record_order(
        self, product_ids: Iterable[int], venue_id: int
    ) -> list[PriceChange]:
        """Count one purchase of each product and reprice the venue.

        Args:
            product_ids: Products in the purchase; duplicates count once.
            venue_id: Venue the purchase happened at.

        Returns:
            Persisted changes; products whose price moved less than a cent
            are left alone and omitted.

        Raises:
            CatalogStoreError: If the venue's products cannot be loaded.
        """
        ordered = list(dict.fromkeys(product_ids))
        async with self._locks[venue_id]:
            products = await self._store.find_products_by_venue(venue_id)
            if not products:
                logger.info("Order for venue %s ignored: no products", venue_id)
                return []
            known = {p.id for p in products}
            for pid in ordered:
                if pid in known:
                    self._state.increment(venue_id, pid)
                else:
                    logger.warning("Order for venue %s names unknown product %s", venue_id, pid)
            return await self._reprice(venue_id, products, set(ordered) & known, None)

    async def recompute(
        self,
        venue_id: int,
        reason: PriceChangeReason = PriceChangeReason.MARKET_ADJUSTMENT,
    ) -> list[PriceChange]:
        """Reprice the venue from current counters without a new order."""
        async with self._locks[venue_id]:
            products = await self._store.find_products_by_venue(venue_id)
            if not products:
                return []
            return await self._reprice(venue_id, products, set(), reason)

    async def _reprice(
        self,
        venue_id: int,
        products: list[Product],
        ordered: set[int],
        reason: PriceChangeReason | None,
    ) -> list[PriceChange]:
        counts = self._state.order_counts(venue_id)
        leader = max([counts.get(p.id, 0) for p in products] + [1])

        changes: list[PriceChange] = []
        for product in products:
            ratio = counts.get(product.id, 0) / leader
            current = effective_price(product)
            band = effective_band(product, self._config)
            step = compute_step(
                current,
                band,
                self._state.momentum(venue_id, product.id),
                ratio,
                self._config,
            )

            if abs(step.price - current) < self._config.price_epsilon - 1e-9:
                self._state.set_momentum(venue_id, product.id, step.momentum)
                continue
            if reason is not None:
                tag = reason
            elif product.id in ordered:
                tag = PriceChangeReason.ORDER_RECEIVED
            else:
                tag = PriceChangeReason.MARKET_ADJUSTMENT

            saved = await self._save_price(product, current, step.price)
            if saved is None:
                # Momentum stays put so the next cycle retries from the stored price.
                continue
            self._state.set_momentum(venue_id, product.id, step.momentum)
            history = await self._append_history(saved, current, step.price, tag)
            if history is not None:
                changes.append(PriceChange(product=saved, history=history))
        return changes

    async def _save_price(
        self, product: Product, old_price: float, new_price: float
    ) -> Product | None:
        product.previous_price = old_price
        product.current_price = new_price
        try:
            saved = await self._store.save_product(product)
        except CatalogStoreError:
            logger.exception("Failed to persist price for product %s", product.id)
            return None
        logger.info("Product %s price %s -> %s", saved.name, old_price, new_price)
        return saved

    async def _append_history(
        self,
        product: Product,
        old_price: float,
        new_price: float,
        reason: PriceChangeReason,
    ) -> PriceHistory | None:
        try:
            return await self._store.append_history(
                PriceHistory(
                    product_id=product.id,
                    old_price=old_price,
                    new_price=new_price,
                    change_percentage=change_percentage(old_price, new_price),
                    reason=reason,
                )
            )
        except CatalogStoreError:
            logger.error(
                "Product %s price changed %s -> %s (%s) but no history entry was written",
                product.id,
                old_price,
                new_price,
                reason.value,
                exc_info=True,
            )
            return None
