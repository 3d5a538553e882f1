"""Exchange service: administrative triggers over the engine, rebalancer and watcher.

ExchangeService wires the price engine, rebalancer, task registry and
subscription registry together and maps their errors to HTTP.
"""
import logging

from price_exchange.broadcast import SubscriptionRegistry
from price_exchange.catalog import CatalogStoreABC
from price_exchange.core import (CatalogStoreError, ExchangeErrorMapper,
                                 TaskKind, TaskRegistry, VenueNotFoundError)
from price_exchange.db.models import PriceChangeReason
from price_exchange.pricing import PriceEngine, Rebalancer
from price_exchange.schemas import (ExchangeResponse, ExchangeStatus,
                                    PriceChangeView, ProductView)

logger = logging.getLogger(__name__)

# Exceptions we map to HTTP; all others propagate (e.g. bugs, BaseException).
_EXCHANGE_EXCEPTIONS: tuple[type[Exception], ...] = (
    CatalogStoreError,
    LookupError,
    ValueError,
    TimeoutError,
)


class ExchangeService:
    """Entry point for the start/stop/reset/order triggers and watch control."""

    def __init__(
        self,
        store: CatalogStoreABC,
        engine: PriceEngine,
        rebalancer: Rebalancer,
        tasks: TaskRegistry,
        subscriptions: SubscriptionRegistry,
        error_mapper: ExchangeErrorMapper | None = None,
        *,
        default_rebalance_interval_ms: int = 300_000,
        recompute_on_rebalance: bool = True,
    ) -> None:
        self._store = store
        self._engine = engine
        self._rebalancer = rebalancer
        self._tasks = tasks
        self._subscriptions = subscriptions
        self._error_mapper = error_mapper or ExchangeErrorMapper()
        self._default_interval_ms = default_rebalance_interval_ms
        self._recompute_on_rebalance = recompute_on_rebalance

    @property
    def subscriptions(self) -> SubscriptionRegistry:
        return self._subscriptions

    # ---- Exchange (rebalance task) ----
    async def rebalance_tick(self, venue_id: int) -> None:
        """One rebalance firing: decay counters, then optionally reprice."""
        self._rebalancer.rebalance(venue_id)
        if self._recompute_on_rebalance:
            await self._engine.recompute(venue_id, PriceChangeReason.REBALANCE_DECAY)

    async def start_exchange(
        self, venue_id: int, rebalance_interval_ms: int | None = None
    ) -> ExchangeResponse:
        """Start (or restart) the venue's rebalance task. Raises HTTPException on failure."""
        interval_ms = rebalance_interval_ms or self._default_interval_ms
        try:
            venue = await self._store.get_venue(venue_id)
            if venue is None:
                raise VenueNotFoundError(venue_id)
            products = await self._store.find_products_by_venue(venue_id)
            if not products:
                raise VenueNotFoundError(venue_id, f"Venue '{venue_id}' has no products")
        except _EXCHANGE_EXCEPTIONS as e:
            self._error_mapper.raise_http(e, resource_id=venue_id)

        async def tick() -> None:
            await self.rebalance_tick(venue_id)

        self._tasks.start(TaskKind.REBALANCE, venue_id, interval_ms / 1000, tick)
        logger.info(
            "Exchange started for venue %s (%d products, rebalance every %dms)",
            venue_id,
            len(products),
            interval_ms,
        )
        return ExchangeResponse(
            message="Order-driven pricing is active.",
            data={
                "venue": venue.name,
                "productCount": len(products),
                "rebalanceInterval": interval_ms,
            },
        )

    def stop_exchange(self, venue_id: int) -> ExchangeResponse:
        """Stop the venue's rebalance task; succeeds when none was running."""
        stopped = self._tasks.cancel(TaskKind.REBALANCE, venue_id)
        if stopped:
            logger.info("Exchange stopped for venue %s", venue_id)
        return ExchangeResponse(
            message="Price updates stopped." if stopped else "Exchange was not running.",
            data={"venueId": venue_id, "wasRunning": stopped},
        )

    def reset_prices(self, venue_id: int) -> ExchangeResponse:
        """Clear order counts and momentum for the venue."""
        self._rebalancer.reset(venue_id)
        return ExchangeResponse(
            message="Order counts and price momentum were reset.",
            data={"venueId": venue_id},
        )

    async def record_order(
        self, venue_id: int, product_ids: list[int]
    ) -> list[PriceChangeView]:
        """Run the price engine for one purchase. Raises HTTPException on store errors."""
        try:
            changes = await self._engine.record_order(product_ids, venue_id)
        except _EXCHANGE_EXCEPTIONS as e:
            self._error_mapper.raise_http(e, resource_id=venue_id)
        return [
            PriceChangeView(
                product_id=c.product.id,
                product_name=c.product.name,
                old_price=c.history.old_price,
                new_price=c.history.new_price,
                change_percentage=c.history.change_percentage,
                reason=c.history.reason,
                created_at=c.history.created_at,
            )
            for c in changes
        ]

    # ---- Watch control ----
    async def start_watch(self, venue_id: int) -> ExchangeResponse:
        try:
            products = await self._subscriptions.start_watch(venue_id)
        except _EXCHANGE_EXCEPTIONS as e:
            self._error_mapper.raise_http(e, resource_id=venue_id)
        return ExchangeResponse(
            message="Watching venue prices.",
            data={"venueId": venue_id, "trackedProducts": len(products)},
        )

    def stop_watch(self, venue_id: int) -> ExchangeResponse:
        stopped = self._subscriptions.stop_watch(venue_id)
        return ExchangeResponse(
            message="Stopped watching venue prices." if stopped else "Venue was not watched.",
            data={"venueId": venue_id, "wasWatched": stopped},
        )

    async def sync_watch(self, venue_id: int) -> ExchangeResponse:
        try:
            synced = await self._subscriptions.sync(venue_id)
        except _EXCHANGE_EXCEPTIONS as e:
            self._error_mapper.raise_http(e, resource_id=venue_id)
        return ExchangeResponse(
            message=f"{synced} product prices synchronized.",
            data={"venueId": venue_id, "synced": synced},
        )

    # ---- Queries ----
    async def products(self, venue_id: int) -> list[ProductView]:
        """Current products with last broadcast price. Raises HTTPException on store errors."""
        try:
            return await self._subscriptions.watcher.products_view(venue_id)
        except _EXCHANGE_EXCEPTIONS as e:
            self._error_mapper.raise_http(e, resource_id=venue_id)

    def status(self) -> ExchangeStatus:
        rebalancing = self._tasks.venues(TaskKind.REBALANCE)
        watched = self._subscriptions.watched()
        return ExchangeStatus(
            running=bool(rebalancing or watched),
            rebalancing_venues=rebalancing,
            watched_venues=watched,
        )

    async def close(self) -> None:
        """Stop every recurring task. Call from app lifespan shutdown."""
        await self._tasks.stop_all()
