"""Subscription registry: venue watch state and the watcher's poll tasks."""
import logging
from enum import Enum

from price_exchange.broadcast.watcher import ChangeWatcher
from price_exchange.core.exceptions import CatalogStoreError
from price_exchange.core.tasks import TaskKind, TaskRegistry
from price_exchange.db.models import Product
from price_exchange.schemas import WatchInfo

logger = logging.getLogger(__name__)


class WatchStatus(str, Enum):
    UNWATCHED = "unwatched"
    WATCHED = "watched"


class SubscriptionRegistry:
    """Tracks observers per venue and keeps exactly one poll task per watched venue.

    The first subscriber (0 -> 1) starts polling and takes the baseline
    snapshot; the last one leaving (1 -> 0) stops polling and drops it.
    """

    def __init__(
        self,
        watcher: ChangeWatcher,
        tasks: TaskRegistry,
        poll_interval_seconds: float = 5.0,
    ) -> None:
        self._watcher = watcher
        self._tasks = tasks
        self._poll_interval = poll_interval_seconds
        self._subscribers: dict[int, int] = {}

    @property
    def watcher(self) -> ChangeWatcher:
        return self._watcher

    def status(self, venue_id: int) -> WatchStatus:
        if self._tasks.is_active(TaskKind.WATCH, venue_id):
            return WatchStatus.WATCHED
        return WatchStatus.UNWATCHED

    def subscribers(self, venue_id: int) -> int:
        return self._subscribers.get(venue_id, 0)

    async def subscribe(self, venue_id: int) -> list[Product]:
        """Add an observer; returns the venue's current products for it.

        The count is taken before the store is read, so an observer leaving
        meanwhile cannot stop the watch under the joining one.

        Raises:
            CatalogStoreError: If the products cannot be loaded; the count
                is restored.
        """
        self._subscribers[venue_id] = self.subscribers(venue_id) + 1
        try:
            if self.status(venue_id) is WatchStatus.UNWATCHED:
                products = await self.start_watch(venue_id)
            else:
                products = await self._watcher.current_products(venue_id)
        except CatalogStoreError:
            self.unsubscribe(venue_id)
            raise
        logger.info(
            "Venue %s subscribers: %d", venue_id, self.subscribers(venue_id)
        )
        return products

    def unsubscribe(self, venue_id: int) -> int:
        """Remove an observer; stops watching when none are left."""
        count = self.subscribers(venue_id)
        if count == 0:
            return 0
        count -= 1
        if count:
            self._subscribers[venue_id] = count
        else:
            del self._subscribers[venue_id]
            self.stop_watch(venue_id)
        logger.info("Venue %s subscribers: %d", venue_id, count)
        return count

    async def start_watch(self, venue_id: int) -> list[Product]:
        """Take the baseline snapshot and (re)start the poll task."""
        products = await self._watcher.take_snapshot(venue_id)

        async def tick() -> None:
            await self._watcher.poll_once(venue_id)

        self._tasks.start(TaskKind.WATCH, venue_id, self._poll_interval, tick)
        return products

    def stop_watch(self, venue_id: int) -> bool:
        """Stop polling and drop the snapshot. No-op when not watched."""
        stopped = self._tasks.cancel(TaskKind.WATCH, venue_id)
        self._watcher.forget(venue_id)
        if stopped:
            logger.info("Stopped watching venue %s", venue_id)
        return stopped

    async def sync(self, venue_id: int) -> int:
        """Re-baseline a watched venue's snapshot without emitting; 0 when unwatched."""
        if self.status(venue_id) is WatchStatus.UNWATCHED:
            return 0
        products = await self._watcher.take_snapshot(venue_id)
        if self.status(venue_id) is WatchStatus.UNWATCHED:
            # Stopped while the store was read.
            self._watcher.forget(venue_id)
            return 0
        return len(products)

    def watched(self) -> list[WatchInfo]:
        return [
            WatchInfo(
                venue_id=venue_id,
                status=WatchStatus.WATCHED.value,
                subscribers=self.subscribers(venue_id),
                tracked_products=self._watcher.tracked_count(venue_id),
            )
            for venue_id in self._tasks.venues(TaskKind.WATCH)
        ]

    def info(self, venue_id: int) -> WatchInfo:
        return WatchInfo(
            venue_id=venue_id,
            status=self.status(venue_id).value,
            subscribers=self.subscribers(venue_id),
            tracked_products=self._watcher.tracked_count(venue_id),
        )
