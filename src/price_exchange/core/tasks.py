"""Venue-scoped recurring tasks on the shared event loop.

Each task is an asyncio.Task looping "wait interval, run tick" until its
stop_event is set. Ticks of one task never overlap; a stop takes effect
before the next firing and lets an in-flight tick run to completion.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

logger = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[object]]


class TaskKind(str, Enum):
    """Kinds of recurring work kept per venue."""

    WATCH = "watch"
    REBALANCE = "rebalance"


TaskKey = tuple[TaskKind, int]


class RecurringTask:
    """A named, cancellable handle around one polling loop."""

    def __init__(self, name: str, interval_seconds: float, tick: Tick) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.interval_seconds = interval_seconds
        self._tick = tick
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=self.name)

    def stop(self) -> None:
        """Ask the loop to exit before its next firing."""
        self._stop_event.set()

    async def wait_stopped(self, timeout: float | None = None) -> None:
        """Wait for the loop (and any in-flight tick) to finish."""
        if self._task is None:
            return
        await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)

    async def _run(self) -> None:
        logger.debug("Task %s started (every %.3fs)", self.name, self.interval_seconds)
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break
            self.ticks += 1
            try:
                await self._tick()
            except Exception:  # pylint: disable=broad-except
                self.failures += 1
                logger.exception("Task %s tick %d failed", self.name, self.ticks)
        logger.debug("Task %s stopped after %d ticks", self.name, self.ticks)


class TaskRegistry:
    """Recurring tasks keyed by (kind, venue_id); at most one per key."""

    def __init__(self) -> None:
        self._tasks: dict[TaskKey, RecurringTask] = {}

    def start(
        self,
        kind: TaskKind,
        venue_id: int,
        interval_seconds: float,
        tick: Tick,
    ) -> RecurringTask:
        """Install a task for the key, stopping any task already there."""
        self.cancel(kind, venue_id)
        handle = RecurringTask(f"{kind.value}:{venue_id}", interval_seconds, tick)
        self._tasks[(kind, venue_id)] = handle
        handle.start()
        return handle

    def cancel(self, kind: TaskKind, venue_id: int) -> bool:
        """Stop and forget the task for the key. No-op when absent."""
        handle = self._tasks.pop((kind, venue_id), None)
        if handle is None:
            return False
        handle.stop()
        return True

    def get(self, kind: TaskKind, venue_id: int) -> RecurringTask | None:
        return self._tasks.get((kind, venue_id))

    def is_active(self, kind: TaskKind, venue_id: int) -> bool:
        return (kind, venue_id) in self._tasks

    def venues(self, kind: TaskKind) -> list[int]:
        """Venue ids with an active task of this kind, sorted."""
        return sorted(v for k, v in self._tasks if k == kind)

    def __len__(self) -> int:
        return len(self._tasks)

    async def stop_all(self, timeout: float = 5.0) -> None:
        """Stop every task and wait for in-flight ticks to finish."""
        handles = list(self._tasks.values())
        self._tasks.clear()
        for handle in handles:
            handle.stop()
        for handle in handles:
            try:
                await handle.wait_stopped(timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Task %s did not stop within %.1fs", handle.name, timeout)
