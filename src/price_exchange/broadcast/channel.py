"""Topic-based notification channel; one topic per venue."""
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

from price_exchange.schemas import StreamMessage

logger = logging.getLogger(__name__)

PRICE_UPDATE = "price-update"
BULK_PRICE_UPDATE = "bulk-price-update"
INITIAL_PRICES = "initial-prices"
ERROR = "error"


class NotificationChannelABC(ABC):
    """Publish primitive delivering events to a topic's subscribers."""

    @abstractmethod
    async def publish(self, topic: int, event: str, data: Any) -> int:
        """Send an event to every subscriber of topic; return how many got it."""

    @abstractmethod
    def join(self, topic: int, subscriber: Any) -> None:
        """Add subscriber to topic."""

    @abstractmethod
    def leave(self, topic: int, subscriber: Any) -> None:
        """Remove subscriber from topic. No-op when absent."""

    @abstractmethod
    def members(self, topic: int) -> int:
        """Number of subscribers currently in topic."""


class WebSocketChannel(NotificationChannelABC):
    """Channel whose subscribers are accepted FastAPI WebSockets.

    Messages are StreamMessage JSON ({"event": ..., "data": ...}). A socket
    that fails to receive is dropped from the topic; other sockets still
    get the event.
    """

    def __init__(self) -> None:
        self._topics: defaultdict[int, list[WebSocket]] = defaultdict(list)

    def join(self, topic: int, subscriber: WebSocket) -> None:
        sockets = self._topics[topic]
        if subscriber not in sockets:
            sockets.append(subscriber)

    def leave(self, topic: int, subscriber: WebSocket) -> None:
        sockets = self._topics.get(topic)
        if not sockets:
            return
        if subscriber in sockets:
            sockets.remove(subscriber)
        if not sockets:
            del self._topics[topic]

    def members(self, topic: int) -> int:
        return len(self._topics.get(topic, ()))

    async def publish(self, topic: int, event: str, data: Any) -> int:
        message = StreamMessage(event=event, data=data).model_dump(mode="json")
        delivered = 0
        for socket in list(self._topics.get(topic, ())):
            try:
                await socket.send_json(message)
                delivered += 1
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Dropping subscriber of venue %s: %s", topic, exc)
                self.leave(topic, socket)
        return delivered
