"""WebSocket handling for venue price streams: subscribe, push, clean up."""
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from price_exchange.broadcast import (ERROR, INITIAL_PRICES, NotificationChannelABC,
                                      SubscriptionRegistry)
from price_exchange.core import CatalogStoreError
from price_exchange.db.models import Product
from price_exchange.schemas import ClientMessage, ProductView, StreamMessage

logger = logging.getLogger(__name__)

SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"


async def handle_venue_socket(
    websocket: WebSocket,
    channel: NotificationChannelABC,
    registry: SubscriptionRegistry,
) -> None:
    """Accept the socket and serve subscribe/unsubscribe messages until it closes.

    A subscribe joins the venue topic and answers with initial-prices; a
    failed subscribe answers with an error event and leaves the topic again.
    On disconnect every venue the socket joined is left, so the last
    observer of a venue stops its watch.
    """
    await websocket.accept()
    joined: set[int] = set()
    try:
        while True:
            raw = await websocket.receive_json()
            try:
                message = ClientMessage.model_validate(raw)
            except ValidationError as exc:
                await _send(websocket, ERROR, {"message": f"Invalid message: {exc.error_count()} error(s)"})
                continue
            venue_id = message.venue_id
            if message.action == SUBSCRIBE:
                first = venue_id not in joined
                if first:
                    channel.join(venue_id, websocket)
                try:
                    if first:
                        products = await registry.subscribe(venue_id)
                    else:
                        products = await registry.watcher.current_products(venue_id)
                except CatalogStoreError as exc:
                    if first:
                        channel.leave(venue_id, websocket)
                    logger.warning("Subscribe to venue %s failed: %s", venue_id, exc)
                    await _send(websocket, ERROR, {"venueId": venue_id, "message": str(exc)})
                    continue
                joined.add(venue_id)
                await _send(websocket, INITIAL_PRICES, _views(registry, venue_id, products))
            elif message.action == UNSUBSCRIBE:
                if venue_id in joined:
                    joined.discard(venue_id)
                    channel.leave(venue_id, websocket)
                    registry.unsubscribe(venue_id)
            else:
                await _send(websocket, ERROR, {"message": f"Unknown action: {message.action}"})
    except WebSocketDisconnect:
        logger.debug("Venue stream client disconnected")
    except Exception as exc:
        logger.exception("Venue stream error: %s", exc)
        try:
            await websocket.close(code=1011, reason="Stream error")
        except RuntimeError:
            pass
    finally:
        for venue_id in joined:
            channel.leave(venue_id, websocket)
            registry.unsubscribe(venue_id)


def _views(
    registry: SubscriptionRegistry, venue_id: int, products: list[Product]
) -> list[dict[str, Any]]:
    watcher = registry.watcher
    return [
        ProductView.from_product(p, watcher.last_price(venue_id, p.id)).to_wire()
        for p in products
    ]


async def _send(websocket: WebSocket, event: str, data: Any) -> None:
    await websocket.send_json(StreamMessage(event=event, data=data).model_dump(mode="json"))
