"""Venue price stream over WebSocket.

Connect to /venues/stream, then send {"action": "subscribe", "venueId": 1}.
The server answers with initial-prices and pushes price-update and
bulk-price-update events while the venue is watched.
"""
from fastapi import APIRouter, WebSocket

from price_exchange.deps import ChannelWs, SubscriptionsWs
from price_exchange.services.utils import handle_venue_socket

router = APIRouter(tags=["stream"])


@router.websocket("/venues/stream")
async def stream_venues(
    websocket: WebSocket, channel: ChannelWs, subscriptions: SubscriptionsWs
) -> None:
    await handle_venue_socket(websocket, channel, subscriptions)
