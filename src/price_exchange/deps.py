"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

Lifespan (main.py) builds the store, engine, registries and service once
and attaches them to app.state; these getters are used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Request, WebSocket

from price_exchange.broadcast import NotificationChannelABC, SubscriptionRegistry
from price_exchange.services import ExchangeService


def get_exchange_service(request: Request) -> ExchangeService:
    """Resolve the ExchangeService from app.state (created at startup)."""
    return request.app.state.exchange_service


def get_channel_ws(websocket: WebSocket) -> NotificationChannelABC:
    """Resolve the notification channel for a WebSocket route."""
    return websocket.scope["app"].state.channel


def get_subscriptions_ws(websocket: WebSocket) -> SubscriptionRegistry:
    """Resolve the subscription registry for a WebSocket route."""
    return websocket.scope["app"].state.subscriptions


# Type aliases for route injection
ExchangeServiceDep = Annotated[ExchangeService, Depends(get_exchange_service)]
ChannelWs = Annotated[NotificationChannelABC, Depends(get_channel_ws)]
SubscriptionsWs = Annotated[SubscriptionRegistry, Depends(get_subscriptions_ws)]
