"""Exchange routes: start/stop/reset order-driven pricing and record orders.

Thin HTTP handlers; ExchangeService owns orchestration and error mapping.
"""
from fastapi import APIRouter, Body

from price_exchange.deps import ExchangeServiceDep
from price_exchange.schemas import (ExchangeResponse, ExchangeStatus, OrderRequest,
                                    PriceChangeView, ProductView,
                                    StartExchangeRequest)

router = APIRouter(tags=["exchange"])


@router.post("/venues/{venue_id}/exchange/start", response_model=ExchangeResponse)
async def start_exchange(
    venue_id: int,
    service: ExchangeServiceDep,
    body: StartExchangeRequest | None = Body(default=None),
) -> ExchangeResponse:
    """Start (or restart) the venue's periodic rebalance.

    Body (optional): {"rebalanceIntervalMs": 60000}. Defaults to the
    configured interval. 404 when the venue is unknown or has no products.
    """
    interval = body.rebalance_interval_ms if body else None
    return await service.start_exchange(venue_id, interval)


@router.post("/venues/{venue_id}/exchange/stop", response_model=ExchangeResponse)
async def stop_exchange(venue_id: int, service: ExchangeServiceDep) -> ExchangeResponse:
    """Stop the venue's rebalance. Succeeds when nothing was running."""
    return service.stop_exchange(venue_id)


@router.post("/venues/{venue_id}/exchange/reset", response_model=ExchangeResponse)
async def reset_prices(venue_id: int, service: ExchangeServiceDep) -> ExchangeResponse:
    """Clear order counts and momentum; prices stay where they are."""
    return service.reset_prices(venue_id)


@router.post("/venues/{venue_id}/orders", response_model=list[PriceChangeView])
async def record_order(
    venue_id: int, order: OrderRequest, service: ExchangeServiceDep
) -> list[PriceChangeView]:
    """Record one purchase and return the price changes it caused."""
    return await service.record_order(venue_id, order.product_ids)


@router.get("/venues/{venue_id}/products", response_model=list[ProductView])
async def get_products(venue_id: int, service: ExchangeServiceDep) -> list[ProductView]:
    """Current prices of the venue's products with the last broadcast price."""
    return await service.products(venue_id)


@router.get("/exchange/status", response_model=ExchangeStatus)
async def get_status(service: ExchangeServiceDep) -> ExchangeStatus:
    return service.status()
