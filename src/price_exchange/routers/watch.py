"""Watch routes: explicit control of a venue's change watcher."""
from fastapi import APIRouter

from price_exchange.deps import ExchangeServiceDep
from price_exchange.schemas import ExchangeResponse

router = APIRouter(prefix="/venues/{venue_id}/watch", tags=["watch"])


@router.post("/start", response_model=ExchangeResponse)
async def start_watch(venue_id: int, service: ExchangeServiceDep) -> ExchangeResponse:
    """Take a fresh snapshot and start polling the venue."""
    return await service.start_watch(venue_id)


@router.post("/stop", response_model=ExchangeResponse)
async def stop_watch(venue_id: int, service: ExchangeServiceDep) -> ExchangeResponse:
    return service.stop_watch(venue_id)


@router.post("/sync", response_model=ExchangeResponse)
async def sync_watch(venue_id: int, service: ExchangeServiceDep) -> ExchangeResponse:
    """Re-baseline the snapshot without emitting events."""
    return await service.sync_watch(venue_id)
