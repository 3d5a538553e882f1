"""Main module for the venue price exchange service."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from price_exchange.broadcast import ChangeWatcher, SubscriptionRegistry, WebSocketChannel
from price_exchange.catalog import SQLCatalogStore
from price_exchange.config import get_settings
from price_exchange.core import ExchangeErrorMapper, TaskRegistry
from price_exchange.db.sessions import init_db, make_engine
from price_exchange.pricing import DemandState, PriceEngine, Rebalancer
from price_exchange.routers import exchange_router, stream_router, watch_router
from price_exchange.services import ExchangeService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Build the store, engine and registries at startup; stop tasks and close on shutdown."""
    settings = get_settings()

    db_engine = make_engine(settings.database_url, echo=settings.sql_echo)
    init_db(db_engine)
    store = SQLCatalogStore(db_engine)

    # Transient per-venue state (singletons)
    state = DemandState()
    tasks = TaskRegistry()
    channel = WebSocketChannel()

    engine = PriceEngine(store, state, settings.pricing)
    rebalancer = Rebalancer(state, decay_factor=settings.pricing.decay_factor)
    watcher = ChangeWatcher(store, channel)
    subscriptions = SubscriptionRegistry(
        watcher, tasks, poll_interval_seconds=settings.poll_interval_seconds
    )
    exchange_service = ExchangeService(
        store,
        engine,
        rebalancer,
        tasks,
        subscriptions,
        ExchangeErrorMapper(),
        default_rebalance_interval_ms=settings.rebalance_interval_ms,
        recompute_on_rebalance=settings.recompute_on_rebalance,
    )

    fastapi_app.state.db_engine = db_engine
    fastapi_app.state.store = store
    fastapi_app.state.channel = channel
    fastapi_app.state.subscriptions = subscriptions
    fastapi_app.state.exchange_service = exchange_service
    logger.info("Price exchange ready (database %s)", db_engine.url.render_as_string())

    yield

    await exchange_service.close()
    try:
        await store.close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing store %s: %s", type(store).__name__, exc)


app = FastAPI(
    title="Venue Price Exchange",
    description="Demand-driven venue pricing with live price streams",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(stream_router)
app.include_router(exchange_router)
app.include_router(watch_router)


@app.get("/")
def health():
    """Return health check status."""
    return {"status": "ok"}


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    settings = get_settings()
    uvicorn.run(
        "price_exchange.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )
