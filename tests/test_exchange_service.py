import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import HTTPException

from price_exchange.broadcast import ChangeWatcher, SubscriptionRegistry
from price_exchange.core import TaskKind, TaskRegistry
from price_exchange.db.models import PriceChangeReason
from price_exchange.pricing import Rebalancer
from price_exchange.services import ExchangeService


@pytest_asyncio.fixture
async def service(store, engine, channel):
    tasks = TaskRegistry()
    subscriptions = SubscriptionRegistry(ChangeWatcher(store, channel), tasks, 0.05)
    svc = ExchangeService(
        store,
        engine,
        Rebalancer(engine.state),
        tasks,
        subscriptions,
        default_rebalance_interval_ms=60_000,
    )
    yield svc
    await svc.close()


@pytest.mark.asyncio
async def test_start_exchange_reports_venue(service):
    response = await service.start_exchange(1)
    assert response.success
    assert response.data == {"venue": "Main Bar", "productCount": 3, "rebalanceInterval": 60_000}
    assert service.status().rebalancing_venues == [1]


@pytest.mark.asyncio
async def test_start_exchange_twice_keeps_one_task(service):
    await service.start_exchange(1, 1000)
    await service.start_exchange(1, 2000)
    assert service.status().rebalancing_venues == [1]


@pytest.mark.asyncio
@pytest.mark.parametrize("venue_id", [7, 2])
async def test_start_exchange_unknown_or_empty_venue_is_404(service, store, venue_id):
    store.add_venue(2, "Empty")
    with pytest.raises(HTTPException) as info:
        await service.start_exchange(venue_id)
    assert info.value.status_code == 404
    assert service.status().rebalancing_venues == []


@pytest.mark.asyncio
async def test_start_exchange_store_down_is_503(service, store):
    store.fail = True
    with pytest.raises(HTTPException) as info:
        await service.start_exchange(1)
    assert info.value.status_code == 503


@pytest.mark.asyncio
async def test_stop_exchange_is_idempotent(service):
    await service.start_exchange(1)
    assert service.stop_exchange(1).data["wasRunning"] is True
    assert service.stop_exchange(1).data["wasRunning"] is False
    assert service.status().running is False


@pytest.mark.asyncio
async def test_rebalance_tick_decays_then_recomputes(service, engine, store):
    for _ in range(3):
        engine.state.increment(1, 1)
    await service.rebalance_tick(1)
    assert engine.state.order_count(1, 1) == 1
    assert store.history
    assert {h.reason for h in store.history} == {PriceChangeReason.REBALANCE_DECAY}


@pytest.mark.asyncio
async def test_rebalance_tick_without_recompute(store, engine, channel):
    tasks = TaskRegistry()
    svc = ExchangeService(
        store,
        engine,
        Rebalancer(engine.state),
        tasks,
        SubscriptionRegistry(ChangeWatcher(store, channel), tasks),
        recompute_on_rebalance=False,
    )
    engine.recompute = AsyncMock()
    await svc.rebalance_tick(1)
    engine.recompute.assert_not_awaited()


@pytest.mark.asyncio
async def test_running_exchange_decays_on_its_interval(service, engine):
    for _ in range(4):
        engine.state.increment(1, 1)
    await service.start_exchange(1, 50)
    await asyncio.sleep(0.08)
    # 4 * 0.65 = 2.6 -> 2 after exactly one firing.
    assert engine.state.order_count(1, 1) == 2


@pytest.mark.asyncio
async def test_record_order_returns_changes(service, store):
    changes = await service.record_order(1, [1])
    assert changes
    ordered = next(c for c in changes if c.product_id == 1)
    assert ordered.reason is PriceChangeReason.ORDER_RECEIVED
    assert ordered.new_price == store.price(1)


@pytest.mark.asyncio
async def test_record_order_store_down_is_503(service, store):
    store.fail = True
    with pytest.raises(HTTPException) as info:
        await service.record_order(1, [1])
    assert info.value.status_code == 503


@pytest.mark.asyncio
async def test_reset_prices_clears_state(service, engine):
    await service.record_order(1, [1])
    service.reset_prices(1)
    assert engine.state.order_counts(1) == {}
    assert engine.state.momenta(1) == {}


@pytest.mark.asyncio
async def test_watch_controls(service):
    started = await service.start_watch(1)
    assert started.data["trackedProducts"] == 3
    assert (await service.sync_watch(1)).data["synced"] == 3
    assert [w.venue_id for w in service.status().watched_venues] == [1]
    assert service.stop_watch(1).data["wasWatched"] is True
    assert (await service.sync_watch(1)).data["synced"] == 0


@pytest.mark.asyncio
async def test_products_view(service):
    views = await service.products(1)
    assert [v.product_id for v in views] == [1, 2, 3]
    assert all(v.last_tracked_price is None for v in views)
