import asyncio
import logging
import random

import pytest

from price_exchange.core import CatalogStoreError
from price_exchange.db.models import PriceChangeReason
from price_exchange.pricing import PriceEngine, Rebalancer

MAX_RISING_CAP = 0.05
MAX_FALLING_CAP = 0.10


@pytest.mark.asyncio
async def test_half_of_leader_orders_raises_price_within_cap(engine, store, state):
    # Product 1 ends with 5 orders against a leader with 10.
    for _ in range(4):
        state.increment(1, 1)
    for _ in range(9):
        state.increment(1, 2)

    changes = await engine.record_order([1, 2], venue_id=1)

    by_id = {c.product.id: c for c in changes}
    price = store.price(1)
    assert 10.0 < price <= 10.0 * (1 + 0.04)
    assert price == pytest.approx(10.18)
    assert by_id[1].history.reason is PriceChangeReason.ORDER_RECEIVED
    assert by_id[1].history.old_price == 10.0
    assert by_id[1].product.previous_price == 10.0


@pytest.mark.asyncio
async def test_unordered_product_drifts_toward_min_without_crossing_it(engine, store):
    rebalancer = Rebalancer(engine.state)
    prices = [store.price(3)]
    for _ in range(40):
        rebalancer.rebalance(1)
        await engine.recompute(1, PriceChangeReason.REBALANCE_DECAY)
        prices.append(store.price(3))

    assert prices[-1] < prices[0]
    for old, new in zip(prices, prices[1:]):
        assert new <= old
        assert new >= 7.0
        assert (old - new) / old <= MAX_FALLING_CAP + 1e-9
    assert {h.reason for h in store.history} == {PriceChangeReason.REBALANCE_DECAY}


@pytest.mark.asyncio
async def test_random_orders_keep_prices_in_band_and_steps_bounded(engine, store):
    rng = random.Random(7)
    rebalancer = Rebalancer(engine.state)
    for i in range(200):
        ids = rng.sample([1, 2, 3], rng.randint(1, 3))
        await engine.record_order(ids, venue_id=1)
        if i % 15 == 0:
            rebalancer.rebalance(1)

    assert store.history
    for pid in (1, 2, 3):
        assert 7.0 <= store.price(pid) <= 15.0
    for entry in store.history:
        assert 7.0 <= entry.new_price <= 15.0
        move = (entry.new_price - entry.old_price) / entry.old_price
        assert -MAX_FALLING_CAP - 1e-9 <= move <= MAX_RISING_CAP + 1e-9
        assert abs(entry.new_price - entry.old_price) >= 0.01 - 1e-9


@pytest.mark.asyncio
async def test_duplicate_ids_count_once(engine, state):
    await engine.record_order([2, 2, 2], venue_id=1)
    assert state.order_count(1, 2) == 1


@pytest.mark.asyncio
async def test_unknown_products_are_not_counted(engine, state):
    await engine.record_order([99], venue_id=1)
    assert state.order_counts(1) == {}


@pytest.mark.asyncio
async def test_unknown_venue_returns_empty(engine, state):
    assert await engine.record_order([1], venue_id=42) == []
    assert state.order_counts(42) == {}


@pytest.mark.asyncio
async def test_unordered_products_are_tagged_market_adjustment(engine, store):
    changes = await engine.record_order([1], venue_id=1)
    reasons = {c.product.id: c.history.reason for c in changes}
    assert reasons[1] is PriceChangeReason.ORDER_RECEIVED
    assert all(
        reason is PriceChangeReason.MARKET_ADJUSTMENT
        for pid, reason in reasons.items()
        if pid != 1
    )


@pytest.mark.asyncio
async def test_unpriced_product_starts_from_regular_price(store, state):
    store.add_product(4, 1, regular_price=20.0)
    engine = PriceEngine(store, state)
    await engine.record_order([4], venue_id=1)
    assert 14.0 <= store.price(4) <= 30.0


@pytest.mark.asyncio
async def test_store_failure_propagates_from_load(engine, store):
    store.fail = True
    with pytest.raises(CatalogStoreError):
        await engine.record_order([1], venue_id=1)


@pytest.mark.asyncio
async def test_save_failure_skips_product(engine, store, monkeypatch):
    async def broken_save(product):
        raise CatalogStoreError("write failed")

    monkeypatch.setattr(store, "save_product", broken_save)
    assert await engine.record_order([1], venue_id=1) == []
    assert store.price(1) == 10.0


@pytest.mark.asyncio
async def test_concurrent_orders_for_one_venue_are_serialized(engine, store, state):
    await asyncio.gather(*(engine.record_order([1], venue_id=1) for _ in range(5)))
    assert state.order_count(1, 1) == 5
    history_for_1 = [h for h in store.history if h.product_id == 1]
    for older, newer in zip(history_for_1, history_for_1[1:]):
        assert newer.old_price == older.new_price


@pytest.mark.asyncio
async def test_save_failure_leaves_momentum_for_retry(engine, store, state, monkeypatch):
    saved = store.save_product

    async def fail_product_1(product):
        if product.id == 1:
            raise CatalogStoreError("write failed")
        return await saved(product)

    monkeypatch.setattr(store, "save_product", fail_product_1)
    changes = await engine.record_order([1], venue_id=1)

    assert 1 not in {c.product.id for c in changes}
    assert state.momentum(1, 1) is None
    assert state.momentum(1, 2) is not None

    monkeypatch.setattr(store, "save_product", saved)
    retried = await engine.recompute(1)
    assert 1 in {c.product.id for c in retried}


@pytest.mark.asyncio
async def test_history_failure_keeps_price_and_logs(engine, store, state, monkeypatch, caplog):
    async def broken_history(entry):
        raise CatalogStoreError("history table locked")

    monkeypatch.setattr(store, "append_history", broken_history)
    with caplog.at_level(logging.ERROR, logger="price_exchange.pricing.engine"):
        changes = await engine.record_order([1], venue_id=1)

    assert changes == []
    assert store.price(1) != 10.0
    assert state.momentum(1, 1) is not None
    assert "no history entry was written" in caplog.text
