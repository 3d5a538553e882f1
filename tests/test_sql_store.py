import pytest
from sqlalchemy.exc import OperationalError

from price_exchange.catalog import SQLCatalogStore
from price_exchange.core import CatalogStoreError
from price_exchange.db.models import PriceChangeReason, PriceHistory, Product, Venue
from price_exchange.db.sessions import get_session, init_db, make_engine


@pytest.fixture
def db_engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    with get_session(engine) as session:
        session.add(Venue(id=1, name="Main Bar"))
        session.add(Venue(id=2, name="Empty"))
        session.add(Product(id=2, venue_id=1, name="Cider", regular_price=6.0, current_price=6.0))
        session.add(Product(id=1, venue_id=1, name="Lager", regular_price=5.0))
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(db_engine):
    return SQLCatalogStore(db_engine)


@pytest.mark.asyncio
async def test_get_venue(sql_store):
    venue = await sql_store.get_venue(1)
    assert venue.name == "Main Bar"
    assert await sql_store.get_venue(99) is None


@pytest.mark.asyncio
async def test_find_products_ordered_by_id(sql_store):
    products = await sql_store.find_products_by_venue(1)
    assert [p.id for p in products] == [1, 2]
    assert await sql_store.find_products_by_venue(2) == []


@pytest.mark.asyncio
async def test_save_product_persists_prices(sql_store):
    [lager, _] = await sql_store.find_products_by_venue(1)
    lager.previous_price = 5.0
    lager.current_price = 5.2
    saved = await sql_store.save_product(lager)
    assert saved.current_price == 5.2

    [reloaded, _] = await sql_store.find_products_by_venue(1)
    assert reloaded.current_price == 5.2
    assert reloaded.previous_price == 5.0


@pytest.mark.asyncio
async def test_append_history_assigns_id(sql_store, db_engine):
    entry = await sql_store.append_history(
        PriceHistory(
            product_id=1,
            old_price=5.0,
            new_price=5.2,
            change_percentage=4.0,
            reason=PriceChangeReason.ORDER_RECEIVED,
        )
    )
    assert entry.id is not None
    with get_session(db_engine) as session:
        stored = session.get(PriceHistory, entry.id)
        assert stored.reason is PriceChangeReason.ORDER_RECEIVED


@pytest.mark.asyncio
async def test_sqlalchemy_errors_become_store_errors(sql_store, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr("price_exchange.catalog.sql_store.select", broken)
    with pytest.raises(CatalogStoreError):
        await sql_store.find_products_by_venue(1)
