import asyncio

import pytest
from fastapi import HTTPException

from price_exchange.core import CatalogStoreError, ExchangeErrorMapper, VenueNotFoundError


@pytest.fixture
def mapper():
    return ExchangeErrorMapper()


@pytest.mark.parametrize(
    "exc, status",
    [
        (VenueNotFoundError(3), 404),
        (LookupError(), 404),
        (CatalogStoreError("down"), 503),
        (asyncio.TimeoutError(), 504),
        (ValueError("bad interval"), 400),
        (RuntimeError("bug"), 500),
    ],
)
def test_status_codes(mapper, exc, status):
    assert mapper.to_http(exc, resource_id=3)[0] == status


def test_not_found_detail_names_resource(mapper):
    assert mapper.to_http(LookupError(), resource_id=3) == (404, "Venue '3' not found")
    assert mapper.to_http(VenueNotFoundError(3)) == (404, "Venue '3' not found")


def test_store_detail_hides_cause(mapper):
    assert mapper.to_http(CatalogStoreError("password=secret")) == (
        503,
        "Catalog store unavailable",
    )


def test_raise_http_chains_cause(mapper):
    err = CatalogStoreError("down")
    with pytest.raises(HTTPException) as info:
        mapper.raise_http(err)
    assert info.value.status_code == 503
    assert info.value.__cause__ is err
