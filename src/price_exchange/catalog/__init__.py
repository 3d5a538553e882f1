"""Catalog store: the durable home of venues, products and price history."""
from price_exchange.catalog.catalog_store_abc import CatalogStoreABC
from price_exchange.catalog.sql_store import SQLCatalogStore

__all__ = ["CatalogStoreABC", "SQLCatalogStore"]
