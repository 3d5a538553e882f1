"""Core abstractions: recurring tasks, exceptions, error mapping, rounding."""
from price_exchange.core.error_mapper import ExchangeErrorMapper
from price_exchange.core.exceptions import (
    CatalogStoreError,
    PriceInvariantError,
    VenueNotFoundError,
)
from price_exchange.core.tasks import RecurringTask, TaskKind, TaskRegistry
from price_exchange.core.utils import change_percentage, round2

__all__ = [
    "CatalogStoreError",
    "ExchangeErrorMapper",
    "PriceInvariantError",
    "RecurringTask",
    "TaskKind",
    "TaskRegistry",
    "VenueNotFoundError",
    "change_percentage",
    "round2",
]
