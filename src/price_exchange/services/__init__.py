"""Service layer: business logic between routers and the pricing/broadcast packages."""
from price_exchange.services.exchange_service import ExchangeService

__all__ = ["ExchangeService"]
