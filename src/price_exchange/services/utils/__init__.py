"""Helpers shared by the service layer and routers."""
from price_exchange.services.utils.stream_handler import handle_venue_socket

__all__ = ["handle_venue_socket"]
