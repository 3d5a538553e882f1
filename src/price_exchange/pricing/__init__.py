"""Demand-driven pricing: curve, state, engine and rebalancer."""
from price_exchange.pricing.buckets import Popularity
from price_exchange.pricing.config import CapPair, PricingConfig, SpeedPair
from price_exchange.pricing.engine import PriceChange, PriceEngine
from price_exchange.pricing.rebalancer import Rebalancer
from price_exchange.pricing.state import DemandState

__all__ = [
    "CapPair",
    "DemandState",
    "Popularity",
    "PriceChange",
    "PriceEngine",
    "PricingConfig",
    "Rebalancer",
    "SpeedPair",
]
