"""Periodic decay of order counters, modelling recency of demand."""
import logging

from price_exchange.pricing.state import DemandState

logger = logging.getLogger(__name__)


class Rebalancer:
    """Decays or clears a venue's demand state; never touches prices."""

    def __init__(self, state: DemandState, decay_factor: float = 0.65) -> None:
        if not 0 < decay_factor < 1:
            raise ValueError("decay_factor must be in (0, 1)")
        self._state = state
        self._decay_factor = decay_factor

    def rebalance(self, venue_id: int) -> dict[int, int]:
        """Multiply every counter by the decay factor, floor, drop zeros."""
        before = len(self._state.order_counts(venue_id))
        remaining = self._state.decay(venue_id, self._decay_factor)
        logger.debug(
            "Rebalanced venue %s: %d counters -> %d", venue_id, before, len(remaining)
        )
        return remaining

    def reset(self, venue_id: int) -> None:
        """Clear all counters and momentum for the venue."""
        self._state.clear(venue_id)
        logger.info("Reset order counts and momentum for venue %s", venue_id)
