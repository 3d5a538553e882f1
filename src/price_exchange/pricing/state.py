"""Process-local demand state: order counters and price momentum per venue."""
import math
from collections import defaultdict


class DemandState:
    """Order counts and momentum, scoped by venue then product.

    Owned by one PriceEngine/Rebalancer pair and passed to both; nothing
    else mutates it. Lost on restart by design of the model.
    """

    def __init__(self) -> None:
        self._orders: defaultdict[int, dict[int, int]] = defaultdict(dict)
        self._momentum: defaultdict[int, dict[int, float]] = defaultdict(dict)

    # ---- Order counts ----
    def increment(self, venue_id: int, product_id: int) -> int:
        counts = self._orders[venue_id]
        counts[product_id] = max(0, counts.get(product_id, 0)) + 1
        return counts[product_id]

    def order_count(self, venue_id: int, product_id: int) -> int:
        return self._orders.get(venue_id, {}).get(product_id, 0)

    def order_counts(self, venue_id: int) -> dict[int, int]:
        """Copy of the venue's counters."""
        return dict(self._orders.get(venue_id, {}))

    def decay(self, venue_id: int, factor: float) -> dict[int, int]:
        """Scale every counter by factor, floor, and drop zeros."""
        counts = self._orders.get(venue_id)
        if not counts:
            return {}
        decayed = {pid: math.floor(count * factor) for pid, count in counts.items()}
        kept = {pid: count for pid, count in decayed.items() if count > 0}
        if kept:
            self._orders[venue_id] = kept
        else:
            del self._orders[venue_id]
        return dict(kept)

    # ---- Momentum ----
    def momentum(self, venue_id: int, product_id: int) -> float | None:
        return self._momentum.get(venue_id, {}).get(product_id)

    def set_momentum(self, venue_id: int, product_id: int, value: float) -> None:
        self._momentum[venue_id][product_id] = value

    def momenta(self, venue_id: int) -> dict[int, float]:
        return dict(self._momentum.get(venue_id, {}))

    # ---- Lifecycle ----
    def clear(self, venue_id: int) -> None:
        """Forget counters and momentum for one venue."""
        self._orders.pop(venue_id, None)
        self._momentum.pop(venue_id, None)
