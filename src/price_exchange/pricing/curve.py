"""Pure functions of the demand-driven price curve.

A price lives inside its band [min, max]; its normalized position is
(price - min) / (max - min). Demand sets a target position, momentum
smooths toward it, and a per-step cap bounds how far one recompute can
move the price.
"""
from dataclasses import dataclass

from price_exchange.core.exceptions import PriceInvariantError
from price_exchange.core.utils import ceil2, floor2, round2
from price_exchange.db.models import Product
from price_exchange.pricing.buckets import Popularity, band_bounds, classify
from price_exchange.pricing.config import PricingConfig


@dataclass(frozen=True)
class PriceBand:
    """Effective price band of a product."""

    low: float
    high: float

    @property
    def width(self) -> float:
        return self.high - self.low

    def position(self, price: float) -> float:
        """Normalized position of price in the band, clipped to [0, 1]."""
        if self.width <= 0:
            return 0.0
        return min(1.0, max(0.0, (price - self.low) / self.width))

    def price_at(self, position: float) -> float:
        return self.low + position * self.width

    def clamp_cents(self, price: float) -> float:
        """Round to cents and clamp to the band's inward-rounded bounds."""
        low, high = ceil2(self.low), floor2(self.high)
        if low > high:
            return round2(self.low)
        return min(high, max(low, round2(price)))


@dataclass(frozen=True)
class PriceStep:
    """Result of one recompute for a single product."""

    popularity: Popularity
    target: float
    momentum: float
    price: float


def effective_band(product: Product, config: PricingConfig) -> PriceBand:
    """Band from the product's min/max, defaulting to ratios of regular price."""
    low = product.min_price
    high = product.max_price
    if low is None:
        low = product.regular_price * config.default_min_ratio
    if high is None:
        high = product.regular_price * config.default_max_ratio
    return PriceBand(low=float(low), high=float(max(low, high)))


def effective_price(product: Product) -> float:
    """Current price, falling back to the regular price for unpriced products."""
    if product.current_price is None:
        return float(product.regular_price)
    return float(product.current_price)


def target_position(
    ratio: float, current_position: float, config: PricingConfig
) -> float:
    """Map a normalized order ratio to a target position in [0, 1].

    Monotonic in ratio; each popularity band interpolates within its own
    sub-range. Zero-order products decay from where they currently are.
    """
    bucket = classify(ratio, config.band_thresholds)
    if bucket is Popularity.ZERO:
        return current_position * config.zero_order_decay
    ratio_lo, ratio_hi = band_bounds(bucket, config.band_thresholds)
    start, end = config.band_targets[bucket]
    span = ratio_hi - ratio_lo
    fraction = (min(ratio, ratio_hi) - ratio_lo) / span if span > 0 else 1.0
    return start + fraction * (end - start)


def smoothing_speed(
    bucket: Popularity, rising: bool, config: PricingConfig
) -> float:
    speeds = config.speeds[bucket]
    return speeds.rising if rising else speeds.falling


def step_cap(bucket: Popularity, rising: bool, config: PricingConfig) -> float:
    """Largest allowed move in one recompute, as a fraction of current price."""
    caps = config.caps[bucket]
    return caps.rising if rising else caps.falling


def compute_step(
    current_price: float,
    band: PriceBand,
    momentum: float | None,
    ratio: float,
    config: PricingConfig,
) -> PriceStep:
    """Run one smoothing + capping step for a product.

    Args:
        current_price: Price before this step.
        band: Effective [min, max] band.
        momentum: Previous momentum, or None to start from the current position.
        ratio: Order count relative to the venue leader, in [0, 1].
        config: Curve constants.

    Returns:
        PriceStep with the new momentum and the rounded, capped, clamped price.

    Raises:
        PriceInvariantError: If the final price is outside the band.
    """
    bucket = classify(ratio, config.band_thresholds)
    position = band.position(current_price)
    if momentum is None:
        momentum = position
    target = target_position(ratio, position, config)
    rising = target > momentum
    speed = smoothing_speed(bucket, rising, config)
    new_momentum = min(1.0, max(0.0, momentum + speed * (target - momentum)))

    proposed = band.price_at(new_momentum)
    delta = proposed - current_price
    max_step = abs(current_price) * step_cap(bucket, delta > 0, config)
    # The cap limit is rounded toward the current price so it holds in cents.
    if delta > 0:
        proposed = min(round2(proposed), floor2(current_price + max_step))
    elif delta < 0:
        proposed = max(round2(proposed), ceil2(current_price - max_step))
    price = band.clamp_cents(proposed)

    if band.width >= 0.01 and not band.low <= price <= band.high:
        raise PriceInvariantError(
            f"price {price} outside band [{band.low}, {band.high}]"
        )
    return PriceStep(popularity=bucket, target=target, momentum=new_momentum, price=price)
