"""Tunable constants of the demand-driven price curve.

Each field can be overridden through settings, e.g.
EXCHANGE_PRICING__DECAY_FACTOR=0.5.
"""
from pydantic import BaseModel, Field, model_validator

from price_exchange.pricing.buckets import Popularity


class SpeedPair(BaseModel):
    """Smoothing speeds for one popularity bucket."""

    rising: float = Field(gt=0, le=1)
    falling: float = Field(gt=0, le=1)


class CapPair(BaseModel):
    """Maximum step per recompute, as a fraction of the current price."""

    rising: float = Field(ge=0, le=1)
    falling: float = Field(ge=0, le=1)


class PricingConfig(BaseModel):
    """Tunable constants of the demand-driven price curve."""

    # Upper bounds (exclusive) of the very low, low and medium ratio bands;
    # ratios at or above the last bound are "high".
    band_thresholds: tuple[float, float, float] = (0.25, 0.5, 0.75)
    # Target-position sub-range per band, increasing with popularity.
    band_targets: dict[Popularity, tuple[float, float]] = {
        Popularity.VERY_LOW: (0.05, 0.25),
        Popularity.LOW: (0.25, 0.45),
        Popularity.MEDIUM: (0.45, 0.70),
        Popularity.HIGH: (0.70, 0.95),
    }
    # Zero-order products target this fraction of their current position.
    zero_order_decay: float = Field(default=0.85, ge=0, le=1)
    speeds: dict[Popularity, SpeedPair] = {
        Popularity.ZERO: SpeedPair(rising=0.10, falling=0.50),
        Popularity.VERY_LOW: SpeedPair(rising=0.15, falling=0.40),
        Popularity.LOW: SpeedPair(rising=0.20, falling=0.30),
        Popularity.MEDIUM: SpeedPair(rising=0.30, falling=0.25),
        Popularity.HIGH: SpeedPair(rising=0.40, falling=0.20),
    }
    caps: dict[Popularity, CapPair] = {
        Popularity.ZERO: CapPair(rising=0.02, falling=0.10),
        Popularity.VERY_LOW: CapPair(rising=0.02, falling=0.08),
        Popularity.LOW: CapPair(rising=0.03, falling=0.06),
        Popularity.MEDIUM: CapPair(rising=0.04, falling=0.05),
        Popularity.HIGH: CapPair(rising=0.05, falling=0.05),
    }
    decay_factor: float = Field(default=0.65, gt=0, lt=1)
    price_epsilon: float = Field(default=0.01, gt=0)
    default_min_ratio: float = Field(default=0.7, gt=0)
    default_max_ratio: float = Field(default=1.5, gt=0)

    @model_validator(mode="after")
    def _check_tables(self) -> "PricingConfig":
        lo, mid, hi = self.band_thresholds
        if not 0 < lo < mid < hi <= 1:
            raise ValueError("band_thresholds must be increasing within (0, 1]")
        banded = [p for p in Popularity if p is not Popularity.ZERO]
        missing = [p.value for p in banded if p not in self.band_targets]
        if missing:
            raise ValueError(f"band_targets missing buckets: {missing}")
        previous_end = 0.0
        for bucket in banded:
            start, end = self.band_targets[bucket]
            if not previous_end <= start <= end <= 1:
                raise ValueError("band_targets must be increasing sub-ranges of [0, 1]")
            previous_end = end
        for table, name in ((self.speeds, "speeds"), (self.caps, "caps")):
            missing = [p.value for p in Popularity if p not in table]
            if missing:
                raise ValueError(f"{name} missing buckets: {missing}")
        if self.default_min_ratio > self.default_max_ratio:
            raise ValueError("default_min_ratio must not exceed default_max_ratio")
        return self


