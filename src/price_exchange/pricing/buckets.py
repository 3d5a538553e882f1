"""Popularity buckets derived from a product's relative order ratio."""
from enum import Enum


class Popularity(str, Enum):
    """Popularity bucket of a product within its venue."""

    ZERO = "zero"
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def classify(ratio: float, thresholds: tuple[float, float, float]) -> Popularity:
    """Bucket a normalized order ratio in [0, 1]."""
    if ratio <= 0:
        return Popularity.ZERO
    very_low, low, medium = thresholds
    if ratio < very_low:
        return Popularity.VERY_LOW
    if ratio < low:
        return Popularity.LOW
    if ratio < medium:
        return Popularity.MEDIUM
    return Popularity.HIGH


def band_bounds(
    bucket: Popularity, thresholds: tuple[float, float, float]
) -> tuple[float, float]:
    """Ratio interval covered by a non-zero bucket."""
    edges = (0.0, *thresholds, 1.0)
    index = {
        Popularity.VERY_LOW: 0,
        Popularity.LOW: 1,
        Popularity.MEDIUM: 2,
        Popularity.HIGH: 3,
    }[bucket]
    return edges[index], edges[index + 1]
