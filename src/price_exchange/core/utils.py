"""Shared numeric helpers for prices."""
import math

DECIMALS = 2


def round2(x: float | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)


def ceil2(x: float) -> float:
    """Smallest 2-decimal value >= x (tolerates float noise)."""
    return math.ceil(round(x * 100, 6)) / 100


def floor2(x: float) -> float:
    """Largest 2-decimal value <= x (tolerates float noise)."""
    return math.floor(round(x * 100, 6)) / 100


def change_percentage(old: float, new: float) -> float:
    """Percent change from old to new, rounded to 2 decimals; 0 when old is 0."""
    if not old:
        return 0.0
    return round2((new - old) / old * 100)
