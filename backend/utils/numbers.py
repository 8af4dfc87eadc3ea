"""
Numeric helpers shared by the scoring code.
"""

import math


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (``round`` would bank it)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))
