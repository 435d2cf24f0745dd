from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (round_half_up(2.5) == 3)."""
    return int(math.floor(value + 0.5))


def round_to(value: float, places: int) -> float:
    """Half-up rounding to a fixed number of decimal places."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor
