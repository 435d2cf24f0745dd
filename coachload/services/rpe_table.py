"""RPE → reference load table for a 60-minute session.

Low efforts are disproportionately cheap: RPE 1 maps to 20 AU and RPE 10 to
140 AU, a 7x spread rather than 10x.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping

from coachload.services.rounding import round_half_up

RPE_MIN = 1
RPE_MAX = 10

_DEFAULT_LOADS: dict[int, int] = {
    1: 20,    # very light
    2: 30,
    3: 40,
    4: 50,
    5: 60,
    6: 70,
    7: 80,    # hard
    8: 100,
    9: 120,
    10: 140,  # maximal
}


def normalize_rpe(rpe: float) -> int:
    """Round to the nearest integer RPE and clamp into [1, 10]."""
    if rpe is None or not math.isfinite(rpe):
        return RPE_MIN
    return max(RPE_MIN, min(RPE_MAX, round_half_up(rpe)))


@dataclass(frozen=True)
class RpeLoadTable:
    loads: Mapping[int, float] = field(default_factory=lambda: dict(_DEFAULT_LOADS))

    def __post_init__(self) -> None:
        missing = [lvl for lvl in range(RPE_MIN, RPE_MAX + 1) if lvl not in self.loads]
        if missing:
            raise ValueError(f"RPE table missing levels: {missing}")
        values = [self.loads[lvl] for lvl in range(RPE_MIN, RPE_MAX + 1)]
        if any(v < 0 for v in values):
            raise ValueError("RPE table loads must be non-negative")
        if any(b < a for a, b in zip(values, values[1:])):
            raise ValueError("RPE table loads must be non-decreasing in RPE")

    @classmethod
    def from_mapping(cls, raw: Mapping) -> "RpeLoadTable":
        """Build a table from JSON-style data where keys may be strings."""
        return cls(loads={int(k): float(v) for k, v in raw.items()})

    def lookup(self, rpe: float) -> float:
        level = normalize_rpe(rpe)
        base = self.loads.get(level)
        if base is None:
            return float(level * 10)
        return float(base)


DEFAULT_RPE_TABLE = RpeLoadTable()
