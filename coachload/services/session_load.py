"""Session internal load (TSS, in AU) from RPE and duration.

The model is linear in duration and table-driven in intensity:
``au = round(table[rpe] * duration / 60)``. Coaches enter integer RPE, so a
lookup table is used instead of a continuous exertion curve.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from coachload.services.rounding import round_half_up
from coachload.services.rpe_table import DEFAULT_RPE_TABLE, RpeLoadTable, normalize_rpe


@dataclass(frozen=True)
class SessionLoadResult:
    """Load for a single logged session."""
    rpe: int               # normalized RPE actually used for lookup
    duration_min: float
    au: int


def session_load(rpe: float, duration_minutes: float, table: RpeLoadTable = DEFAULT_RPE_TABLE) -> int:
    """Compute session load in AU. Total: bad duration gives 0, bad RPE is clamped."""
    if duration_minutes is None or not math.isfinite(duration_minutes) or duration_minutes <= 0:
        return 0
    base_load = table.lookup(rpe)
    return max(0, round_half_up(base_load * duration_minutes / 60))


def compute_session_load(
    rpe: float,
    duration_minutes: float,
    table: RpeLoadTable = DEFAULT_RPE_TABLE,
) -> SessionLoadResult:
    return SessionLoadResult(
        rpe=normalize_rpe(rpe),
        duration_min=duration_minutes if duration_minutes and duration_minutes > 0 else 0,
        au=session_load(rpe, duration_minutes, table),
    )


def as_date(value: Any) -> date:
    """Coerce a date, datetime or ISO string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def record_load(record: dict, table: RpeLoadTable = DEFAULT_RPE_TABLE) -> int:
    """Load for one load-log record: stored session_load if positive, else recomputed."""
    stored: Optional[float] = record.get("session_load")
    if stored is not None and float(stored) > 0:
        return max(0, round_half_up(float(stored)))
    return session_load(float(record.get("rpe") or 0), float(record.get("duration_minutes") or 0), table)


def daily_loads(records: Iterable[dict], table: RpeLoadTable = DEFAULT_RPE_TABLE) -> dict[date, int]:
    """Sum load-log records per calendar day.

    Each record should have: session_date, and either session_load or
    rpe + duration_minutes.
    """
    totals: dict[date, int] = {}
    for r in records:
        day = as_date(r["session_date"])
        totals[day] = totals.get(day, 0) + record_load(r, table)
    return totals
