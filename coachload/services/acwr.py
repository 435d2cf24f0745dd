"""Acute:chronic workload ratio (ACWR).

ratio = mean daily load over the acute window / mean daily load over the
chronic window. Plain averages, no exponential decay. Window lengths are
whatever the caller passes, so the same function compares the last 7 vs 28
days or any two historical periods.

Interpretation bands are returned as data; nothing here blocks training.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Optional, Sequence

from coachload.services.aggregation import Change, change_indicator
from coachload.services.rounding import round_half_up, round_to


@dataclass(frozen=True)
class AcwrBands:
    under_max: float = 0.8     # below: undertrained
    optimal_max: float = 1.3   # [under_max, optimal_max]: optimal
    warning_max: float = 1.5   # (optimal_max, warning_max]: warning; above: danger


DEFAULT_ACWR_BANDS = AcwrBands()


@dataclass(frozen=True)
class LoadRatio:
    ratio: float
    acute_load: int
    chronic_load: int
    acute_daily_avg: float
    chronic_daily_avg: float
    zone: str


@dataclass(frozen=True)
class LoadRecommendation:
    zone: str
    action: str                    # reduce, hold, maintain, increase, build_history
    min_change_percent: int        # suggested weekly load change range
    max_change_percent: int
    message: str


@dataclass(frozen=True)
class PeriodComparison:
    ratio: float
    zone: str
    total_change: Change
    average_change: Change


_RECOMMENDATIONS: dict[str, LoadRecommendation] = {
    "danger": LoadRecommendation(
        "danger", "reduce", -50, -30,
        "Load spike well above baseline. Cut load 30-50% and prioritise recovery and light technical work.",
    ),
    "warning": LoadRecommendation(
        "warning", "hold", -10, 0,
        "Load rising fast. Avoid further jumps; hold or slightly reduce intensity.",
    ),
    "optimal": LoadRecommendation(
        "optimal", "maintain", 0, 10,
        "Load in the optimal range. Continue the program and progress gradually if needed.",
    ),
    "undertrained": LoadRecommendation(
        "undertrained", "increase", 10, 15,
        "Load below baseline. Increase volume or intensity 10-15% per week toward the optimal range.",
    ),
    "insufficient_history": LoadRecommendation(
        "insufficient_history", "build_history", 0, 0,
        "Not enough chronic load yet to judge the ratio. Keep logging sessions.",
    ),
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def acwr(acute_window_loads: Sequence[float], chronic_window_loads: Sequence[float]) -> float:
    """Ratio of mean daily acute load to mean daily chronic load; 0.0 without a chronic baseline."""
    chronic_avg = _mean(chronic_window_loads)
    if chronic_avg <= 0:
        return 0.0
    return _mean(acute_window_loads) / chronic_avg


def acwr_zone(ratio: float, bands: AcwrBands = DEFAULT_ACWR_BANDS, has_history: bool = True) -> str:
    if not has_history:
        return "insufficient_history"
    if ratio < bands.under_max:
        return "undertrained"
    if ratio <= bands.optimal_max:
        return "optimal"
    if ratio <= bands.warning_max:
        return "warning"
    return "danger"


def trailing_window(daily_loads: Mapping[date, float], end: date, days: int) -> list[float]:
    """Loads for the ``days`` days ending on ``end`` (inclusive); missing days are 0."""
    return [float(daily_loads.get(end - timedelta(days=offset), 0)) for offset in range(days - 1, -1, -1)]


def load_ratio(
    daily_loads: Mapping[date, float],
    as_of: date,
    acute_days: int = 7,
    chronic_days: int = 28,
    bands: AcwrBands = DEFAULT_ACWR_BANDS,
) -> LoadRatio:
    """ACWR for the windows ending on ``as_of``."""
    if acute_days <= 0 or chronic_days <= acute_days:
        raise ValueError(f"windows must satisfy 0 < acute < chronic (got {acute_days}, {chronic_days})")
    acute = trailing_window(daily_loads, as_of, acute_days)
    chronic = trailing_window(daily_loads, as_of, chronic_days)
    ratio = acwr(acute, chronic)
    chronic_avg = _mean(chronic)
    return LoadRatio(
        ratio=round_to(ratio, 2),
        acute_load=round_half_up(sum(acute)),
        chronic_load=round_half_up(sum(chronic)),
        acute_daily_avg=round_to(_mean(acute), 1),
        chronic_daily_avg=round_to(chronic_avg, 1),
        zone=acwr_zone(ratio, bands, has_history=chronic_avg > 0),
    )


def acwr_series(
    daily_loads: Mapping[date, float],
    start: date,
    end: date,
    acute_days: int = 7,
    chronic_days: int = 28,
    bands: AcwrBands = DEFAULT_ACWR_BANDS,
) -> list[tuple[date, LoadRatio]]:
    """Rolling ratio for every day from start to end (inclusive), for trend displays."""
    out: list[tuple[date, LoadRatio]] = []
    day = start
    while day <= end:
        out.append((day, load_ratio(daily_loads, day, acute_days, chronic_days, bands)))
        day += timedelta(days=1)
    return out


def load_recommendation(zone: str) -> Optional[LoadRecommendation]:
    return _RECOMMENDATIONS.get(zone)


def compare_periods(
    recent_loads: Sequence[float],
    baseline_loads: Sequence[float],
    bands: AcwrBands = DEFAULT_ACWR_BANDS,
) -> PeriodComparison:
    """Snapshot comparison of two arbitrary periods of daily loads."""
    ratio = acwr(recent_loads, baseline_loads)
    return PeriodComparison(
        ratio=round_to(ratio, 2),
        zone=acwr_zone(ratio, bands, has_history=_mean(baseline_loads) > 0),
        total_change=change_indicator(sum(recent_loads), sum(baseline_loads)),
        average_change=change_indicator(round_to(_mean(recent_loads), 1), round_to(_mean(baseline_loads), 1)),
    )


def bands_from_settings(settings) -> AcwrBands:
    return AcwrBands(
        under_max=settings.acwr_under_max,
        optimal_max=settings.acwr_optimal_max,
        warning_max=settings.acwr_warning_max,
    )
