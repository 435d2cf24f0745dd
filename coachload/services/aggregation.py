"""Period aggregation: compliance, biomotor accumulation, weekly/monthly load.

Every completed session's exercises feed exactly one training component
through a single dispatch table keyed by exercise category:

- strength:  sets * reps * load          (kg volume)
- speed:     sets * load                 (m; load is distance per set)
- endurance: sets * reps * load / 1000   (km)
- technique, tactic: sets * reps         (reps; load ignored)

Unrecognised categories use the strength formula so logged work is never
dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional

import pandas as pd

from coachload.services.periodization import TrainingComponentTargets, WeekPlan
from coachload.services.rounding import round_half_up, round_to
from coachload.services.rpe_table import DEFAULT_RPE_TABLE, RpeLoadTable
from coachload.services.session_load import as_date, record_load, session_load

logger = logging.getLogger(__name__)


class ExerciseCategory(str, Enum):
    STRENGTH = "strength"
    SPEED = "speed"
    ENDURANCE = "endurance"
    TECHNIQUE = "technique"
    TACTIC = "tactic"


INTENSITY_LEVELS = ("High", "Med", "Low", "Rest")


def parse_category(value: object) -> ExerciseCategory:
    if isinstance(value, ExerciseCategory):
        return value
    text = str(value or "").strip().lower()
    try:
        return ExerciseCategory(text)
    except ValueError:
        logger.warning("Unknown exercise category %r, counted as strength", value)
        return ExerciseCategory.STRENGTH


@dataclass(frozen=True)
class Exercise:
    name: str
    category: ExerciseCategory | str
    sets: float = 0
    reps: float = 0
    load: float = 0


@dataclass
class TrainingSession:
    exercises: list[Exercise] = field(default_factory=list)
    session_date: Optional[date] = None
    intensity: str = "Rest"  # Rest / Low / Med / High
    is_done: bool = False
    rpe: Optional[float] = None
    duration_minutes: Optional[float] = None

    @property
    def is_planned(self) -> bool:
        """Rest days without exercise content are not planned sessions."""
        return bool(self.exercises)


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date  # inclusive

    def days(self) -> list[date]:
        n = (self.end - self.start).days + 1
        return [self.start + timedelta(days=i) for i in range(max(0, n))]

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class ComponentProgress:
    target: float
    actual: float
    percent: int      # 0-100, capped for display
    on_track: bool    # actual >= target


@dataclass(frozen=True)
class WeeklyLoad:
    total: int
    by_day: dict[date, int]
    recorded_days: int     # days taken from the load log
    recomputed_days: int   # days rebuilt from session RPE/duration


@dataclass(frozen=True)
class PeriodSummary:
    compliance: int
    planned_count: int
    realized_count: int
    actual: TrainingComponentTargets
    progress: dict[str, ComponentProgress]
    total_load: int
    daily_loads: dict[date, int]


@dataclass(frozen=True)
class TargetProgress:
    percent: int          # capped at 100
    raw_percent: int
    status: str           # on_target, nearly, over, in_progress, just_started


@dataclass(frozen=True)
class Change:
    diff: float
    percent: int


@dataclass(frozen=True)
class PeriodStats:
    total_load: float
    average_load: float   # over days with load
    max_load: float
    loaded_days: int


@dataclass(frozen=True)
class MonthVolume:
    name: str
    planned: int
    realized: int


# ---------------------------------------------------------------------------
# Biomotor accumulation
# ---------------------------------------------------------------------------

Formula = Callable[[float, float, float], float]

_CONTRIBUTIONS: dict[ExerciseCategory, tuple[str, Formula]] = {
    ExerciseCategory.STRENGTH: ("strength", lambda sets, reps, load: sets * reps * load),
    ExerciseCategory.SPEED: ("speed", lambda sets, reps, load: sets * load),
    ExerciseCategory.ENDURANCE: ("endurance", lambda sets, reps, load: sets * reps * load / 1000),
    ExerciseCategory.TECHNIQUE: ("technique", lambda sets, reps, load: sets * reps),
    ExerciseCategory.TACTIC: ("tactic", lambda sets, reps, load: sets * reps),
}


def exercise_contribution(exercise: Exercise) -> tuple[str, float]:
    """(component name, amount) this exercise adds. Missing reps count as 1."""
    component, formula = _CONTRIBUTIONS[parse_category(exercise.category)]
    sets = exercise.sets or 0
    reps = exercise.reps or 1
    load = exercise.load or 0
    return component, formula(sets, reps, load)


def actual_biomotor(sessions: Iterable[TrainingSession]) -> TrainingComponentTargets:
    """Accumulate completed work per training component."""
    totals = {name: 0.0 for name, _ in _CONTRIBUTIONS.values()}
    for s in sessions:
        if not s.is_done:
            continue
        for ex in s.exercises:
            component, amount = exercise_contribution(ex)
            totals[component] += amount
    return TrainingComponentTargets(**totals)


def compliance_index(sessions: Iterable[TrainingSession]) -> int:
    """Percent of planned (non-empty) sessions flagged done; 0 when nothing is planned."""
    planned = 0
    realized = 0
    for s in sessions:
        if s.is_planned:
            planned += 1
        if s.is_done:
            realized += 1
    if planned == 0:
        return 0
    return round_half_up(100 * realized / planned)


def component_percent(actual: float, target: float) -> int:
    if target <= 0:
        return 0
    return min(100, round_half_up(actual / target * 100))


def compare_components(
    targets: TrainingComponentTargets,
    actual: TrainingComponentTargets,
) -> dict[str, ComponentProgress]:
    """Target vs actual per component. ``targets`` must already be rounded week/season targets."""
    out: dict[str, ComponentProgress] = {}
    actual_map = actual.as_dict()
    for name, target in targets.as_dict().items():
        value = actual_map[name]
        out[name] = ComponentProgress(
            target=target,
            actual=value,
            percent=component_percent(value, target),
            on_track=value >= target,
        )
    return out


# ---------------------------------------------------------------------------
# Internal load
# ---------------------------------------------------------------------------

def weekly_internal_load(
    days: Iterable[date],
    recorded_loads: Mapping[date, float],
    sessions: Iterable[TrainingSession] = (),
    table: RpeLoadTable = DEFAULT_RPE_TABLE,
) -> WeeklyLoad:
    """Internal load per day, preferring the load log over recomputation.

    A day with a recorded load uses it as-is; only days without one are
    rebuilt from that day's session RPE and duration. This keeps a session
    that was both logged and planned from being counted twice.
    """
    recomputed: dict[date, int] = {}
    for s in sessions:
        if s.session_date is None or s.rpe is None or not s.duration_minutes:
            continue
        day = as_date(s.session_date)
        recomputed[day] = recomputed.get(day, 0) + session_load(s.rpe, s.duration_minutes, table)

    by_day: dict[date, int] = {}
    recorded_days = 0
    recomputed_days = 0
    for day in days:
        if day in recorded_loads:
            by_day[day] = max(0, round_half_up(float(recorded_loads[day])))
            recorded_days += 1
        elif day in recomputed:
            by_day[day] = recomputed[day]
            recomputed_days += 1
        else:
            by_day[day] = 0
    return WeeklyLoad(
        total=sum(by_day.values()),
        by_day=by_day,
        recorded_days=recorded_days,
        recomputed_days=recomputed_days,
    )


def aggregate(
    sessions: Iterable[TrainingSession],
    loads: Mapping[date, float],
    window: Optional[DateWindow] = None,
    targets: Optional[TrainingComponentTargets] = None,
    table: RpeLoadTable = DEFAULT_RPE_TABLE,
) -> PeriodSummary:
    """Summarise a period: compliance, biomotor totals vs targets, internal load.

    With a window, only dated sessions and loads inside it count. Without one,
    every session counts and the load covers every day that has data.
    """
    rows = list(sessions)
    if window is not None:
        rows = [s for s in rows if s.session_date is not None and window.contains(as_date(s.session_date))]
        days = window.days()
    else:
        seen = set(loads) | {as_date(s.session_date) for s in rows if s.session_date is not None}
        days = sorted(seen)

    planned = sum(1 for s in rows if s.is_planned)
    realized = sum(1 for s in rows if s.is_done)
    actual = actual_biomotor(rows)
    weekly = weekly_internal_load(days, loads, rows, table)

    summary = PeriodSummary(
        compliance=compliance_index(rows),
        planned_count=planned,
        realized_count=realized,
        actual=actual,
        progress=compare_components(targets, actual) if targets is not None else {},
        total_load=weekly.total,
        daily_loads=weekly.by_day,
    )
    logger.debug(
        "Aggregated %d sessions: compliance=%d total_load=%d",
        len(rows), summary.compliance, summary.total_load,
    )
    return summary


# ---------------------------------------------------------------------------
# Calendar buckets
# ---------------------------------------------------------------------------

def _load_frame(records: Iterable[dict], table: RpeLoadTable) -> pd.DataFrame:
    rows = [
        {
            "date": pd.Timestamp(as_date(r["session_date"])),
            "load": record_load(r, table),
            "rpe": r.get("rpe"),
        }
        for r in records
    ]
    frame = pd.DataFrame(rows, columns=["date", "load", "rpe"])
    frame["rpe"] = pd.to_numeric(frame["rpe"], errors="coerce")
    return frame


def _bucket_summary(records: Iterable[dict], freq: str, label: str, table: RpeLoadTable) -> pd.DataFrame:
    columns = [label, f"{label}_start", "total_load", "sessions", "avg_rpe"]
    d = _load_frame(records, table)
    if d.empty:
        return pd.DataFrame(columns=columns)
    d[label] = d["date"].dt.to_period(freq)
    out = d.groupby(label, as_index=False).agg(
        total_load=("load", "sum"),
        sessions=("load", "count"),
        avg_rpe=("rpe", "mean"),
    )
    out[f"{label}_start"] = out[label].map(lambda p: p.start_time.date())
    out[label] = out[label].astype(str)
    out["avg_rpe"] = out["avg_rpe"].fillna(0.0).map(lambda v: round_to(float(v), 1))
    return out[columns]


def weekly_load_summary(records: Iterable[dict], table: RpeLoadTable = DEFAULT_RPE_TABLE) -> pd.DataFrame:
    """Aggregate load-log records into Monday-start weeks.

    Returns a DataFrame with columns: week, week_start, total_load, sessions, avg_rpe.
    """
    return _bucket_summary(records, "W", "week", table)


def monthly_load_summary(records: Iterable[dict], table: RpeLoadTable = DEFAULT_RPE_TABLE) -> pd.DataFrame:
    """Aggregate load-log records into calendar months.

    Returns a DataFrame with columns: month, month_start, total_load, sessions, avg_rpe.
    """
    return _bucket_summary(records, "M", "month", table)


def target_progress(actual_load: float, target: float) -> TargetProgress:
    """Progress of a week's load against its target, with a display status."""
    if target <= 0:
        return TargetProgress(percent=0, raw_percent=0, status="just_started")
    raw = round_half_up(actual_load / target * 100)
    if raw > 110:
        status = "over"
    elif raw >= 90:
        status = "on_target"
    elif raw >= 70:
        status = "nearly"
    elif raw >= 50:
        status = "in_progress"
    else:
        status = "just_started"
    return TargetProgress(percent=min(100, raw), raw_percent=raw, status=status)


def change_indicator(current: float, previous: float) -> Change:
    diff = current - previous
    if previous != 0:
        percent = round_half_up(diff / previous * 100)
    else:
        percent = 100 if current > 0 else 0
    return Change(diff=diff, percent=percent)


def period_stats(loads: Iterable[float]) -> PeriodStats:
    values = [float(v) for v in loads]
    loaded = [v for v in values if v > 0]
    return PeriodStats(
        total_load=sum(values),
        average_load=round_to(sum(loaded) / len(loaded), 1) if loaded else 0.0,
        max_load=max(values, default=0.0),
        loaded_days=len(loaded),
    )


def weekly_target_compliance(weekly_totals: Iterable[float], target: float, threshold: float = 0.8) -> int:
    """Percent of trained weeks (non-zero load) reaching ``threshold`` of the target."""
    trained = [w for w in weekly_totals if w > 0]
    if not trained:
        return 0
    hits = sum(1 for w in trained if w >= target * threshold)
    return round_half_up(hits / len(trained) * 100)


def intensity_distribution(sessions: Iterable[TrainingSession]) -> dict[str, int]:
    counts = {level: 0 for level in INTENSITY_LEVELS}
    for s in sessions:
        if s.intensity in counts:
            counts[s.intensity] += 1
    return counts


def weekly_rpe_progress(sessions_by_week: Mapping[int, Iterable[TrainingSession]]) -> list[dict]:
    """Average RPE and total duration per plan week, in week order."""
    rows: list[dict] = []
    for week in sorted(sessions_by_week):
        rpes = [s.rpe for s in sessions_by_week[week] if s.rpe]
        duration = sum(s.duration_minutes or 0 for s in sessions_by_week[week])
        rows.append({
            "week": week,
            "avg_rpe": round_to(sum(rpes) / len(rpes), 1) if rpes else 0.0,
            "total_duration": duration,
        })
    return rows


def monthly_volume_realization(
    weeks: list[WeekPlan],
    sessions_by_week: Mapping[int, Iterable[TrainingSession]],
    weeks_per_month: int = 4,
) -> list[MonthVolume]:
    """Planned vs realized mean volume per block of weeks.

    A week counts as realized (its full volume) when any of its sessions is done.
    """
    out: list[MonthVolume] = []
    for i in range(0, len(weeks), weeks_per_month):
        block = weeks[i:i + weeks_per_month]
        planned = sum(w.volume_percent for w in block)
        realized = sum(
            w.volume_percent for w in block
            if any(s.is_done for s in sessions_by_week.get(w.week_number, ()))
        )
        out.append(MonthVolume(
            name=f"Month {i // weeks_per_month + 1}",
            planned=round_half_up(planned / len(block)),
            realized=round_half_up(realized / len(block)),
        ))
    return out
