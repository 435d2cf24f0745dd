"""Periodization: annual plan weeks, weekly component targets and load targets.

Volume is highest in general preparation and tapers toward competition; the
per-phase base load (AU/week at 100% volume) encodes that. Week targets scale
linearly with the week's planned volume percent and are not clamped, so
overload weeks above 100% scale past the base.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Mapping, Optional

from coachload.services.rounding import round_half_up

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    GENERAL = "General"
    SPECIFIC = "Specific"
    PRE_COMPETITION = "PreCompetition"
    COMPETITION = "Competition"
    TRANSITION = "Transition"


PHASE_BASE_LOADS: dict[Phase, int] = {
    Phase.GENERAL: 500,
    Phase.SPECIFIC: 600,
    Phase.PRE_COMPETITION: 450,
    Phase.COMPETITION: 300,
    Phase.TRANSITION: 200,
}

# (volume %, intensity %) a freshly generated week starts from
PHASE_DEFAULTS: dict[Phase, tuple[int, int]] = {
    Phase.GENERAL: (90, 30),
    Phase.SPECIFIC: (75, 60),
    Phase.PRE_COMPETITION: (55, 85),
    Phase.COMPETITION: (35, 100),
    Phase.TRANSITION: (40, 20),
}

MESOCYCLE_WEEKS = 4


def parse_phase(value: object) -> Optional[Phase]:
    """Resolve a phase from an enum, its value, or its name; None if unknown."""
    if isinstance(value, Phase):
        return value
    text = str(value or "").strip()
    for phase in Phase:
        if text.casefold() in (phase.value.casefold(), phase.name.casefold()):
            return phase
    return None


@dataclass(frozen=True)
class TrainingComponentTargets:
    strength: float = 0    # kg
    speed: float = 0       # m
    endurance: float = 0   # km
    technique: float = 0   # reps
    tactic: float = 0      # reps

    def as_dict(self) -> dict[str, float]:
        return {
            "strength": self.strength,
            "speed": self.speed,
            "endurance": self.endurance,
            "technique": self.technique,
            "tactic": self.tactic,
        }


DEFAULT_SEASON_TARGETS = TrainingComponentTargets(strength=100, speed=1000, endurance=10, technique=500, tactic=200)


@dataclass(frozen=True)
class WeekPlan:
    week_number: int
    mesocycle_label: str
    phase: Optional[Phase]
    volume_percent: float
    intensity_percent: float
    competition_id: Optional[str] = None
    load_target_override: Optional[int] = None  # coach-set AU; wins over the phase target


@dataclass(frozen=True)
class Mesocycle:
    name: str
    weeks: int


@dataclass(frozen=True)
class PhaseSplit:
    """Share of the plan (percent of weeks) given to each phase, in order."""
    general: float = 40
    specific: float = 30
    pre_competition: float = 20
    competition: float = 10

    @property
    def total(self) -> float:
        return self.general + self.specific + self.pre_competition + self.competition

    @property
    def is_valid(self) -> bool:
        return math.isclose(self.total, 100.0)


@dataclass(frozen=True)
class WeekLoadTarget:
    au: int
    source: str  # "manual" or "phase"


def week_component_targets(season_targets: TrainingComponentTargets, week_plan: WeekPlan) -> TrainingComponentTargets:
    """Scale every season target by the week's volume percent."""
    vol = week_plan.volume_percent
    return TrainingComponentTargets(
        strength=round_half_up(season_targets.strength * vol / 100.0),
        speed=round_half_up(season_targets.speed * vol / 100.0),
        endurance=round_half_up(season_targets.endurance * vol / 100.0),
        technique=round_half_up(season_targets.technique * vol / 100.0),
        tactic=round_half_up(season_targets.tactic * vol / 100.0),
    )


def phase_base_load(phase: Optional[Phase], base_loads: Mapping[Phase, float] = PHASE_BASE_LOADS) -> float:
    """Base load for a phase; a missing phase falls back to General."""
    if phase is not None and phase in base_loads:
        return base_loads[phase]
    return base_loads.get(Phase.GENERAL, PHASE_BASE_LOADS[Phase.GENERAL])


def week_load_target(base_load: float, volume_percent: float) -> int:
    return max(0, round_half_up(base_load * volume_percent / 100.0))


def resolve_week_load_target(
    week_plan: WeekPlan,
    base_loads: Mapping[Phase, float] = PHASE_BASE_LOADS,
) -> WeekLoadTarget:
    """Manual override if the coach set one, else derived from phase and volume."""
    if week_plan.load_target_override is not None:
        return WeekLoadTarget(au=max(0, int(week_plan.load_target_override)), source="manual")
    base = phase_base_load(week_plan.phase, base_loads)
    return WeekLoadTarget(au=week_load_target(base, week_plan.volume_percent), source="phase")


def with_load_override(week_plan: WeekPlan, au: int) -> WeekPlan:
    return replace(week_plan, load_target_override=max(0, int(au)))


def reset_load_override(week_plan: WeekPlan) -> WeekPlan:
    return replace(week_plan, load_target_override=None)


# ---------------------------------------------------------------------------
# Plan generation
# ---------------------------------------------------------------------------

def plan_length_weeks(start_date: date, match_date: date) -> int:
    """Whole weeks from plan start to the main competition, rounded up; 0 if not after start."""
    days = (match_date - start_date).days
    if days <= 0:
        return 0
    return math.ceil(days / 7)


def default_mesocycles(total_weeks: int) -> list[Mesocycle]:
    """Split a plan into 4-week blocks; the last block takes the remainder."""
    blocks: list[Mesocycle] = []
    remaining = max(0, total_weeks)
    n = 1
    while remaining > 0:
        weeks = min(MESOCYCLE_WEEKS, remaining)
        blocks.append(Mesocycle(name=f"MESO {n}", weeks=weeks))
        remaining -= weeks
        n += 1
    return blocks


def phase_for_progress(progress_percent: float, split: PhaseSplit = PhaseSplit()) -> Phase:
    """Phase for a position in the plan (0-100], cumulative boundaries inclusive."""
    boundary = split.general
    if progress_percent <= boundary:
        return Phase.GENERAL
    boundary += split.specific
    if progress_percent <= boundary:
        return Phase.SPECIFIC
    boundary += split.pre_competition
    if progress_percent <= boundary:
        return Phase.PRE_COMPETITION
    return Phase.COMPETITION


def generate_plan_weeks(
    total_weeks: int,
    mesocycles: Optional[list[Mesocycle]] = None,
    split: PhaseSplit = PhaseSplit(),
    deload_volume_drop: int = 15,
    deload_intensity_drop: int = 5,
) -> list[WeekPlan]:
    """Lay out one WeekPlan per week across the mesocycles.

    The last week of every mesocycle is a deload week.
    """
    if total_weeks <= 0:
        return []
    if not split.is_valid:
        logger.warning("Phase split totals %s%%, falling back to default split", split.total)
        split = PhaseSplit()
    blocks = mesocycles if mesocycles else default_mesocycles(total_weeks)

    rows: list[WeekPlan] = []
    wk = 1
    for block in blocks:
        for i in range(1, block.weeks + 1):
            if wk > total_weeks:
                break
            phase = phase_for_progress(wk * 100 / total_weeks, split)
            vol, inten = PHASE_DEFAULTS[phase]
            if i == block.weeks:
                vol -= deload_volume_drop
                inten -= deload_intensity_drop
            rows.append(
                WeekPlan(
                    week_number=wk,
                    mesocycle_label=block.name,
                    phase=phase,
                    volume_percent=vol,
                    intensity_percent=inten,
                )
            )
            wk += 1
    return rows


def apply_phase_split(weeks: list[WeekPlan], split: PhaseSplit) -> list[WeekPlan]:
    """Re-phase an existing plan; volume and intensity reset to phase defaults.

    An invalid split leaves the plan unchanged.
    """
    if not split.is_valid:
        logger.warning("Phase split totals %s%%, plan left unchanged", split.total)
        return list(weeks)
    total = len(weeks)
    out: list[WeekPlan] = []
    for index, week in enumerate(weeks):
        phase = phase_for_progress((index + 1) * 100 / total, split)
        vol, inten = PHASE_DEFAULTS[phase]
        out.append(replace(week, phase=phase, volume_percent=vol, intensity_percent=inten))
    return out
