"""Tests for annual plan generation and weekly targets."""

from __future__ import annotations

import logging
from datetime import date

from coachload.services.periodization import (
    DEFAULT_SEASON_TARGETS,
    PHASE_BASE_LOADS,
    Mesocycle,
    Phase,
    PhaseSplit,
    TrainingComponentTargets,
    WeekPlan,
    apply_phase_split,
    default_mesocycles,
    generate_plan_weeks,
    parse_phase,
    phase_base_load,
    phase_for_progress,
    plan_length_weeks,
    reset_load_override,
    resolve_week_load_target,
    week_component_targets,
    week_load_target,
    with_load_override,
)


def _week(phase=Phase.GENERAL, volume=90, override=None):
    return WeekPlan(
        week_number=1,
        mesocycle_label="MESO 1",
        phase=phase,
        volume_percent=volume,
        intensity_percent=30,
        load_target_override=override,
    )


# --- component targets ---

def test_week_component_targets_scale_with_volume():
    targets = week_component_targets(DEFAULT_SEASON_TARGETS, _week(volume=90))
    assert targets == TrainingComponentTargets(strength=90, speed=900, endurance=9, technique=450, tactic=180)


def test_week_component_targets_round_half_up():
    targets = week_component_targets(DEFAULT_SEASON_TARGETS, _week(volume=35))
    assert targets.endurance == 4  # 3.5
    assert targets.strength == 35


def test_sixty_percent_week_of_strength_target():
    season = TrainingComponentTargets(strength=1000)
    assert week_component_targets(season, _week(volume=60)).strength == 600


def test_zero_volume_gives_zero_targets():
    targets = week_component_targets(DEFAULT_SEASON_TARGETS, _week(volume=0))
    assert all(v == 0 for v in targets.as_dict().values())


def test_overload_week_not_clamped():
    targets = week_component_targets(DEFAULT_SEASON_TARGETS, _week(volume=120))
    assert targets.strength == 120
    assert targets.speed == 1200


# --- load targets ---

def test_phase_load_target():
    target = resolve_week_load_target(_week(Phase.GENERAL, 90))
    assert target.au == 450
    assert target.source == "phase"

    target = resolve_week_load_target(_week(Phase.SPECIFIC, 75))
    assert target.au == 450


def test_load_target_linear_in_volume():
    base = PHASE_BASE_LOADS[Phase.COMPETITION]
    assert week_load_target(base, 0) == 0
    assert week_load_target(base, 50) == 150
    assert week_load_target(base, 100) == 300
    assert week_load_target(base, 200) == 600


def test_manual_override_wins():
    target = resolve_week_load_target(_week(Phase.GENERAL, 90, override=380))
    assert target.au == 380
    assert target.source == "manual"


def test_override_and_reset():
    week = with_load_override(_week(Phase.SPECIFIC, 75), 520)
    assert resolve_week_load_target(week).au == 520
    week = reset_load_override(week)
    assert week.load_target_override is None
    assert resolve_week_load_target(week).source == "phase"


def test_missing_phase_falls_back_to_general():
    target = resolve_week_load_target(_week(phase=None, volume=100))
    assert target.au == PHASE_BASE_LOADS[Phase.GENERAL]


def test_custom_base_loads():
    loads = {Phase.GENERAL: 400, Phase.SPECIFIC: 800}
    assert resolve_week_load_target(_week(Phase.SPECIFIC, 50), loads).au == 400
    assert phase_base_load(Phase.COMPETITION, loads) == 400


def test_parse_phase():
    assert parse_phase("Specific") is Phase.SPECIFIC
    assert parse_phase("precompetition") is Phase.PRE_COMPETITION
    assert parse_phase("PRE_COMPETITION") is Phase.PRE_COMPETITION
    assert parse_phase(Phase.COMPETITION) is Phase.COMPETITION
    assert parse_phase("Offseason") is None
    assert parse_phase(None) is None


# --- plan generation ---

def test_plan_length_weeks():
    assert plan_length_weeks(date(2026, 1, 5), date(2026, 3, 30)) == 12
    assert plan_length_weeks(date(2026, 1, 5), date(2026, 3, 31)) == 13
    assert plan_length_weeks(date(2026, 1, 5), date(2026, 1, 5)) == 0
    assert plan_length_weeks(date(2026, 1, 5), date(2025, 12, 1)) == 0


def test_default_mesocycles():
    blocks = default_mesocycles(10)
    assert [b.weeks for b in blocks] == [4, 4, 2]
    assert [b.name for b in blocks] == ["MESO 1", "MESO 2", "MESO 3"]
    assert default_mesocycles(0) == []


def test_phase_for_progress_boundaries_inclusive():
    assert phase_for_progress(10) is Phase.GENERAL
    assert phase_for_progress(40) is Phase.GENERAL
    assert phase_for_progress(40.5) is Phase.SPECIFIC
    assert phase_for_progress(70) is Phase.SPECIFIC
    assert phase_for_progress(90) is Phase.PRE_COMPETITION
    assert phase_for_progress(90.5) is Phase.COMPETITION
    assert phase_for_progress(100) is Phase.COMPETITION


def test_generate_plan_phases_and_deloads():
    weeks = generate_plan_weeks(10)
    assert len(weeks) == 10
    assert [w.week_number for w in weeks] == list(range(1, 11))
    assert [w.phase for w in weeks] == (
        [Phase.GENERAL] * 4 + [Phase.SPECIFIC] * 3 + [Phase.PRE_COMPETITION] * 2 + [Phase.COMPETITION]
    )
    assert (weeks[0].volume_percent, weeks[0].intensity_percent) == (90, 30)
    # last week of each mesocycle is a deload
    assert (weeks[3].volume_percent, weeks[3].intensity_percent) == (75, 25)
    assert (weeks[7].volume_percent, weeks[7].intensity_percent) == (40, 80)
    assert (weeks[9].volume_percent, weeks[9].intensity_percent) == (20, 95)
    assert (weeks[8].volume_percent, weeks[8].intensity_percent) == (55, 85)
    assert weeks[4].mesocycle_label == "MESO 2"


def test_generate_plan_custom_mesocycles_and_deload():
    blocks = [Mesocycle("Base", 3), Mesocycle("Build", 3)]
    weeks = generate_plan_weeks(6, blocks, deload_volume_drop=20, deload_intensity_drop=10)
    assert [w.mesocycle_label for w in weeks] == ["Base"] * 3 + ["Build"] * 3
    assert weeks[2].phase is Phase.SPECIFIC
    assert (weeks[2].volume_percent, weeks[2].intensity_percent) == (55, 50)


def test_generate_plan_stops_at_total_weeks():
    weeks = generate_plan_weeks(5, [Mesocycle("Long", 8)])
    assert len(weeks) == 5
    # the block never reaches its last week, so no deload
    assert weeks[-1].phase is Phase.COMPETITION
    assert weeks[-1].volume_percent == 35


def test_generate_plan_empty():
    assert generate_plan_weeks(0) == []


def test_generate_plan_invalid_split_uses_default(caplog):
    with caplog.at_level(logging.WARNING, logger="coachload.services.periodization"):
        weeks = generate_plan_weeks(10, split=PhaseSplit(50, 30, 30, 10))
    assert weeks == generate_plan_weeks(10)
    assert "falling back" in caplog.text


def test_phase_split_validity():
    assert PhaseSplit().is_valid
    assert PhaseSplit(25, 25, 25, 25).is_valid
    assert not PhaseSplit(50, 30, 20, 10).is_valid


def test_apply_phase_split():
    weeks = generate_plan_weeks(4)
    out = apply_phase_split(weeks, PhaseSplit(25, 25, 25, 25))
    assert [w.phase for w in out] == [Phase.GENERAL, Phase.SPECIFIC, Phase.PRE_COMPETITION, Phase.COMPETITION]
    assert [w.volume_percent for w in out] == [90, 75, 55, 35]
    assert [w.week_number for w in out] == [1, 2, 3, 4]


def test_apply_phase_split_invalid_leaves_plan():
    weeks = generate_plan_weeks(4)
    assert apply_phase_split(weeks, PhaseSplit(10, 10, 10, 10)) == weeks
