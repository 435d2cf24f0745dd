"""Tests for Pydantic input validation models."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from coachload.services.aggregation import ExerciseCategory
from coachload.services.periodization import Phase
from coachload.validators import (
    ExerciseInput,
    NormBandInput,
    PhaseSplitInput,
    SeasonTargetsInput,
    TrainingLoadLogInput,
    TrainingSessionInput,
    WeekPlanInput,
)


# --- TrainingLoadLogInput ---

def test_load_log_valid():
    log = TrainingLoadLogInput(session_date=date(2026, 3, 2), duration_minutes=90, rpe=7)
    assert log.session_load is None
    assert log.training_type == ""


def test_load_log_rpe_out_of_range():
    with pytest.raises(ValidationError):
        TrainingLoadLogInput(session_date=date(2026, 3, 2), duration_minutes=60, rpe=11)
    with pytest.raises(ValidationError):
        TrainingLoadLogInput(session_date=date(2026, 3, 2), duration_minutes=60, rpe=0)


def test_load_log_negative_duration():
    with pytest.raises(ValidationError):
        TrainingLoadLogInput(session_date=date(2026, 3, 2), duration_minutes=-5, rpe=5)


# --- sessions ---

def test_exercise_input_category_parsed():
    ex = ExerciseInput(name="Flying 30s", category="Speed", sets=6, load=30).to_exercise()
    assert ex.category is ExerciseCategory.SPEED
    assert ex.reps == 0


def test_exercise_input_negative_sets():
    with pytest.raises(ValidationError):
        ExerciseInput(name="Squat", category="strength", sets=-1)


def test_session_input_to_session():
    session = TrainingSessionInput(
        session_date=date(2026, 3, 4),
        exercises=[{"name": "Squat", "category": "strength", "sets": 3, "reps": 5, "load": 100}],
        intensity="High",
        is_done=True,
        rpe=8,
        duration_minutes=75,
    ).to_session()
    assert session.is_planned is True
    assert session.exercises[0].load == 100
    assert session.rpe == 8


def test_session_input_bad_intensity():
    with pytest.raises(ValidationError):
        TrainingSessionInput(intensity="Extreme")


# --- planning ---

def test_season_targets_input():
    targets = SeasonTargetsInput(strength=120, speed=1500, endurance=12, technique=600, tactic=250).to_targets()
    assert targets.speed == 1500


def test_season_targets_negative():
    with pytest.raises(ValidationError):
        SeasonTargetsInput(strength=-1, speed=0, endurance=0, technique=0, tactic=0)


def test_week_plan_input_phase_parsed():
    week = WeekPlanInput(week_number=3, phase="Specific", volume_percent=75, intensity_percent=60).to_week_plan()
    assert week.phase is Phase.SPECIFIC
    assert week.load_target_override is None


def test_week_plan_input_unknown_phase():
    with pytest.raises(ValidationError):
        WeekPlanInput(week_number=3, phase="Offseason", volume_percent=75, intensity_percent=60)


def test_week_plan_input_negative_override():
    with pytest.raises(ValidationError):
        WeekPlanInput(week_number=1, volume_percent=80, intensity_percent=50, load_target_override=-10)


def test_phase_split_input_valid():
    split = PhaseSplitInput(general=40, specific=30, pre_competition=20, competition=10).to_split()
    assert split.is_valid


def test_phase_split_input_must_total_100():
    with pytest.raises(ValidationError, match="total 100"):
        PhaseSplitInput(general=40, specific=30, pre_competition=20, competition=20)


# --- NormBandInput ---

def test_norm_band_input_normalizes():
    band = NormBandInput(
        category="Speed", item="30m Sprint", gender="f", lower_is_better=None, unit=None,
        score_2_max=5.0, score_5_max=4.0,
    ).to_band()
    assert band.gender == "F"
    assert band.lower_is_better is False
    assert band.unit == ""
    assert band.score_3_max is None


def test_norm_band_input_missing_gender_is_all():
    assert NormBandInput(category="Speed", item="30m Sprint", gender=None).gender == "ALL"


def test_norm_band_input_bad_gender():
    with pytest.raises(ValidationError):
        NormBandInput(category="Speed", item="30m Sprint", gender="X")


def test_norm_band_input_age_order():
    with pytest.raises(ValidationError, match="age_min"):
        NormBandInput(category="Speed", item="30m Sprint", age_min=16, age_max=13)


def test_norm_band_input_requires_item():
    with pytest.raises(ValidationError):
        NormBandInput(category="Speed", item="")
