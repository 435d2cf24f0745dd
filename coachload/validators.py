"""Pydantic validation models for records handed over by the data-access layer."""

from __future__ import annotations

import math
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from coachload.services.aggregation import Exercise, TrainingSession, parse_category
from coachload.services.norms import GENDER_ALL, NormBand
from coachload.services.periodization import Phase, PhaseSplit, TrainingComponentTargets, WeekPlan, parse_phase

_GENDERS = {"M", "F", GENDER_ALL}


class TrainingLoadLogInput(BaseModel):
    session_date: date
    duration_minutes: float = Field(ge=0)
    rpe: float = Field(ge=1, le=10)
    session_load: Optional[float] = Field(default=None, ge=0)
    training_type: str = Field(default="", max_length=80)
    notes: str = Field(default="", max_length=2000)


class ExerciseInput(BaseModel):
    name: str = Field(min_length=1, max_length=140)
    category: str = Field(min_length=1, max_length=40)
    sets: float = Field(default=0, ge=0)
    reps: float = Field(default=0, ge=0)
    load: float = Field(default=0, ge=0)

    def to_exercise(self) -> Exercise:
        return Exercise(name=self.name, category=parse_category(self.category), sets=self.sets, reps=self.reps, load=self.load)


class TrainingSessionInput(BaseModel):
    session_date: Optional[date] = None
    exercises: list[ExerciseInput] = Field(default_factory=list)
    intensity: str = "Rest"
    is_done: bool = False
    rpe: Optional[float] = Field(default=None, ge=1, le=10)
    duration_minutes: Optional[float] = Field(default=None, ge=0)

    @field_validator("intensity")
    @classmethod
    def valid_intensity(cls, v):
        allowed = {"Rest", "Low", "Med", "High"}
        if v not in allowed:
            raise ValueError(f"intensity must be one of {allowed}")
        return v

    def to_session(self) -> TrainingSession:
        return TrainingSession(
            exercises=[e.to_exercise() for e in self.exercises],
            session_date=self.session_date,
            intensity=self.intensity,
            is_done=self.is_done,
            rpe=self.rpe,
            duration_minutes=self.duration_minutes,
        )


class SeasonTargetsInput(BaseModel):
    strength: float = Field(ge=0)
    speed: float = Field(ge=0)
    endurance: float = Field(ge=0)
    technique: float = Field(ge=0)
    tactic: float = Field(ge=0)

    def to_targets(self) -> TrainingComponentTargets:
        return TrainingComponentTargets(**self.model_dump())


class WeekPlanInput(BaseModel):
    week_number: int = Field(gt=0)
    mesocycle_label: str = ""
    phase: Optional[str] = None
    volume_percent: float = Field(ge=0)
    intensity_percent: float = Field(ge=0)
    competition_id: Optional[str] = None
    load_target_override: Optional[int] = Field(default=None, ge=0)

    @field_validator("phase")
    @classmethod
    def known_phase(cls, v):
        if v is not None and parse_phase(v) is None:
            raise ValueError(f"phase must be one of {[p.value for p in Phase]}")
        return v

    def to_week_plan(self) -> WeekPlan:
        return WeekPlan(
            week_number=self.week_number,
            mesocycle_label=self.mesocycle_label,
            phase=parse_phase(self.phase) if self.phase is not None else None,
            volume_percent=self.volume_percent,
            intensity_percent=self.intensity_percent,
            competition_id=self.competition_id,
            load_target_override=self.load_target_override,
        )


class PhaseSplitInput(BaseModel):
    general: float = Field(ge=0, le=100)
    specific: float = Field(ge=0, le=100)
    pre_competition: float = Field(ge=0, le=100)
    competition: float = Field(ge=0, le=100)

    @model_validator(mode="after")
    def sums_to_100(self):
        total = self.general + self.specific + self.pre_competition + self.competition
        if not math.isclose(total, 100.0):
            raise ValueError(f"phase split must total 100 (got {total})")
        return self

    def to_split(self) -> PhaseSplit:
        return PhaseSplit(**self.model_dump())


class NormBandInput(BaseModel):
    category: str = Field(min_length=1)
    item: str = Field(min_length=1)
    gender: str = GENDER_ALL
    age_min: Optional[float] = Field(default=None, ge=0)
    age_max: Optional[float] = Field(default=None, ge=0)
    lower_is_better: bool = False
    score_1_max: Optional[float] = None
    score_2_max: Optional[float] = None
    score_3_max: Optional[float] = None
    score_4_max: Optional[float] = None
    score_5_max: Optional[float] = None
    unit: str = ""

    @field_validator("gender", mode="before")
    @classmethod
    def valid_gender(cls, v):
        text = str(v or GENDER_ALL).strip().upper()
        if text not in _GENDERS:
            raise ValueError(f"gender must be one of {_GENDERS}")
        return text

    @field_validator("lower_is_better", mode="before")
    @classmethod
    def none_is_false(cls, v):
        return False if v is None else v

    @field_validator("unit", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return "" if v is None else v

    @model_validator(mode="after")
    def age_range_ordered(self):
        if self.age_min is not None and self.age_max is not None and self.age_min > self.age_max:
            raise ValueError("age_min must be <= age_max")
        return self

    def to_band(self) -> NormBand:
        return NormBand(**self.model_dump())
