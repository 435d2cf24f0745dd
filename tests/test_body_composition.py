"""Tests for BMI and its category bands."""

from __future__ import annotations

from coachload.services.body_composition import bmi, bmi_category


def test_bmi_value():
    assert bmi(70, 175) == 22.9
    assert bmi(90, 180) == 27.8


def test_bmi_missing_inputs():
    assert bmi(0, 175) == 0.0
    assert bmi(70, 0) == 0.0
    assert bmi(None, 175) == 0.0
    assert bmi(-70, 175) == 0.0


def test_bmi_category_boundaries():
    assert bmi_category(18.4) == "underweight"
    assert bmi_category(18.5) == "normal"
    assert bmi_category(24.9) == "normal"
    assert bmi_category(25.0) == "overweight"
    assert bmi_category(29.9) == "overweight"
    assert bmi_category(30.0) == "obese"
    assert bmi_category(41.2) == "obese"
