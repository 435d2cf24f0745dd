from __future__ import annotations

from dataclasses import dataclass

from coachload.services.rounding import round_to


@dataclass(frozen=True)
class BmiBand:
    label: str
    upper: float | None  # exclusive; None = open-ended


BMI_BANDS: tuple[BmiBand, ...] = (
    BmiBand("underweight", 18.5),
    BmiBand("normal", 25.0),
    BmiBand("overweight", 30.0),
    BmiBand("obese", None),
)


def bmi(weight_kg: float, height_cm: float) -> float:
    """Body-mass index rounded to 1 decimal; 0.0 when either input is missing."""
    if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
        return 0.0
    height_m = height_cm / 100.0
    return round_to(weight_kg / (height_m * height_m), 1)


def bmi_category(value: float) -> str:
    for band in BMI_BANDS:
        if band.upper is None or value < band.upper:
            return band.label
    return BMI_BANDS[-1].label
