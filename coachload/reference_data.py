"""Operator-tunable reference data: RPE table, phase base loads, norm bands.

These are the only file reads in the package. Each loader validates the
whole file and raises ReferenceDataError listing every bad entry.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import pandas as pd
from pydantic import ValidationError

from coachload.config import Settings
from coachload.logging_config import log_context
from coachload.services.norms import SCORE_MAX, SCORE_MIN, NormBand
from coachload.services.periodization import PHASE_BASE_LOADS, Phase, parse_phase
from coachload.services.rpe_table import DEFAULT_RPE_TABLE, RpeLoadTable
from coachload.validators import NormBandInput

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

NORM_COLUMNS = [
    "category", "item", "gender", "age_min", "age_max", "lower_is_better",
    "score_1_max", "score_2_max", "score_3_max", "score_4_max", "score_5_max", "unit",
]


class ReferenceDataError(ValueError):
    def __init__(self, source: str, problems: list[str]):
        self.source = source
        self.problems = problems
        super().__init__(f"{source}: " + "; ".join(problems))


@dataclass(frozen=True)
class ReferenceData:
    rpe_table: RpeLoadTable = DEFAULT_RPE_TABLE
    phase_base_loads: dict[Phase, float] = field(default_factory=lambda: dict(PHASE_BASE_LOADS))
    norm_bands: tuple[NormBand, ...] = ()


def _read_json_object(path: PathLike) -> dict:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ReferenceDataError(str(path), [f"invalid JSON: {e}"]) from e
    if not isinstance(data, dict):
        raise ReferenceDataError(str(path), ["expected a JSON object"])
    return data


def load_rpe_table(path: PathLike) -> RpeLoadTable:
    """Read ``{"1": 20, ..., "10": 140}``."""
    raw = _read_json_object(path)
    try:
        return RpeLoadTable.from_mapping(raw)
    except (TypeError, ValueError) as e:
        raise ReferenceDataError(str(path), [str(e)]) from e


def load_phase_base_loads(path: PathLike) -> dict[Phase, float]:
    """Read ``{"General": 500, ...}``; phases left out keep their default."""
    raw = _read_json_object(path)
    problems: list[str] = []
    loads: dict[Phase, float] = dict(PHASE_BASE_LOADS)
    for name, value in raw.items():
        phase = parse_phase(name)
        if phase is None:
            problems.append(f"unknown phase {name!r}")
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            problems.append(f"{name}: base load must be a number")
            continue
        if number < 0:
            problems.append(f"{name}: base load must be >= 0")
            continue
        loads[phase] = number
    if problems:
        raise ReferenceDataError(str(path), problems)
    return loads


def norm_band_issues(band: NormBand) -> list[str]:
    """Data-quality problems in a band's thresholds; empty when the band is sound.

    Thresholds score_2_max..score_5_max must strictly improve in the band's
    direction: ascending when higher is better, descending when lower is better.
    """
    issues: list[str] = []
    present = [(k, band.threshold(k)) for k in range(SCORE_MIN + 1, SCORE_MAX + 1) if band.threshold(k) is not None]
    if not present:
        issues.append("no score thresholds")
    for (k1, t1), (k2, t2) in zip(present, present[1:]):
        improves = t2 < t1 if band.lower_is_better else t2 > t1
        if not improves:
            direction = "below" if band.lower_is_better else "above"
            issues.append(f"score_{k2}_max ({t2:g}) must be {direction} score_{k1}_max ({t1:g})")
    return issues


def _frame_records(frame: pd.DataFrame) -> list[dict]:
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")


def load_norm_bands(path: PathLike, strict: bool = False) -> list[NormBand]:
    """Read norm bands from CSV.

    Schema errors always raise. Threshold-order problems are logged and only
    raise when ``strict`` is set.
    """
    frame = pd.read_csv(path)
    missing = [c for c in ("category", "item") if c not in frame.columns]
    if missing:
        raise ReferenceDataError(str(path), [f"missing column {c!r}" for c in missing])
    frame = frame[[c for c in NORM_COLUMNS if c in frame.columns]]

    bands: list[NormBand] = []
    problems: list[str] = []
    for line, record in enumerate(_frame_records(frame), start=2):
        try:
            band = NormBandInput(**record).to_band()
        except ValidationError as e:
            for err in e.errors():
                field_name = ".".join(str(part) for part in err["loc"]) or "row"
                problems.append(f"row {line}: {field_name}: {err['msg']}")
            continue
        issues = norm_band_issues(band)
        if issues:
            logger.warning(
                "Norm band %s / %s has inconsistent thresholds",
                band.category,
                band.item,
                extra=log_context(row=line, issues=issues),
            )
            if strict:
                problems.extend(f"row {line}: {issue}" for issue in issues)
        bands.append(band)

    if problems:
        raise ReferenceDataError(str(path), problems)
    logger.info("Loaded %d norm bands", len(bands), extra=log_context(source=str(path)))
    return bands


def reference_data_from_settings(settings: Settings, strict_norms: Optional[bool] = None) -> ReferenceData:
    """Resolve all reference tables, built-in defaults where no path is configured.

    Norm threshold problems are fatal in production unless overridden.
    """
    strict = settings.is_production if strict_norms is None else strict_norms
    return ReferenceData(
        rpe_table=load_rpe_table(settings.rpe_table_path) if settings.rpe_table_path else DEFAULT_RPE_TABLE,
        phase_base_loads=(
            load_phase_base_loads(settings.phase_base_loads_path)
            if settings.phase_base_loads_path
            else dict(PHASE_BASE_LOADS)
        ),
        norm_bands=tuple(load_norm_bands(settings.norms_path, strict=strict)) if settings.norms_path else (),
    )
