"""Norm-referenced scoring of physical test results on a 1-5 scale.

A norm band holds, for one test item and one gender/age group, the threshold
an athlete must reach for each score. ``score_k_max`` is the worst value that
still earns score k: the minimum for higher-is-better items (distance, reps)
and the maximum for lower-is-better items (sprint times). Score 1 is anything
worse than ``score_2_max``; ``score_1_max`` is carried for display only.

Thresholds are inclusive on the better side and exclusive on the worse side
in both directions, so no value can satisfy two adjacent scores.

Reference bands are data. A lookup that finds no band returns
``NoBandFound`` rather than a guessed score; callers decide what to show.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Union

from coachload.logging_config import log_context
from coachload.services.rounding import round_to

logger = logging.getLogger(__name__)

GENDER_ALL = "ALL"
SCORE_MIN = 1
SCORE_MAX = 5
DEFAULT_AGE_MIN = 0
DEFAULT_AGE_MAX = 99

_GENDER_ALIASES = {
    "M": "M",
    "MALE": "M",
    "L": "M",
    "F": "F",
    "FEMALE": "F",
    "P": "F",
    "ALL": GENDER_ALL,
}


def normalize_gender(gender: Optional[str]) -> str:
    """Map free-form gender labels onto M / F / ALL; unknown defaults to M."""
    key = str(gender or "").strip().upper()
    return _GENDER_ALIASES.get(key, "M")


def _key(text: str) -> str:
    return str(text or "").strip().casefold()


@dataclass(frozen=True)
class NormBand:
    category: str
    item: str
    gender: str = GENDER_ALL
    age_min: Optional[float] = None
    age_max: Optional[float] = None
    lower_is_better: bool = False
    score_1_max: Optional[float] = None
    score_2_max: Optional[float] = None
    score_3_max: Optional[float] = None
    score_4_max: Optional[float] = None
    score_5_max: Optional[float] = None
    unit: str = ""

    @property
    def age_low(self) -> float:
        return DEFAULT_AGE_MIN if self.age_min is None else self.age_min

    @property
    def age_high(self) -> float:
        return DEFAULT_AGE_MAX if self.age_max is None else self.age_max

    @property
    def age_span(self) -> float:
        return self.age_high - self.age_low

    def threshold(self, score: int) -> Optional[float]:
        return getattr(self, f"score_{score}_max", None)

    def matches(self, category: str, item: str, gender: str, age: Optional[float]) -> bool:
        if _key(self.category) != _key(category) or _key(self.item) != _key(item):
            return False
        band_gender = normalize_gender(self.gender)
        if band_gender != GENDER_ALL and band_gender != normalize_gender(gender):
            return False
        if age is None:
            return True
        return self.age_low <= age <= self.age_high


@dataclass(frozen=True)
class TestScoreResult:
    score: int
    band_used: NormBand

    found = True
    __test__ = False  # not a pytest test class


@dataclass(frozen=True)
class NoBandFound:
    """Lookup miss: no norm band covers this category/item/gender/age."""
    category: str
    item: str
    gender: str
    age: Optional[float]

    found = False


ScoreLookup = Union[TestScoreResult, NoBandFound]


@dataclass(frozen=True)
class NextScoreTarget:
    """What it takes to reach the next better score."""
    next_score: int
    threshold: float
    delta: float      # always >= 0, in the test's unit
    direction: str    # "increase" or "decrease"


@dataclass(frozen=True)
class ScoreRange:
    """Value interval earning ``score``.

    ``low`` is inclusive for higher-is-better bands, ``high`` is inclusive for
    lower-is-better bands. None means unbounded.
    """
    score: int
    low: Optional[float]
    high: Optional[float]
    lower_is_better: bool

    def contains(self, value: float) -> bool:
        if self.lower_is_better:
            above_low = self.low is None or value > self.low
            below_high = self.high is None or value <= self.high
        else:
            above_low = self.low is None or value >= self.low
            below_high = self.high is None or value < self.high
        return above_low and below_high

    def label(self) -> str:
        if self.low is None and self.high is None:
            return "any"
        if self.low is None:
            return f"≤ {self.high:g}" if self.lower_is_better else f"< {self.high:g}"
        if self.high is None:
            return f"> {self.low:g}" if self.lower_is_better else f"≥ {self.low:g}"
        return f"{self.low:g} - {self.high:g}"


def is_at_least_as_good(value: float, threshold: float, lower_is_better: bool) -> bool:
    """The one comparator used for both directions."""
    if lower_is_better:
        return value <= threshold
    return value >= threshold


def select_band(
    bands: Iterable[NormBand],
    category: str,
    item: str,
    gender: Optional[str],
    age: Optional[float],
) -> Optional[NormBand]:
    """Pick the most specific band: own gender before ALL, then narrowest age range.

    An unknown age (None) matches every age range.
    """
    candidates = [b for b in bands if b.matches(category, item, gender, age)]
    if not candidates:
        return None

    def specificity(band: NormBand) -> tuple[bool, float]:
        return (normalize_gender(band.gender) == GENDER_ALL, band.age_span)

    candidates.sort(key=specificity)
    best = candidates[0]
    if len(candidates) > 1 and specificity(candidates[1]) == specificity(best):
        logger.warning(
            "Ambiguous norm bands for %s / %s; using first match",
            category,
            item,
            extra=log_context(gender=normalize_gender(gender), age=age, matches=len(candidates)),
        )
    return best


def score(band: NormBand, value: float) -> int:
    """Score a raw value against a band. Missing thresholds are skipped."""
    for k in range(SCORE_MAX, SCORE_MIN, -1):
        threshold = band.threshold(k)
        if threshold is not None and is_at_least_as_good(value, threshold, band.lower_is_better):
            return k
    return SCORE_MIN


def score_test(
    bands: Iterable[NormBand],
    category: str,
    item: str,
    value: float,
    gender: Optional[str] = "M",
    age: Optional[float] = None,
) -> ScoreLookup:
    """Look up the band for an athlete and score the value against it."""
    band = select_band(bands, category, item, gender, age)
    if band is None:
        logger.debug("No norm band for %s / %s", category, item, extra=log_context(gender=gender, age=age))
        return NoBandFound(category=category, item=item, gender=normalize_gender(gender), age=age)
    return TestScoreResult(score=score(band, value), band_used=band)


def score_or_default(result: ScoreLookup, default: int = 3) -> int:
    """Caller-side fallback for displays that must always show a score."""
    if isinstance(result, TestScoreResult):
        return result.score
    return default


def distance_to_next_score(
    band: NormBand,
    value: float,
    current_score: Optional[int] = None,
) -> Optional[NextScoreTarget]:
    """Smallest change in ``value`` that reaches the next better score.

    Returns None at score 5 or when the next score has no threshold.
    """
    current = score(band, value) if current_score is None else current_score
    if current >= SCORE_MAX:
        return None
    threshold = band.threshold(current + 1)
    if threshold is None:
        return None
    return NextScoreTarget(
        next_score=current + 1,
        threshold=threshold,
        delta=abs(threshold - value),
        direction="decrease" if band.lower_is_better else "increase",
    )


def score_ranges(band: NormBand) -> list[ScoreRange]:
    """Value interval for each score, worst to best, for norm tables and previews."""
    present = [(k, band.threshold(k)) for k in range(SCORE_MIN + 1, SCORE_MAX + 1) if band.threshold(k) is not None]
    if not present:
        return [ScoreRange(SCORE_MIN, None, None, band.lower_is_better)]

    ranges: list[ScoreRange] = []
    first = present[0][1]
    if band.lower_is_better:
        ranges.append(ScoreRange(SCORE_MIN, first, None, True))
    else:
        ranges.append(ScoreRange(SCORE_MIN, None, first, False))

    for i, (k, threshold) in enumerate(present):
        nxt = present[i + 1][1] if i + 1 < len(present) else None
        if band.lower_is_better:
            ranges.append(ScoreRange(k, nxt, threshold, True))
        else:
            ranges.append(ScoreRange(k, threshold, nxt, False))
    return ranges


def bodyweight_ratio(lifted_weight: float, bodyweight: float) -> float:
    """Lift expressed in multiples of bodyweight, 2 decimals. Non-positive bodyweight -> 0."""
    if not bodyweight or bodyweight <= 0 or not math.isfinite(lifted_weight or 0.0):
        return 0.0
    return round_to(lifted_weight / bodyweight, 2)


def age_on(birth_date: date, on_date: date) -> int:
    """Completed years of age on a given date."""
    years = on_date.year - birth_date.year
    if (on_date.month, on_date.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(0, years)


def latest_scores_by_category(results: Iterable[dict], categories: Optional[Iterable[str]] = None) -> dict[str, int]:
    """Most recent score per test category (0 when a category has no result).

    Each result dict should have: date, category, score.
    """
    latest: dict[str, tuple] = {}
    for r in results:
        cat = r.get("category")
        if not cat:
            continue
        when = str(r.get("date") or "")
        if cat not in latest or when >= latest[cat][0]:
            latest[cat] = (when, int(r.get("score") or 0))

    names = list(categories) if categories is not None else sorted(latest)
    return {name: latest[name][1] if name in latest else 0 for name in names}
