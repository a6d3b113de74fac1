"""Declarative weighted rubrics shared by the domain scorers.

Every domain score is a weighted sum over named sub-metrics. A sub-metric
is either banded (ideal range earns full credit, tolerance range partial
credit, anything else a floor credit) or scaled onto 0-100 and weighted.
Both kinds are clamped before they contribute, so a rubric total can never
leave [0, 100].
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp a value into [lower, upper]."""
    return max(lower, min(upper, value))


def accuracy(value: float, target: float) -> float:
    """Closeness to a target as 0-100: 100 - |value - target| / target * 100, floored at 0."""
    return max(0.0, 100 - abs(value - target) / target * 100)


def grade_from_score(score: float) -> str:
    """Letter grade for a 0-100 score."""
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class BandRule:
    """Piecewise-constant credit: ideal, tolerance, floor.

    Ranges are inclusive. Credits are expressed in rubric points.
    """
    ideal: Tuple[float, float]
    tolerance: Tuple[float, float]
    credits: Tuple[float, float, float]

    def score(self, value: float) -> float:
        full, partial, floor = self.credits
        if self.ideal[0] <= value <= self.ideal[1]:
            return full
        if self.tolerance[0] <= value <= self.tolerance[1]:
            return partial
        return floor


@dataclass(frozen=True)
class RubricItem:
    """One weighted sub-metric of a domain rubric.

    Exactly one of ``bands`` or ``scale`` is set. ``scale`` maps the raw
    metric onto a 0-100 sub-score which is then weighted.
    """
    metric: str
    weight: float
    bands: Optional[BandRule] = None
    scale: Optional[Callable[[float], float]] = None

    def points(self, value: float) -> float:
        if self.bands is not None:
            return clamp(self.bands.score(value), 0, self.weight)
        sub_score = clamp(self.scale(value)) if self.scale is not None else clamp(value)
        return sub_score / 100 * self.weight


def evaluate_rubric(items: List[RubricItem], metrics: Mapping[str, float]) -> Tuple[float, Dict[str, float]]:
    """Evaluate a rubric against aggregated metrics.

    Returns:
        (total points clamped to 0-100, points per metric)
    """
    breakdown = {}
    for item in items:
        breakdown[item.metric] = item.points(metrics[item.metric])

    total = clamp(sum(breakdown.values()))
    return total, breakdown
