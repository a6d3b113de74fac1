"""Injury risk classification from workload and recovery indicators."""

import numpy as np
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..config import config
from ..errors import InputError, check_bounds, require_number
from .models import (
    InjuryRiskAssessment,
    Priority,
    Recommendation,
    RiskFactor,
    RiskLevel,
    Severity,
    sort_recommendations,
    sort_risk_factors,
)

RISK_INPUT_NAMES = ("workload", "recovery_score", "age", "previous_injuries", "training_intensity")

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40

# Probability band [low, high) per tier
PROBABILITY_BANDS = {
    RiskLevel.HIGH: (0.25, 0.50),
    RiskLevel.MEDIUM: (0.10, 0.30),
    RiskLevel.LOW: (0.0, 0.15),
}


@dataclass(frozen=True)
class RiskInputs:
    """Risk-factor vector for injury classification."""
    workload: float             # 0-100
    recovery_score: float       # 0-100
    age: float
    previous_injuries: int
    training_intensity: float   # 0-100

    def __post_init__(self):
        require_number("workload", self.workload)
        require_number("recovery_score", self.recovery_score, upper=100)
        require_number("age", self.age, lower=1, upper=120)
        require_number("previous_injuries", self.previous_injuries)
        require_number("training_intensity", self.training_intensity)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RiskInputs":
        missing = [name for name in RISK_INPUT_NAMES if data.get(name) is None]
        if missing:
            raise InputError(f"Missing required risk factors: {', '.join(missing)}")
        return cls(**{name: data[name] for name in RISK_INPUT_NAMES})


class InjuryRiskClassifier:
    """Additive threshold scoring bucketed into low/medium/high tiers.

    Within a tier the probability is drawn uniformly from the tier's band to
    model residual uncertainty. Pass a seeded ``numpy.random.Generator`` for
    reproducible draws, or ``deterministic=True`` for the band midpoint.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, deterministic: Optional[bool] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.deterministic = deterministic if deterministic is not None else config.use_midpoint_probability()

    @staticmethod
    def risk_score(inputs: RiskInputs) -> float:
        score = 0.0

        if inputs.workload > 80:
            score += 30
        elif inputs.workload > 60:
            score += 15

        if inputs.recovery_score < 60:
            score += 25
        elif inputs.recovery_score < 75:
            score += 10

        if inputs.age < 20 or inputs.age > 35:
            score += 15

        score += inputs.previous_injuries * 10

        if inputs.training_intensity > 85:
            score += 20
        elif inputs.training_intensity > 70:
            score += 10

        return score

    @staticmethod
    def risk_level(risk_score: float) -> RiskLevel:
        if risk_score >= HIGH_RISK_THRESHOLD:
            return RiskLevel.HIGH
        if risk_score >= MEDIUM_RISK_THRESHOLD:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def probability(self, level: RiskLevel) -> float:
        low, high = PROBABILITY_BANDS[level]
        if self.deterministic:
            return (low + high) / 2
        return float(self.rng.uniform(low, high))

    @staticmethod
    def risk_factors(inputs: RiskInputs) -> List[RiskFactor]:
        factors = []

        if inputs.workload > 80:
            factors.append(RiskFactor(
                type="high_training_load",
                severity=Severity.HIGH,
                description="Current workload exceeds recommended limits",
                impact="Tissue overload, elevated injury risk",
            ))

        if inputs.recovery_score < 60:
            factors.append(RiskFactor(
                type="poor_recovery",
                severity=Severity.HIGH,
                description="Recovery metrics indicate inadequate rest",
                impact="Accumulated fatigue, elevated injury risk",
            ))

        if inputs.previous_injuries > 2:
            factors.append(RiskFactor(
                type="injury_history",
                severity=Severity.MEDIUM,
                description="Multiple previous injuries increase risk",
                impact="Higher recurrence risk",
            ))

        if inputs.training_intensity > 85:
            factors.append(RiskFactor(
                type="high_intensity",
                severity=Severity.HIGH,
                description="Sustained training intensity above 85%",
                impact="Neuromuscular fatigue, elevated injury risk",
            ))

        return sort_risk_factors(factors)

    @staticmethod
    def recommendations(level: RiskLevel, inputs: RiskInputs) -> List[Recommendation]:
        recommendations = []

        if level is RiskLevel.HIGH:
            recommendations.append(Recommendation(
                type="reduce_load",
                priority=Priority.CRITICAL,
                message="Reduce training load 20-30% for 2 weeks",
                actions=["Decrease training intensity by 20-30%", "Replace one hard session with recovery"],
            ))
            recommendations.append(Recommendation(
                type="monitoring",
                priority=Priority.HIGH,
                message="Increase recovery monitoring",
                actions=["Track sleep, HRV, and fatigue levels daily"],
            ))

        if inputs.recovery_score < 70:
            recommendations.append(Recommendation(
                type="recovery_protocol",
                priority=Priority.HIGH,
                message="Enhance recovery protocol",
                actions=["Implement additional recovery strategies (massage, ice, nutrition)"],
            ))

        recommendations.append(Recommendation(
            type="prevention",
            priority=Priority.MEDIUM,
            message="Injury prevention exercises",
            actions=["Incorporate mobility and stability exercises"],
        ))

        return sort_recommendations(recommendations)

    def classify(self, inputs: RiskInputs) -> InjuryRiskAssessment:
        score = self.risk_score(inputs)
        level = self.risk_level(score)
        probability = self.probability(level)
        check_bounds("probability", probability, 0.0, 0.5)

        return InjuryRiskAssessment(
            risk_score=score,
            level=level,
            probability=probability,
            factors=self.risk_factors(inputs),
            recommendations=self.recommendations(level, inputs),
        )

