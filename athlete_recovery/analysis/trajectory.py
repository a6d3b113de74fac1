"""Performance trajectory projection.

Projects a bounded 0-100 performance score forward over discrete periods
from an athlete's current state:

1. Base performance from age band, experience, training hours and recovery.
2. Per-period growth with age, training, recovery and experience modifiers.
3. Confidence decaying linearly per period down to a 0.6 floor.
4. Influencing factors from a fixed rule table.
"""

import numpy as np
from dataclasses import dataclass
from typing import Any, List, Mapping

from ..errors import InputError, check_bounds, require_number
from .models import (
    InfluencingFactor,
    Insight,
    Priority,
    Recommendation,
    TrajectoryForecast,
    TrajectoryPoint,
    sort_recommendations,
)
from .rubric import clamp

FEATURE_NAMES = ("age", "experience", "training_hours", "recovery_score", "injury_history")

GROWTH_RATE = 0.02
CONFIDENCE_START = 0.95
CONFIDENCE_DECAY = 0.02
CONFIDENCE_FLOOR = 0.6


@dataclass(frozen=True)
class AthleteFeatures:
    """Current-state feature vector for trajectory projection."""
    age: float
    experience: float           # years
    training_hours: float       # per week
    recovery_score: float       # 0-100
    injury_history: float       # count of prior injuries

    def __post_init__(self):
        require_number("age", self.age, lower=1, upper=120)
        require_number("experience", self.experience)
        require_number("training_hours", self.training_hours)
        require_number("recovery_score", self.recovery_score, upper=100)
        require_number("injury_history", self.injury_history)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AthleteFeatures":
        """Build from a mapping, rejecting missing features instead of defaulting them."""
        missing = [name for name in FEATURE_NAMES if data.get(name) is None]
        if missing:
            raise InputError(f"Missing required features: {', '.join(missing)}")
        return cls(**{name: data[name] for name in FEATURE_NAMES})


def validate_horizon(horizon_periods: int) -> None:
    if not isinstance(horizon_periods, int) or isinstance(horizon_periods, bool) or horizon_periods < 1:
        raise InputError(f"horizon_periods must be a positive integer, got {horizon_periods!r}")


class TrajectoryProjector:
    """Deterministic performance trajectory model."""

    def base_performance(self, features: AthleteFeatures) -> float:
        """Starting performance score, capped at 100."""
        score = 50.0

        # Peak performance typically 25-30
        if 25 <= features.age <= 30:
            score += 15
        elif 20 <= features.age <= 35:
            score += 10
        else:
            score += 5

        score += min(features.experience * 2, 20)
        score += min(features.training_hours / 10, 15)
        score += (features.recovery_score / 10) * 5

        return min(score, 100.0)

    def predict_period(self, base: float, period: int, features: AthleteFeatures) -> float:
        """Projected score for one period, capped at 100."""
        if features.age < 25:
            age_modifier = 1.1
        elif features.age > 30:
            age_modifier = 0.95
        else:
            age_modifier = 1.0

        training_factor = min(features.training_hours / 20, 1.2)
        recovery_factor = 0.8 + (features.recovery_score / 100) * 0.4
        experience_bonus = min(period * 0.01, 0.1)

        predicted = (base
                     * (1 + GROWTH_RATE * period)
                     * age_modifier
                     * training_factor
                     * recovery_factor
                     * (1 + experience_bonus))

        return clamp(predicted)

    @staticmethod
    def period_confidence(period: int) -> float:
        return round(max(CONFIDENCE_START - period * CONFIDENCE_DECAY, CONFIDENCE_FLOOR), 2)

    @staticmethod
    def influencing_factors(period: int, features: AthleteFeatures) -> List[InfluencingFactor]:
        factors = []

        if period <= 3:
            factors.append(InfluencingFactor(
                factor="Initial Training Adaptation",
                impact="high",
                description="Body adapting to new training stimulus",
            ))

        if period >= 6:
            factors.append(InfluencingFactor(
                factor="Experience Accumulation",
                impact="high",
                description="Skill development and technique refinement",
            ))

        if features.recovery_score < 70:
            factors.append(InfluencingFactor(
                factor="Recovery Optimization Needed",
                impact="medium",
                description="Improving recovery practices will enhance gains",
            ))

        return factors

    def project(self, features: AthleteFeatures, horizon_periods: int) -> List[TrajectoryPoint]:
        """Ordered projection for periods 1..horizon_periods."""
        validate_horizon(horizon_periods)
        base = self.base_performance(features)

        trajectory = []
        for period in range(1, horizon_periods + 1):
            predicted = round(self.predict_period(base, period, features), 2)
            trajectory.append(TrajectoryPoint(
                period_index=period,
                predicted_score=check_bounds("predicted_score", predicted, 0, 100),
                confidence=self.period_confidence(period),
                influencing_factors=self.influencing_factors(period, features),
            ))

        return trajectory

    def insights(self, trajectory: List[TrajectoryPoint]) -> List[Insight]:
        insights = []
        if not trajectory:
            return insights

        improvement = trajectory[-1].predicted_score - trajectory[0].predicted_score

        if improvement > 20:
            insights.append(Insight(
                type="positive",
                title="Strong Growth Potential",
                description=f"Expected {improvement:.1f} point improvement over {len(trajectory)} periods",
                priority=Priority.HIGH,
            ))
        elif improvement > 10:
            insights.append(Insight(
                type="positive",
                title="Steady Progress Expected",
                description=f"Consistent {improvement:.1f} point improvement trajectory",
                priority=Priority.MEDIUM,
            ))

        # argmax returns the first peak when the trajectory plateaus at the cap
        peak_index = int(np.argmax([point.predicted_score for point in trajectory]))
        if peak_index > len(trajectory) / 2:
            insights.append(Insight(
                type="info",
                title="Delayed Peak Performance",
                description=f"Peak performance expected in period {peak_index + 1}",
                priority=Priority.MEDIUM,
            ))

        return insights

    def recommendations(self, trajectory: List[TrajectoryPoint]) -> List[Recommendation]:
        recommendations = []

        if trajectory:
            average_confidence = float(np.mean([point.confidence for point in trajectory]))
            if average_confidence < 0.8:
                recommendations.append(Recommendation(
                    type="data_collection",
                    priority=Priority.HIGH,
                    message="More consistent tracking will improve prediction accuracy",
                    actions=["Log every session", "Record daily recovery metrics"],
                ))

            low_points = [point for point in trajectory if point.predicted_score < 70]
            if len(low_points) > len(trajectory) / 3:
                recommendations.append(Recommendation(
                    type="training_adjustment",
                    priority=Priority.MEDIUM,
                    message="Consider adjusting training intensity to prevent plateaus",
                    actions=["Review training load distribution", "Introduce periodized blocks"],
                ))

        recommendations.append(Recommendation(
            type="monitoring",
            priority=Priority.LOW,
            message="Track progress each period to validate predictions and adjust plans",
            actions=["Schedule periodic performance tests"],
        ))

        return sort_recommendations(recommendations)

    def forecast(self, features: AthleteFeatures, horizon_periods: int) -> TrajectoryForecast:
        trajectory = self.project(features, horizon_periods)
        return TrajectoryForecast(
            horizon_periods=horizon_periods,
            trajectory=trajectory,
            insights=self.insights(trajectory),
            recommendations=self.recommendations(trajectory),
        )
