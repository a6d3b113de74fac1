"""Analysis module for recovery, performance and injury risk calculations."""

from .aggregator import CompositeRecoveryAggregator
from .domain_scorers import SleepScorer, NutritionScorer, StressScorer, WorkloadScorer, build_scorers
from .injury_risk import InjuryRiskClassifier, RiskInputs
from .trajectory import AthleteFeatures, TrajectoryProjector
from .comparative import ComparativeAnalyzer

__all__ = [
    "CompositeRecoveryAggregator",
    "SleepScorer",
    "NutritionScorer",
    "StressScorer",
    "WorkloadScorer",
    "build_scorers",
    "InjuryRiskClassifier",
    "RiskInputs",
    "AthleteFeatures",
    "TrajectoryProjector",
    "ComparativeAnalyzer",
]
