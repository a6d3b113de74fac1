"""Composite recovery aggregation across domains."""

from typing import Dict, List, Mapping, Optional

from ..config import config
from ..errors import ComputationError, check_bounds
from .models import (
    Domain,
    DomainScore,
    Recommendation,
    RiskFactor,
    Severity,
    sort_recommendations,
    sort_risk_factors,
)
from .rubric import round_half_up


class CompositeRecoveryAggregator:
    """Weighted mean over the domains present, plus pooled advice and risk factors.

    Weights are renormalized over the domains actually scored so a partial
    analysis is not dragged down by missing data.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None,
                 recommendation_gate: Optional[float] = None):
        weights = weights or config.get_domain_weights()
        self.weights = {Domain(name): weight for name, weight in weights.items()}
        self.recommendation_gate = (
            recommendation_gate if recommendation_gate is not None else config.RECOMMENDATION_SCORE_GATE
        )

    def aggregate(self, domain_scores: Mapping[Domain, DomainScore]) -> int:
        """Overall optimization score rounded to the nearest integer."""
        return self.aggregate_values({domain: ds.score for domain, ds in domain_scores.items()})

    def aggregate_values(self, scores: Mapping[Domain, float]) -> int:
        """Weighted mean of raw domain values."""
        total_score = 0.0
        total_weight = 0.0
        for domain, weight in self.weights.items():
            if domain in scores and scores[domain] is not None:
                total_score += scores[domain] * weight
                total_weight += weight

        if total_weight == 0:
            raise ComputationError("No domain scores to aggregate")

        overall = round_half_up(total_score / total_weight)
        return int(check_bounds("optimization_score", overall, 0, 100))

    def pooled_recommendations(self, domain_scores: Mapping[Domain, DomainScore]) -> List[Recommendation]:
        """Recommendations from domains scoring below the gate, most urgent first."""
        pooled = []
        for domain in Domain:
            domain_score = domain_scores.get(domain)
            if domain_score is not None and domain_score.score < self.recommendation_gate:
                pooled.extend(domain_score.recommendations)
        return sort_recommendations(pooled)

    def risk_factors(self, domain_scores: Mapping[Domain, DomainScore]) -> List[RiskFactor]:
        """Fixed-rule risk factors, high severity first."""
        factors = []

        sleep = domain_scores.get(Domain.SLEEP)
        if sleep is not None and sleep.score < 60:
            factors.append(RiskFactor(
                type="sleep_deprivation",
                severity=Severity.HIGH,
                description="Chronic sleep deprivation increasing injury risk",
                impact="High injury risk, reduced performance",
            ))

        nutrition = domain_scores.get(Domain.NUTRITION)
        if nutrition is not None and len(nutrition.raw_metrics.get("deficiencies", [])) > 2:
            factors.append(RiskFactor(
                type="nutrient_deficiency",
                severity=Severity.MEDIUM,
                description="Multiple nutrient deficiencies affecting recovery",
                impact="Impaired recovery, reduced immunity",
            ))

        stress = domain_scores.get(Domain.STRESS)
        if stress is not None and stress.score < 60:
            factors.append(RiskFactor(
                type="chronic_stress",
                severity=Severity.HIGH,
                description="Elevated stress levels impacting recovery",
                impact="Increased injury risk, mental fatigue",
            ))

        workload = domain_scores.get(Domain.WORKLOAD)
        if workload is not None and workload.raw_metrics.get("acute_chronic_ratio", 0) > 1.3:
            factors.append(RiskFactor(
                type="overtraining",
                severity=Severity.HIGH,
                description="Training load exceeding recovery capacity",
                impact="High injury risk, performance decline",
            ))

        return sort_risk_factors(factors)

    def summarize(self, domain_scores: Mapping[Domain, DomainScore]) -> Dict[str, object]:
        return {
            "optimization_score": self.aggregate(domain_scores),
            "recommendations": self.pooled_recommendations(domain_scores),
            "risk_factors": self.risk_factors(domain_scores),
        }
