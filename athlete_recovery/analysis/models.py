"""Value objects produced by the recovery scoring engine."""

from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class Domain(Enum):
    """Independent facets of athlete recovery."""
    SLEEP = "sleep"
    NUTRITION = "nutrition"
    STRESS = "stress"
    WORKLOAD = "workload"


class Priority(Enum):
    """Recommendation priority, ordered by urgency."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


class Severity(Enum):
    """Risk factor severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


class RiskLevel(Enum):
    """Injury risk tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3, Priority.CRITICAL: 4}
_SEVERITY_RANK = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3}


@dataclass
class Recommendation:
    """Actionable advice attached to a score."""
    type: str
    priority: Priority
    message: str
    actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority.value,
            "message": self.message,
            "actions": list(self.actions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(
            type=data["type"],
            priority=Priority(data["priority"]),
            message=data["message"],
            actions=list(data.get("actions", [])),
        )


@dataclass
class RiskFactor:
    """An explained contributor to injury or recovery risk."""
    type: str
    severity: Severity
    description: str
    impact: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            "impact": self.impact,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RiskFactor":
        return cls(
            type=data["type"],
            severity=Severity(data["severity"]),
            description=data["description"],
            impact=data["impact"],
        )


@dataclass
class DomainScore:
    """Bounded 0-100 score for one recovery domain."""
    domain: Domain
    score: int
    grade: str
    raw_metrics: Dict[str, Any] = field(default_factory=dict)
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain.value,
            "score": self.score,
            "grade": self.grade,
            "raw_metrics": dict(self.raw_metrics),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainScore":
        return cls(
            domain=Domain(data["domain"]),
            score=data["score"],
            grade=data["grade"],
            raw_metrics=dict(data.get("raw_metrics", {})),
            recommendations=[Recommendation.from_dict(r) for r in data.get("recommendations", [])],
        )


@dataclass
class RecoveryAnalysis:
    """Cached aggregate of one recovery analysis run."""
    athlete_id: str
    timeframe_days: int
    timestamp: datetime
    domain_scores: Dict[Domain, DomainScore]
    optimization_score: int
    recommendations: List[Recommendation] = field(default_factory=list)
    risk_factors: List[RiskFactor] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "athlete_id": self.athlete_id,
            "timeframe_days": self.timeframe_days,
            "timestamp": self.timestamp.isoformat(),
            "domain_scores": {d.value: s.to_dict() for d, s in self.domain_scores.items()},
            "optimization_score": self.optimization_score,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "risk_factors": [f.to_dict() for f in self.risk_factors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecoveryAnalysis":
        return cls(
            athlete_id=data["athlete_id"],
            timeframe_days=data["timeframe_days"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            domain_scores={
                Domain(name): DomainScore.from_dict(score)
                for name, score in data["domain_scores"].items()
            },
            optimization_score=data["optimization_score"],
            recommendations=[Recommendation.from_dict(r) for r in data.get("recommendations", [])],
            risk_factors=[RiskFactor.from_dict(f) for f in data.get("risk_factors", [])],
        )


@dataclass
class InfluencingFactor:
    """Reason attached to a projected trajectory period."""
    factor: str
    impact: str
    description: str


@dataclass
class TrajectoryPoint:
    """Projected performance for one future period."""
    period_index: int
    predicted_score: float
    confidence: float
    influencing_factors: List[InfluencingFactor] = field(default_factory=list)


@dataclass
class Insight:
    """Observation derived from a projected trajectory."""
    type: str
    title: str
    description: str
    priority: Priority


@dataclass
class TrajectoryForecast:
    """Result of a performance trajectory prediction."""
    horizon_periods: int
    trajectory: List[TrajectoryPoint]
    insights: List[Insight]
    recommendations: List[Recommendation]


@dataclass
class InjuryRiskAssessment:
    """Tiered injury risk with explanations."""
    risk_score: float
    level: RiskLevel
    probability: float
    factors: List[RiskFactor] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    timeframe_days: int = 30


def sort_recommendations(recommendations: List[Recommendation]) -> List[Recommendation]:
    """Order recommendations critical first, keeping rule order within a priority."""
    return sorted(recommendations, key=lambda r: r.priority.rank, reverse=True)


def sort_risk_factors(risk_factors: List[RiskFactor]) -> List[RiskFactor]:
    """Order risk factors high severity first."""
    return sorted(risk_factors, key=lambda f: f.severity.rank, reverse=True)
