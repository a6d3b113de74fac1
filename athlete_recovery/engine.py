"""
Athlete Recovery Engine

Facade over the domain scorers, composite aggregator, trajectory projector,
injury risk classifier, comparative analysis and trend engine. Recovery
analyses are cached per athlete for a fixed TTL.
"""

import logging
import threading
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from .analysis.aggregator import CompositeRecoveryAggregator
from .analysis.comparative import ComparativeAnalyzer
from .analysis.domain_scorers import CHRONIC_WINDOW_DAYS, build_scorers, validate_timeframe
from .analysis.injury_risk import InjuryRiskClassifier, RiskInputs
from .analysis.models import (
    Domain,
    DomainScore,
    InjuryRiskAssessment,
    RecoveryAnalysis,
    TrajectoryForecast,
)
from .analysis.trajectory import AthleteFeatures, TrajectoryProjector, validate_horizon
from .analysis import trends
from .cache import RECOVERY_KIND, Clock, RecoveryCache
from .config import config
from .providers import MetricSampleProvider, PerformanceProfile

logger = logging.getLogger(__name__)

OVERALL = "overall"


class RecoveryEngine:
    """Recovery, performance and injury-risk analysis for one sample provider."""

    def __init__(self,
                 provider: MetricSampleProvider,
                 cache: Optional[RecoveryCache] = None,
                 clock: Optional[Clock] = None,
                 rng: Optional[np.random.Generator] = None,
                 aggregator: Optional[CompositeRecoveryAggregator] = None,
                 deterministic_risk: Optional[bool] = None):
        self.provider = provider
        self.clock = clock or (cache.clock if cache is not None else Clock())
        self.cache = cache if cache is not None else RecoveryCache(clock=self.clock)
        self.scorers = build_scorers(provider)
        self.aggregator = aggregator or CompositeRecoveryAggregator()
        self.projector = TrajectoryProjector()
        self.risk_classifier = InjuryRiskClassifier(rng=rng, deterministic=deterministic_risk)
        self.comparative = ComparativeAnalyzer()
        self._counts: Counter = Counter()
        self._counts_lock = threading.Lock()

    def _count(self, operation: str) -> None:
        with self._counts_lock:
            self._counts[operation] += 1

    # ------------------------------------------------------------------
    # Recovery analysis
    # ------------------------------------------------------------------

    def analyze_recovery(self, athlete_id: str, timeframe_days: Optional[int] = None) -> RecoveryAnalysis:
        """Score every domain, aggregate, and cache the result.

        Within the TTL a repeat call for the same timeframe returns the cached
        analysis object. Provider errors propagate unchanged.
        """
        timeframe_days = timeframe_days if timeframe_days is not None else config.DEFAULT_TIMEFRAME_DAYS
        validate_timeframe(timeframe_days)

        cached = self.cache.get(athlete_id, RECOVERY_KIND)
        if cached is not None and cached.timeframe_days == timeframe_days:
            logger.debug(f"Cache hit for athlete {athlete_id} ({timeframe_days}d)")
            self._count("cache_hits")
            return cached

        logger.info(f"Computing recovery analysis for athlete {athlete_id} ({timeframe_days}d)")

        domain_scores: Dict[Domain, DomainScore] = {}
        for domain, scorer in self.scorers.items():
            domain_score = scorer.score(athlete_id, timeframe_days)
            if domain_score is not None:
                domain_scores[domain] = domain_score

        summary = self.aggregator.summarize(domain_scores)
        analysis = RecoveryAnalysis(
            athlete_id=athlete_id,
            timeframe_days=timeframe_days,
            timestamp=self.clock.now(),
            domain_scores=domain_scores,
            optimization_score=summary["optimization_score"],
            recommendations=summary["recommendations"],
            risk_factors=summary["risk_factors"],
        )

        self.cache.put(athlete_id, analysis, RECOVERY_KIND)
        self._count("recovery_analyses")
        return analysis

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def predict_performance_trajectory(self, features: Union[AthleteFeatures, Mapping[str, Any]],
                                       horizon_periods: Optional[int] = None) -> TrajectoryForecast:
        horizon_periods = horizon_periods if horizon_periods is not None else config.DEFAULT_HORIZON_PERIODS
        validate_horizon(horizon_periods)
        if not isinstance(features, AthleteFeatures):
            features = AthleteFeatures.from_mapping(features)
        forecast = self.projector.forecast(features, horizon_periods)
        self._count("trajectory_predictions")
        return forecast

    def predict_injury_risk(self, risk_inputs: Union[RiskInputs, Mapping[str, Any]]) -> InjuryRiskAssessment:
        if not isinstance(risk_inputs, RiskInputs):
            risk_inputs = RiskInputs.from_mapping(risk_inputs)
        assessment = self.risk_classifier.classify(risk_inputs)
        self._count("injury_risk_predictions")
        return assessment

    def generate_comparative_analysis(self, athlete_id: str,
                                      peer_group: Sequence[PerformanceProfile]) -> Dict[str, Any]:
        athlete = self.provider.get_performance_profile(athlete_id)
        result = self.comparative.analyze(athlete, peer_group)
        self._count("comparative_analyses")
        return result

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    def get_recovery_trends(self, athlete_id: str, days: Optional[int] = None) -> Dict[str, Any]:
        """Daily domain and overall scores with improvement deltas and 7-day forecasts."""
        days = days if days is not None else config.DEFAULT_TREND_DAYS
        validate_timeframe(days)

        daily_samples = {
            Domain.SLEEP: self.provider.get_sleep_samples(athlete_id, days),
            Domain.NUTRITION: self.provider.get_nutrition_samples(athlete_id, days),
            Domain.STRESS: self.provider.get_stress_samples(athlete_id, days),
        }
        sessions = self.provider.get_training_sessions(athlete_id, days + CHRONIC_WINDOW_DAYS - 1)

        sample_dates = [s.date for samples in daily_samples.values() for s in samples]
        sample_dates += [s.date for s in sessions]
        if not sample_dates:
            logger.warning(f"No samples for athlete {athlete_id} over {days} days")
            return {"athlete_id": athlete_id, "days": days, "trends": {}, "improvement": {}, "predictions": {}}

        end = max(sample_dates)
        calendar = [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

        by_day = {domain: defaultdict(list) for domain in daily_samples}
        for domain, samples in daily_samples.items():
            for sample in samples:
                by_day[domain][sample.date].append(sample)

        series: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for day in calendar:
            day_scores: Dict[Domain, float] = {}

            for domain, samples_by_day in by_day.items():
                if samples_by_day.get(day):
                    day_scores[domain] = self.scorers[domain].score_samples(samples_by_day[day], 1).score

            window_start = day - timedelta(days=CHRONIC_WINDOW_DAYS - 1)
            trailing = [s for s in sessions if window_start <= s.date <= day]
            if trailing:
                day_scores[Domain.WORKLOAD] = self.scorers[Domain.WORKLOAD].score_samples(
                    trailing, 7, as_of=day).score

            if not day_scores:
                continue

            for domain, score in day_scores.items():
                series[domain.value].append({"date": day.isoformat(), "score": score})
            series[OVERALL].append({"date": day.isoformat(),
                                    "score": self.aggregator.aggregate_values(day_scores)})

        improvement = {}
        predictions = {}
        for name, points in series.items():
            values = [point["score"] for point in points]
            improvement[name] = trends.improvement(values)
            prediction = trends.forecast(values)
            if prediction is not None:
                predictions[name] = prediction

        return {
            "athlete_id": athlete_id,
            "days": days,
            "trends": dict(series),
            "improvement": improvement,
            "predictions": predictions,
        }

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_cache(self, athlete_id: Optional[str] = None) -> None:
        self.cache.clear(athlete_id)
        if athlete_id is None:
            logger.info("Cleared all cached analyses")
        else:
            logger.info(f"Cleared cached analyses for athlete {athlete_id!r}")

    def sweep_cache(self) -> int:
        return self.cache.invalidate_expired()

    def stats(self) -> Dict[str, Any]:
        """Operation counts since this engine was created, plus current cache size."""
        with self._counts_lock:
            counts = Counter(self._counts)
        return {
            "recovery_analyses": counts["recovery_analyses"],
            "cache_hits": counts["cache_hits"],
            "trajectory_predictions": counts["trajectory_predictions"],
            "injury_risk_predictions": counts["injury_risk_predictions"],
            "total_predictions": counts["trajectory_predictions"] + counts["injury_risk_predictions"],
            "comparative_analyses": counts["comparative_analyses"],
            "cached_analyses": len(self.cache),
            "last_updated": self.clock.now().isoformat(),
        }


def get_recovery_engine(provider: MetricSampleProvider, clock: Optional[Clock] = None) -> RecoveryEngine:
    """Get a recovery engine using the configured cache backend."""
    clock = clock or Clock()
    ttl = timedelta(seconds=config.cache_ttl_seconds())
    if config.CACHE_BACKEND == "sql":
        from .db.cache_store import SqlRecoveryCache
        cache = SqlRecoveryCache(clock=clock, ttl=ttl)
    else:
        cache = RecoveryCache(clock=clock, ttl=ttl)
    return RecoveryEngine(provider, cache=cache, clock=clock)
