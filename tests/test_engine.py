"""Tests for the recovery engine facade."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
import numpy as np

from athlete_recovery.analysis.models import Domain, RiskLevel
from athlete_recovery.cache import RecoveryCache
from athlete_recovery.db import Database, SqlRecoveryCache
from athlete_recovery.engine import RecoveryEngine
from athlete_recovery.errors import ComputationError, InputError, ProviderError
from athlete_recovery.providers import PerformanceProfile, StaticSampleProvider, SyntheticSampleProvider


class CountingProvider(StaticSampleProvider):
    """Static provider that counts sleep fetches."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sleep_calls = 0

    def get_sleep_samples(self, athlete_id, days):
        self.sleep_calls += 1
        return super().get_sleep_samples(athlete_id, days)


class FailingProvider(StaticSampleProvider):
    """Provider whose stress source is down."""

    def get_stress_samples(self, athlete_id, days):
        raise ProviderError("stress service unavailable")


@pytest.fixture
def full_provider(samples):
    week = samples["week"]
    return CountingProvider(
        sleep=week(samples["sleep"]),
        nutrition=week(samples["nutrition"]),
        stress=week(samples["stress"]),
        sessions=week(samples["session"], days=28),
    )


def make_engine(provider, clock):
    return RecoveryEngine(provider, cache=RecoveryCache(clock=clock, ttl=timedelta(hours=24)),
                          rng=np.random.default_rng(3))


class TestAnalyzeRecovery:
    """Test cache-aware recovery analysis."""

    def test_full_analysis(self, full_provider, clock):
        analysis = make_engine(full_provider, clock).analyze_recovery("a1", 7)

        assert set(analysis.domain_scores) == set(Domain)
        assert 0 <= analysis.optimization_score <= 100
        assert analysis.timestamp == clock.now()
        assert analysis.timeframe_days == 7

    def test_idempotent_within_ttl(self, full_provider, clock):
        engine = make_engine(full_provider, clock)

        first = engine.analyze_recovery("a1", 7)
        clock.advance(hours=23)
        second = engine.analyze_recovery("a1", 7)

        assert second is first
        assert full_provider.sleep_calls == 1

    def test_recomputes_once_after_ttl(self, full_provider, clock):
        engine = make_engine(full_provider, clock)
        first = engine.analyze_recovery("a1", 7)

        clock.advance(hours=24, seconds=1)
        third = engine.analyze_recovery("a1", 7)
        fourth = engine.analyze_recovery("a1", 7)

        assert full_provider.sleep_calls == 2
        assert third is not first
        assert fourth is third
        assert third.optimization_score == first.optimization_score

    def test_different_timeframe_recomputes(self, full_provider, clock):
        engine = make_engine(full_provider, clock)
        engine.analyze_recovery("a1", 7)
        result = engine.analyze_recovery("a1", 3)

        assert result.timeframe_days == 3
        assert full_provider.sleep_calls == 2

    def test_clear_cache(self, full_provider, clock):
        engine = make_engine(full_provider, clock)
        engine.analyze_recovery("a1", 7)
        engine.clear_cache("a1")
        engine.analyze_recovery("a1", 7)

        assert full_provider.sleep_calls == 2

    def test_clear_cache_empty_id_is_not_clear_all(self, full_provider, clock, caplog):
        engine = make_engine(full_provider, clock)
        engine.analyze_recovery("a1", 7)

        with caplog.at_level(logging.INFO, logger="athlete_recovery.engine"):
            engine.clear_cache("")

        assert len(engine.cache) == 1
        assert "Cleared cached analyses for athlete ''" in caplog.text
        assert "Cleared all" not in caplog.text

    def test_partial_domains(self, samples, clock):
        provider = StaticSampleProvider(sleep=samples["week"](samples["sleep"]))
        analysis = make_engine(provider, clock).analyze_recovery("a1", 7)

        assert list(analysis.domain_scores) == [Domain.SLEEP]
        assert analysis.optimization_score == analysis.domain_scores[Domain.SLEEP].score

    def test_no_samples_raises(self, clock):
        with pytest.raises(ComputationError):
            make_engine(StaticSampleProvider(), clock).analyze_recovery("a1", 7)

    def test_provider_error_propagates(self, samples, clock):
        provider = FailingProvider(sleep=samples["week"](samples["sleep"]))
        engine = make_engine(provider, clock)

        with pytest.raises(ProviderError, match="stress service unavailable"):
            engine.analyze_recovery("a1", 7)
        assert len(engine.cache) == 0

    def test_invalid_timeframe(self, full_provider, clock):
        with pytest.raises(InputError):
            make_engine(full_provider, clock).analyze_recovery("a1", -7)

    def test_sweep(self, full_provider, clock):
        engine = make_engine(full_provider, clock)
        engine.analyze_recovery("a1", 7)

        clock.advance(hours=25)
        assert engine.sweep_cache() == 1


class TestPredictions:
    """Test trajectory, injury risk and comparative operations."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = StaticSampleProvider(profiles={
            "a1": PerformanceProfile(id="a1", name="A1", age=24, position="WR", experience=4,
                                     metrics={"speed": 80, "strength": 70, "endurance": 60, "technique": 90}),
        })
        self.engine = RecoveryEngine(self.provider, rng=np.random.default_rng(5))

    def test_trajectory_from_mapping(self):
        forecast = self.engine.predict_performance_trajectory(
            {"age": 24, "experience": 5, "training_hours": 22, "recovery_score": 78, "injury_history": 0}, 12)

        assert forecast.horizon_periods == 12
        assert forecast.trajectory[0].confidence == pytest.approx(0.93)
        assert forecast.trajectory[-1].confidence == pytest.approx(0.71)

    def test_trajectory_missing_feature(self):
        with pytest.raises(InputError):
            self.engine.predict_performance_trajectory({"age": 24}, 12)

    def test_injury_risk(self):
        assessment = self.engine.predict_injury_risk({
            "workload": 85, "recovery_score": 55, "age": 40, "previous_injuries": 0, "training_intensity": 50,
        })

        assert assessment.level is RiskLevel.HIGH
        assert 0.25 <= assessment.probability < 0.5

    def test_comparative_analysis(self):
        peers = SyntheticSampleProvider(seed=1).get_peer_group("a1", 10)
        result = self.engine.generate_comparative_analysis("a1", peers)

        assert set(result["rankings"]) == {"speed", "strength", "endurance", "technique"}
        assert len(result["similar_athletes"]) == 3

    def test_comparative_unknown_athlete(self):
        with pytest.raises(ProviderError):
            self.engine.generate_comparative_analysis("ghost", [])


class TestRecoveryTrends:
    """Test daily trend series."""

    def test_sleep_only_trends(self, samples, clock):
        nights = [samples["sleep"](offset, quality=60 + 3 * (9 - offset)) for offset in range(9, -1, -1)]
        result = make_engine(StaticSampleProvider(sleep=nights), clock).get_recovery_trends("a1", 10)

        sleep = [point["score"] for point in result["trends"]["sleep"]]
        overall = [point["score"] for point in result["trends"]["overall"]]

        assert len(sleep) == 10
        assert sleep == overall
        assert sleep == sorted(sleep)
        assert result["predictions"]["sleep"]["trend"] == "improving"
        assert result["improvement"]["sleep"] > 0
        assert result["trends"]["sleep"][-1]["date"] == samples["day"](0).isoformat()

    def test_all_domains(self, full_provider, clock):
        result = make_engine(full_provider, clock).get_recovery_trends("a1", 7)

        assert set(result["trends"]) == {"sleep", "nutrition", "stress", "workload", "overall"}
        assert all(len(points) == 7 for points in result["trends"].values())
        assert result["improvement"]["overall"] == 0  # fewer than 8 points

    def test_no_samples(self, clock):
        result = make_engine(StaticSampleProvider(), clock).get_recovery_trends("a1", 14)
        assert result["trends"] == {}

    def test_synthetic_provider(self, clock):
        engine = make_engine(SyntheticSampleProvider(seed=42), clock)
        result = engine.get_recovery_trends("athlete-001", 30)

        assert len(result["trends"]["overall"]) == 30
        for points in result["trends"].values():
            assert all(0 <= point["score"] <= 100 for point in points)


class TestEngineStats:
    """Test operation counters."""

    def test_fresh_engine(self, full_provider, clock):
        stats = make_engine(full_provider, clock).stats()

        assert stats["recovery_analyses"] == 0
        assert stats["total_predictions"] == 0
        assert stats["cached_analyses"] == 0
        assert stats["last_updated"] == clock.now().isoformat()

    def test_counts_operations(self, full_provider, clock):
        engine = make_engine(full_provider, clock)
        engine.analyze_recovery("a1", 7)
        engine.analyze_recovery("a1", 7)
        engine.analyze_recovery("a2", 7)
        engine.predict_performance_trajectory(
            {"age": 24, "experience": 5, "training_hours": 22, "recovery_score": 78, "injury_history": 0}, 4)
        engine.predict_injury_risk({
            "workload": 40, "recovery_score": 80, "age": 25, "previous_injuries": 0, "training_intensity": 50,
        })

        stats = engine.stats()
        assert stats["recovery_analyses"] == 2
        assert stats["cache_hits"] == 1
        assert stats["trajectory_predictions"] == 1
        assert stats["injury_risk_predictions"] == 1
        assert stats["total_predictions"] == 2
        assert stats["cached_analyses"] == 2

    def test_failed_operations_not_counted(self, full_provider, clock):
        engine = make_engine(full_provider, clock)
        with pytest.raises(InputError):
            engine.predict_performance_trajectory({"age": 24}, 12)

        assert engine.stats()["trajectory_predictions"] == 0


class TestSqlBackedEngine:
    """Engine over a file-backed SQL cache."""

    def test_concurrent_misses_for_one_athlete(self, full_provider, clock, tmp_path):
        db = Database(f"sqlite:///{tmp_path / 'cache.db'}")
        engine = RecoveryEngine(full_provider, cache=SqlRecoveryCache(db=db, clock=clock),
                                rng=np.random.default_rng(3))
        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(lambda _: engine.analyze_recovery("a1", 7), range(16)))

            assert len({analysis.optimization_score for analysis in results}) == 1
            assert len(engine.cache) == 1
        finally:
            db.close()
