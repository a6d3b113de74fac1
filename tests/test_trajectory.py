"""Tests for performance trajectory projection."""

import pytest

from athlete_recovery.analysis.models import Priority
from athlete_recovery.analysis.trajectory import AthleteFeatures, TrajectoryProjector
from athlete_recovery.errors import InputError


class TestTrajectoryProjector:
    """Test trajectory projection."""

    def setup_method(self):
        """Set up test fixtures."""
        self.projector = TrajectoryProjector()
        self.features = AthleteFeatures(age=24, experience=5, training_hours=22,
                                        recovery_score=78, injury_history=0)

    def test_base_performance_capped(self):
        # 50 + 10 + 10 + 2.2 + 39
        assert self.projector.base_performance(self.features) == 100

    def test_base_performance_components(self):
        features = AthleteFeatures(age=40, experience=2, training_hours=10,
                                   recovery_score=40, injury_history=1)
        # 50 + 5 + 4 + 1 + 20
        assert self.projector.base_performance(features) == pytest.approx(80)

    def test_end_to_end_confidence(self):
        trajectory = self.projector.project(self.features, 12)

        assert len(trajectory) == 12
        assert [p.period_index for p in trajectory] == list(range(1, 13))
        assert trajectory[0].confidence == pytest.approx(0.93)
        assert trajectory[-1].confidence == pytest.approx(0.71)
        assert all(0 <= p.predicted_score <= 100 for p in trajectory)

    def test_confidence_decays_to_floor(self):
        trajectory = self.projector.project(self.features, 30)
        confidences = [p.confidence for p in trajectory]

        assert all(later <= earlier for earlier, later in zip(confidences, confidences[1:]))
        assert min(confidences) == pytest.approx(0.6)
        assert confidences[-1] == pytest.approx(0.6)

    def test_predictions_grow_for_moderate_athlete(self):
        features = AthleteFeatures(age=28, experience=3, training_hours=16,
                                   recovery_score=60, injury_history=0)
        trajectory = self.projector.project(features, 6)
        scores = [p.predicted_score for p in trajectory]

        assert scores == sorted(scores)
        assert scores[-1] > scores[0]

    def test_influencing_factors(self):
        features = AthleteFeatures(age=28, experience=3, training_hours=16,
                                   recovery_score=60, injury_history=0)
        trajectory = self.projector.project(features, 6)

        assert [f.factor for f in trajectory[0].influencing_factors] == [
            "Initial Training Adaptation", "Recovery Optimization Needed"]
        assert [f.factor for f in trajectory[3].influencing_factors] == ["Recovery Optimization Needed"]
        assert trajectory[5].influencing_factors[0].factor == "Experience Accumulation"

    def test_forecast_recommendations(self):
        forecast = self.projector.forecast(self.features, 12)

        # Capped trajectory: no growth insight, mean confidence 0.82
        assert forecast.insights == []
        assert [r.type for r in forecast.recommendations] == ["monitoring"]

    def test_low_confidence_and_low_scores(self):
        features = AthleteFeatures(age=40, experience=0, training_hours=4,
                                   recovery_score=30, injury_history=2)
        forecast = self.projector.forecast(features, 24)

        types = [r.type for r in forecast.recommendations]
        assert types == ["data_collection", "training_adjustment", "monitoring"]
        assert forecast.recommendations[0].priority is Priority.HIGH

    def test_growth_insight(self):
        features = AthleteFeatures(age=28, experience=3, training_hours=16,
                                   recovery_score=60, injury_history=0)
        forecast = self.projector.forecast(features, 12)

        # 85.71 -> 100, peaking at period 7 of 12
        assert [i.title for i in forecast.insights] == ["Steady Progress Expected"]
        assert forecast.insights[0].priority is Priority.MEDIUM

    def test_delayed_peak_insight(self):
        features = AthleteFeatures(age=28, experience=3, training_hours=16,
                                   recovery_score=60, injury_history=0)
        forecast = self.projector.forecast(features, 8)

        assert "Delayed Peak Performance" in [i.title for i in forecast.insights]


class TestAthleteFeatures:
    """Test feature validation."""

    def test_missing_feature_rejected(self):
        with pytest.raises(InputError, match="training_hours"):
            AthleteFeatures.from_mapping({"age": 24, "experience": 5, "recovery_score": 78,
                                          "injury_history": 0})

    def test_negative_age_rejected(self):
        with pytest.raises(InputError):
            AthleteFeatures(age=-1, experience=5, training_hours=10, recovery_score=70, injury_history=0)

    def test_recovery_out_of_range_rejected(self):
        with pytest.raises(InputError):
            AthleteFeatures(age=24, experience=5, training_hours=10, recovery_score=120, injury_history=0)

    def test_non_numeric_rejected(self):
        with pytest.raises(InputError):
            AthleteFeatures(age="24", experience=5, training_hours=10, recovery_score=70, injury_history=0)

    def test_horizon_must_be_positive(self):
        features = AthleteFeatures(age=24, experience=5, training_hours=10, recovery_score=70, injury_history=0)
        with pytest.raises(InputError):
            TrajectoryProjector().project(features, 0)
