"""Tests for peer comparative analysis."""

import pytest

from athlete_recovery.analysis.comparative import ComparativeAnalyzer, benchmark_label
from athlete_recovery.errors import InputError
from athlete_recovery.providers import PerformanceProfile


def profile(athlete_id, value, age=25, position="WR", experience=4, **metrics):
    values = {metric: value for metric in ("speed", "strength", "endurance", "technique")}
    values.update(metrics)
    return PerformanceProfile(id=athlete_id, name=athlete_id.title(), age=age,
                              position=position, experience=experience, metrics=values)


class TestComparativeAnalyzer:
    """Test percentile rankings and peer similarity."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = ComparativeAnalyzer()
        self.athlete = profile("athlete", 80, technique=40)
        self.peers = [
            profile("p1", 50, age=31, position="QB", experience=10),
            profile("p2", 60, age=26),
            profile("p3", 70, age=24, position="CB"),
            profile("p4", 90, age=29, experience=5),
        ]

    def test_rankings(self):
        rankings = self.analyzer.rankings(self.athlete, self.peers)

        assert rankings["speed"] == 75
        assert rankings["technique"] == 0

    def test_benchmark_labels(self):
        assert benchmark_label(90) == "Elite"
        assert benchmark_label(75) == "Advanced"
        assert benchmark_label(50) == "Intermediate"
        assert benchmark_label(25) == "Developing"
        assert benchmark_label(24) == "Needs Focus"

    def test_similar_athletes(self):
        similar = self.analyzer.similar_athletes(self.athlete, self.peers)

        assert [peer["id"] for peer in similar] == ["p3", "p2", "p4"]
        assert similar[0]["shared_traits"] == ["Similar age", "Comparable experience"]
        assert similar[1]["shared_traits"] == ["Similar age", "Same position", "Comparable experience"]

    def test_analyze(self):
        result = self.analyzer.analyze(self.athlete, self.peers + [self.athlete])

        assert {s["metric"] for s in result["strengths"]} == {"speed", "strength", "endurance"}
        assert [a["metric"] for a in result["improvement_areas"]] == ["technique"]
        assert result["benchmarks"]["speed"] == "Advanced"
        assert result["benchmarks"]["technique"] == "Needs Focus"
        assert "athlete" not in [peer["id"] for peer in result["similar_athletes"]]
        assert all(0 <= rank <= 100 for rank in result["rankings"].values())

    def test_empty_peer_group_rejected(self):
        with pytest.raises(InputError):
            self.analyzer.analyze(self.athlete, [])

        with pytest.raises(InputError):
            self.analyzer.analyze(self.athlete, [self.athlete])

    def test_missing_metric_rejected(self):
        athlete = PerformanceProfile(id="a", name="A", age=25, position="WR", experience=3,
                                     metrics={"speed": 70})
        with pytest.raises(InputError):
            self.analyzer.rankings(athlete, self.peers)
