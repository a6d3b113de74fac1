"""Tests for rubric scoring helpers."""

import pytest

from athlete_recovery.analysis.rubric import (
    BandRule,
    RubricItem,
    accuracy,
    clamp,
    evaluate_rubric,
    grade_from_score,
    round_half_up,
)


class TestRubricHelpers:
    """Test scalar helpers."""

    def test_clamp(self):
        assert clamp(-5) == 0
        assert clamp(105) == 100
        assert clamp(42.5) == 42.5

    def test_accuracy(self):
        assert accuracy(12, 12) == 100
        assert accuracy(9, 12) == pytest.approx(75)
        assert accuracy(30, 12) == 0  # floored

    def test_grade_boundaries(self):
        assert grade_from_score(90) == "A"
        assert grade_from_score(89) == "B"
        assert grade_from_score(80) == "B"
        assert grade_from_score(70) == "C"
        assert grade_from_score(60) == "D"
        assert grade_from_score(59) == "F"

    def test_round_half_up(self):
        # Halves always round up, unlike round()
        assert round_half_up(70.5) == 71
        assert round_half_up(74.5) == 75
        assert round_half_up(70.49) == 70


class TestBandRule:
    """Test piecewise band credits."""

    def setup_method(self):
        """Set up test fixtures."""
        self.rule = BandRule(ideal=(7, 9), tolerance=(6, 10), credits=(30, 20, 10))

    def test_ranges_are_inclusive(self):
        assert self.rule.score(7) == 30
        assert self.rule.score(9) == 30
        assert self.rule.score(6) == 20
        assert self.rule.score(10) == 20

    def test_floor_outside_tolerance(self):
        assert self.rule.score(5.99) == 10
        assert self.rule.score(11) == 10


class TestEvaluateRubric:
    """Test weighted rubric evaluation."""

    def test_weighted_sum(self):
        items = [
            RubricItem("hours", 50, bands=BandRule(ideal=(7, 9), tolerance=(6, 10), credits=(50, 30, 10))),
            RubricItem("quality", 50),
        ]
        total, breakdown = evaluate_rubric(items, {"hours": 8, "quality": 60})

        assert breakdown == {"hours": 50, "quality": pytest.approx(30)}
        assert total == pytest.approx(80)

    def test_sub_scores_are_clamped(self):
        items = [RubricItem("volume", 100, scale=lambda v: v * 10)]
        total, _ = evaluate_rubric(items, {"volume": 50})
        assert total == 100

        total, _ = evaluate_rubric(items, {"volume": -3})
        assert total == 0

    def test_missing_metric_raises(self):
        with pytest.raises(KeyError):
            evaluate_rubric([RubricItem("quality", 100)], {})
