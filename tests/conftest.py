"""Shared fixtures for recovery engine tests."""

from datetime import date, datetime, timedelta, timezone

import pytest

from athlete_recovery.providers import (
    NutrientDeficiency,
    NutritionSample,
    SleepSample,
    StressSample,
    TrainingSession,
)

END_DATE = date(2025, 3, 31)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


def day(offset: int) -> date:
    """Date ``offset`` days before END_DATE."""
    return END_DATE - timedelta(days=offset)


def sleep_sample(offset: int = 0, **overrides) -> SleepSample:
    values = dict(hours=8.0, quality=90, consistency=90, rem_percentage=25,
                  deep_sleep_percentage=20, disturbances=1)
    values.update(overrides)
    return SleepSample(date=day(offset), **values)


def nutrition_sample(offset: int = 0, **overrides) -> NutritionSample:
    values = dict(calories=1800, protein_g=112.5, carbohydrates_g=247.5, fats_g=40.0,
                  micronutrients={"iron": 80.0, "calcium": 100.0},
                  water_liters=3.5, electrolyte_balance=100)
    values.update(overrides)
    return NutritionSample(date=day(offset), **values)


def stress_sample(offset: int = 0, **overrides) -> StressSample:
    values = dict(cortisol_morning=15, cortisol_afternoon=10, cortisol_evening=5, rmssd=80,
                  perceived_stress=20, mental_fatigue=30, rest_day=False, recovery_activity="yoga")
    values.update(overrides)
    return StressSample(date=day(offset), **values)


def training_session(offset: int = 0, **overrides) -> TrainingSession:
    values = dict(duration_minutes=60, intensity="moderate", rpe=6, load=100)
    values.update(overrides)
    return TrainingSession(date=day(offset), **values)


def week(factory, days: int = 7, **overrides):
    """Samples for the last ``days`` days, oldest first."""
    return [factory(offset, **overrides) for offset in range(days - 1, -1, -1)]


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def samples():
    """Sample builders keyed by domain."""
    return {
        "day": day,
        "sleep": sleep_sample,
        "nutrition": nutrition_sample,
        "stress": stress_sample,
        "session": training_session,
        "deficiency": NutrientDeficiency,
        "week": week,
    }
