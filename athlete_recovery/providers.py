"""Metric sample providers.

The scoring engine never fetches raw data itself. A host application
supplies a ``MetricSampleProvider`` that returns dated samples for an
athlete and lookback window. ``StaticSampleProvider`` serves fixed samples
(handy for hosts that already loaded them), ``SyntheticSampleProvider``
generates reproducible demo data.
"""

import zlib
import numpy as np
from datetime import date, datetime, timedelta, timezone
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .errors import ProviderError


INTENSITY_LEVELS = ("low", "moderate", "high", "max")


@dataclass(frozen=True)
class SleepSample:
    """One night of sleep."""
    date: date
    hours: float
    quality: float              # 0-100
    consistency: float          # 0-100, schedule regularity
    rem_percentage: float       # % of total sleep
    deep_sleep_percentage: float
    disturbances: int


@dataclass(frozen=True)
class NutrientDeficiency:
    nutrient: str
    severity: str               # mild or moderate
    percentage: float           # shortfall vs RDA


@dataclass(frozen=True)
class NutritionSample:
    """One day of intake."""
    date: date
    calories: float
    protein_g: float
    carbohydrates_g: float
    fats_g: float
    micronutrients: Dict[str, float]    # nutrient -> % RDA
    water_liters: float
    electrolyte_balance: float          # 0-100
    deficiencies: Sequence[NutrientDeficiency] = ()
    meal_timing: Optional[float] = None  # 0-100, None when not tracked


@dataclass(frozen=True)
class StressSample:
    """One day of stress and autonomic readings."""
    date: date
    cortisol_morning: float     # ug/dL
    cortisol_afternoon: float
    cortisol_evening: float
    rmssd: float                # ms
    perceived_stress: float     # 0-100
    mental_fatigue: float       # 0-100
    rest_day: bool = False
    recovery_activity: Optional[str] = None


@dataclass(frozen=True)
class TrainingSession:
    """One training session."""
    date: date
    duration_minutes: float
    intensity: str              # low, moderate, high, max
    rpe: float                  # 1-10
    load: float                 # arbitrary units


@dataclass
class PerformanceProfile:
    """Performance metrics used for peer comparison."""
    id: str
    name: str
    age: int
    position: str
    experience: int
    metrics: Dict[str, float] = field(default_factory=dict)


class MetricSampleProvider:
    """Interface the host application implements to feed the engine.

    Implementations return samples ordered oldest first. Failures should be
    raised as ``ProviderError``; the engine propagates them unchanged.
    """

    def get_sleep_samples(self, athlete_id: str, days: int) -> List[SleepSample]:
        raise NotImplementedError

    def get_nutrition_samples(self, athlete_id: str, days: int) -> List[NutritionSample]:
        raise NotImplementedError

    def get_stress_samples(self, athlete_id: str, days: int) -> List[StressSample]:
        raise NotImplementedError

    def get_training_sessions(self, athlete_id: str, days: int) -> List[TrainingSession]:
        raise NotImplementedError

    def get_performance_profile(self, athlete_id: str) -> PerformanceProfile:
        raise NotImplementedError


def _last_days(samples: Sequence, days: int) -> List:
    """Keep samples dated within the last ``days`` calendar days of the newest sample."""
    if not samples:
        return []
    ordered = sorted(samples, key=lambda s: s.date)
    cutoff = ordered[-1].date - timedelta(days=days - 1)
    return [s for s in ordered if s.date >= cutoff]


class StaticSampleProvider(MetricSampleProvider):
    """Serve samples that were loaded up front."""

    def __init__(self,
                 sleep: Optional[Sequence[SleepSample]] = None,
                 nutrition: Optional[Sequence[NutritionSample]] = None,
                 stress: Optional[Sequence[StressSample]] = None,
                 sessions: Optional[Sequence[TrainingSession]] = None,
                 profiles: Optional[Dict[str, PerformanceProfile]] = None):
        self.sleep = list(sleep or [])
        self.nutrition = list(nutrition or [])
        self.stress = list(stress or [])
        self.sessions = list(sessions or [])
        self.profiles = dict(profiles or {})

    def get_sleep_samples(self, athlete_id: str, days: int) -> List[SleepSample]:
        return _last_days(self.sleep, days)

    def get_nutrition_samples(self, athlete_id: str, days: int) -> List[NutritionSample]:
        return _last_days(self.nutrition, days)

    def get_stress_samples(self, athlete_id: str, days: int) -> List[StressSample]:
        return _last_days(self.stress, days)

    def get_training_sessions(self, athlete_id: str, days: int) -> List[TrainingSession]:
        return _last_days(self.sessions, days)

    def get_performance_profile(self, athlete_id: str) -> PerformanceProfile:
        if athlete_id not in self.profiles:
            raise ProviderError(f"No performance profile for athlete {athlete_id}")
        return self.profiles[athlete_id]


class SyntheticSampleProvider(MetricSampleProvider):
    """Reproducible demo data in physiologically plausible ranges.

    The same (seed, athlete, domain, window) always yields the same samples,
    so repeated analyses see unchanged provider data.
    """

    RECOVERY_ACTIVITIES = ("meditation", "yoga", "massage", "stretching", "light cardio")
    TRACKED_NUTRIENTS = ("vitamin_d", "iron", "calcium", "vitamin_c", "zinc")
    POSITIONS = ("QB", "RB", "WR", "TE", "OL", "DL", "LB", "CB", "S")

    def __init__(self, seed: int = 42, end_date: Optional[date] = None):
        self.seed = seed
        self.end_date = end_date or datetime.now(timezone.utc).date()

    def _rng(self, athlete_id: str, stream: int) -> np.random.Generator:
        return np.random.default_rng([self.seed, zlib.crc32(athlete_id.encode()), stream])

    def _dates(self, days: int) -> List[date]:
        return [self.end_date - timedelta(days=i) for i in range(days - 1, -1, -1)]

    def get_sleep_samples(self, athlete_id: str, days: int) -> List[SleepSample]:
        rng = self._rng(athlete_id, 1)
        return [
            SleepSample(
                date=day,
                hours=round(float(rng.uniform(6.5, 9.5)), 2),
                quality=float(rng.integers(60, 100)),
                consistency=float(rng.integers(70, 100)),
                rem_percentage=float(rng.integers(20, 40)),
                deep_sleep_percentage=float(rng.integers(15, 30)),
                disturbances=int(rng.integers(0, 5)),
            )
            for day in self._dates(days)
        ]

    def get_nutrition_samples(self, athlete_id: str, days: int) -> List[NutritionSample]:
        rng = self._rng(athlete_id, 2)
        deficiencies = tuple(
            NutrientDeficiency(
                nutrient=nutrient,
                severity="mild" if rng.random() < 0.5 else "moderate",
                percentage=float(rng.integers(10, 50)),
            )
            for nutrient in self.TRACKED_NUTRIENTS
            if rng.random() < 0.3
        )

        dates = self._dates(days)
        samples = []
        for day in dates:
            samples.append(NutritionSample(
                date=day,
                calories=round(float(rng.uniform(2200, 3000))),
                protein_g=round(float(rng.uniform(120, 180)), 1),
                carbohydrates_g=round(float(rng.uniform(250, 350)), 1),
                fats_g=round(float(rng.uniform(70, 100)), 1),
                micronutrients={
                    "vitamin_d": round(float(rng.uniform(25, 75)), 1),
                    "iron": round(float(rng.uniform(60, 100)), 1),
                    "calcium": round(float(rng.uniform(70, 100)), 1),
                },
                water_liters=round(float(rng.uniform(2.5, 4.0)), 2),
                electrolyte_balance=round(float(rng.uniform(60, 100)), 1),
                # Lab-style findings are reported once, on the latest day
                deficiencies=deficiencies if day == dates[-1] else (),
            ))
        return samples

    def get_stress_samples(self, athlete_id: str, days: int) -> List[StressSample]:
        rng = self._rng(athlete_id, 3)
        samples = []
        for day in self._dates(days):
            activity = None
            if rng.random() < 0.6:
                activity = self.RECOVERY_ACTIVITIES[int(rng.integers(0, len(self.RECOVERY_ACTIVITIES)))]
            samples.append(StressSample(
                date=day,
                cortisol_morning=round(float(rng.uniform(15, 25)), 1),
                cortisol_afternoon=round(float(rng.uniform(8, 14)), 1),
                cortisol_evening=round(float(rng.uniform(5, 9)), 1),
                rmssd=round(float(rng.uniform(40, 80)), 1),
                perceived_stress=float(rng.integers(30, 70)),
                mental_fatigue=float(rng.integers(20, 70)),
                rest_day=bool(rng.random() < 2 / 7),
                recovery_activity=activity,
            ))
        return samples

    def get_training_sessions(self, athlete_id: str, days: int) -> List[TrainingSession]:
        rng = self._rng(athlete_id, 4)
        sessions = []
        current_load = 100.0
        for day in self._dates(days):
            current_load = float(np.clip(current_load + rng.uniform(-10, 10), 50, 200))
            if rng.random() < 1 / 7:
                continue  # rest day
            sessions.append(TrainingSession(
                date=day,
                duration_minutes=float(rng.integers(60, 180)),
                intensity=str(rng.choice(INTENSITY_LEVELS, p=[0.5, 0.3, 0.15, 0.05])),
                rpe=float(rng.integers(3, 10)),
                load=round(current_load),
            ))
        return sessions

    def get_performance_profile(self, athlete_id: str) -> PerformanceProfile:
        rng = self._rng(athlete_id, 5)
        return PerformanceProfile(
            id=athlete_id,
            name=f"Athlete {athlete_id}",
            age=int(rng.integers(18, 33)),
            position=self.POSITIONS[int(rng.integers(0, len(self.POSITIONS)))],
            experience=int(rng.integers(0, 10)),
            metrics={
                metric: float(rng.integers(40, 96))
                for metric in ("speed", "strength", "endurance", "technique")
            },
        )

    def get_peer_group(self, athlete_id: str, size: int = 20) -> List[PerformanceProfile]:
        """Synthetic peers for comparative analysis demos."""
        return [self.get_performance_profile(f"{athlete_id}-peer-{i}") for i in range(size)]
