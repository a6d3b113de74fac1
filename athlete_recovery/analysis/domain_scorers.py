"""Domain scorers: sleep, nutrition, stress and training workload.

Each scorer pulls samples for one domain from the injected provider,
summarizes the window into named metrics, evaluates its rubric table and
emits threshold-gated recommendations. Scorers hold no state between
calls, and provider errors propagate to the caller untouched.
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ..config import config
from ..errors import InputError, check_bounds
from ..providers import (
    INTENSITY_LEVELS,
    MetricSampleProvider,
    NutritionSample,
    SleepSample,
    StressSample,
    TrainingSession,
)
from .models import Domain, DomainScore, Priority, Recommendation
from .rubric import (
    BandRule,
    RubricItem,
    accuracy,
    evaluate_rubric,
    grade_from_score,
    round_half_up,
)

logger = logging.getLogger(__name__)

ACUTE_WINDOW_DAYS = 7
CHRONIC_WINDOW_DAYS = 28
IDEAL_INTENSITY_DISTRIBUTION = {"low": 50, "moderate": 30, "high": 15, "max": 5}

SEVERITY_ORDER = {"mild": 1, "moderate": 2}


def validate_timeframe(timeframe_days: int) -> None:
    if not isinstance(timeframe_days, int) or isinstance(timeframe_days, bool) or timeframe_days < 1:
        raise InputError(f"timeframe_days must be a positive integer, got {timeframe_days!r}")


class DomainScorer:
    """Shared scoring pipeline: fetch, summarize, evaluate rubric, recommend."""

    domain: Domain = None

    def __init__(self, provider: MetricSampleProvider):
        self.provider = provider
        self.rubric = self.build_rubric()

    def build_rubric(self) -> List[RubricItem]:
        raise NotImplementedError

    def fetch(self, athlete_id: str, timeframe_days: int) -> Sequence:
        raise NotImplementedError

    def summarize(self, samples: Sequence, timeframe_days: int, as_of: Optional[date] = None) -> Dict[str, Any]:
        raise NotImplementedError

    def recommend(self, metrics: Dict[str, Any]) -> List[Recommendation]:
        raise NotImplementedError

    def score(self, athlete_id: str, timeframe_days: int) -> Optional[DomainScore]:
        """Score the domain for an athlete, or None when the provider has no samples."""
        validate_timeframe(timeframe_days)
        samples = self.fetch(athlete_id, timeframe_days)
        if not samples:
            logger.warning(f"No {self.domain.value} samples for athlete {athlete_id} over {timeframe_days} days")
            return None
        return self.score_samples(samples, timeframe_days)

    def score_samples(self, samples: Sequence, timeframe_days: Optional[int] = None,
                      as_of: Optional[date] = None) -> DomainScore:
        """Score already-fetched samples."""
        if not samples:
            raise InputError(f"Cannot score {self.domain.value} without samples")
        metrics = self.summarize(samples, timeframe_days or len(samples), as_of)
        total, _ = evaluate_rubric(self.rubric, metrics)
        score = round_half_up(total)
        check_bounds(f"{self.domain.value}.score", score, 0, 100)

        return DomainScore(
            domain=self.domain,
            score=score,
            grade=grade_from_score(score),
            raw_metrics=metrics,
            recommendations=self.recommend(metrics),
        )


class SleepScorer(DomainScorer):
    """Sleep duration, quality, regularity and architecture."""

    domain = Domain.SLEEP

    def build_rubric(self) -> List[RubricItem]:
        return [
            RubricItem("average_hours", 30, bands=BandRule(ideal=(7, 9), tolerance=(6, 10), credits=(30, 20, 10))),
            RubricItem("quality_score", 25),
            RubricItem("consistency", 20),
            RubricItem("rem_percentage", 15, bands=BandRule(ideal=(20, 30), tolerance=(15, 35), credits=(15, 10, 5))),
            RubricItem("disturbances", 10, scale=lambda d: 100 - min(d * 2, 10) * 10),
        ]

    def fetch(self, athlete_id: str, timeframe_days: int) -> List[SleepSample]:
        return self.provider.get_sleep_samples(athlete_id, timeframe_days)

    def summarize(self, samples: Sequence[SleepSample], timeframe_days: int,
                  as_of: Optional[date] = None) -> Dict[str, Any]:
        return {
            "average_hours": float(np.mean([s.hours for s in samples])),
            "quality_score": float(np.mean([s.quality for s in samples])),
            "consistency": float(np.mean([s.consistency for s in samples])),
            "rem_percentage": float(np.mean([s.rem_percentage for s in samples])),
            "deep_sleep_percentage": float(np.mean([s.deep_sleep_percentage for s in samples])),
            "disturbances": float(np.mean([s.disturbances for s in samples])),
            "nights": len(samples),
        }

    def recommend(self, metrics: Dict[str, Any]) -> List[Recommendation]:
        recommendations = []

        if metrics["average_hours"] < 7:
            recommendations.append(Recommendation(
                type="duration",
                priority=Priority.HIGH,
                message="Increase sleep duration to at least 7-8 hours per night",
                actions=["Set consistent bedtime", "Avoid screens 1 hour before bed",
                         "Create optimal sleep environment"],
            ))

        if metrics["consistency"] < 80:
            recommendations.append(Recommendation(
                type="consistency",
                priority=Priority.HIGH,
                message="Improve sleep consistency by maintaining regular sleep schedule",
                actions=["Go to bed at same time", "Wake up at same time", "Avoid naps during day"],
            ))

        if metrics["disturbances"] > 2:
            recommendations.append(Recommendation(
                type="environment",
                priority=Priority.MEDIUM,
                message="Reduce sleep disturbances for better recovery",
                actions=["Keep room cool and dark", "Use white noise machine", "Limit caffeine intake"],
            ))

        return recommendations


class NutritionScorer(DomainScorer):
    """Energy balance, macronutrient split, micronutrients and hydration."""

    domain = Domain.NUTRITION

    def __init__(self, provider: MetricSampleProvider, target_calories: Optional[float] = None):
        self.target_calories = target_calories or config.TARGET_CALORIES
        super().__init__(provider)

    def build_rubric(self) -> List[RubricItem]:
        target = self.target_calories
        return [
            RubricItem("caloric_intake", 20, scale=lambda c: accuracy(c, target)),
            RubricItem("macro_balance", 25),
            RubricItem("micronutrient_average", 20),
            # Hydration contributes min(index, 20) points
            RubricItem("hydration_index", 20, scale=lambda h: min(h, 20) / 20 * 100),
            RubricItem("meal_timing", 15),
        ]

    def fetch(self, athlete_id: str, timeframe_days: int) -> List[NutritionSample]:
        return self.provider.get_nutrition_samples(athlete_id, timeframe_days)

    def summarize(self, samples: Sequence[NutritionSample], timeframe_days: int,
                  as_of: Optional[date] = None) -> Dict[str, Any]:
        calories = float(np.mean([s.calories for s in samples]))
        if calories <= 0:
            raise InputError(f"Average caloric intake must be positive, got {calories}")

        protein = float(np.mean([s.protein_g for s in samples]))
        carbohydrates = float(np.mean([s.carbohydrates_g for s in samples]))
        fats = float(np.mean([s.fats_g for s in samples]))

        protein_ratio = protein / (calories / 4) * 100
        carb_ratio = carbohydrates / (calories / 4) * 100
        fat_ratio = fats / (calories / 9) * 100
        macro_balance = 100 - (abs(protein_ratio - 25) + abs(carb_ratio - 55) + abs(fat_ratio - 20)) / 3

        micronutrients = pd.DataFrame([s.micronutrients for s in samples]).mean().to_dict()
        micro_average = float(np.mean(list(micronutrients.values()))) if micronutrients else 0.0

        water = float(np.mean([s.water_liters for s in samples]))
        electrolytes = float(np.mean([s.electrolyte_balance for s in samples]))

        timings = [s.meal_timing for s in samples if s.meal_timing is not None]
        meal_timing = float(np.mean(timings)) if timings else 100.0

        return {
            "caloric_intake": calories,
            "protein_g": protein,
            "carbohydrates_g": carbohydrates,
            "fats_g": fats,
            "macro_balance": macro_balance,
            "micronutrients": {k: float(v) for k, v in micronutrients.items()},
            "micronutrient_average": micro_average,
            "water_liters": water,
            "electrolyte_balance": electrolytes,
            "hydration_index": water / 3.5 * 50 + electrolytes / 100 * 50,
            "meal_timing": meal_timing,
            "deficiencies": self._merge_deficiencies(samples),
        }

    @staticmethod
    def _merge_deficiencies(samples: Sequence[NutritionSample]) -> List[Dict[str, Any]]:
        """One entry per nutrient, keeping the worst reported severity."""
        merged: Dict[str, Dict[str, Any]] = {}
        for sample in samples:
            for deficiency in sample.deficiencies:
                current = merged.get(deficiency.nutrient)
                if current is None or (
                    SEVERITY_ORDER.get(deficiency.severity, 0) > SEVERITY_ORDER.get(current["severity"], 0)
                ):
                    merged[deficiency.nutrient] = asdict(deficiency)
        return list(merged.values())

    def recommend(self, metrics: Dict[str, Any]) -> List[Recommendation]:
        recommendations = []

        if metrics["caloric_intake"] < 2400:
            recommendations.append(Recommendation(
                type="calories",
                priority=Priority.HIGH,
                message="Increase caloric intake to support training demands",
                actions=["Add healthy calorie-dense foods", "Increase portion sizes",
                         "Include more nuts and avocados"],
            ))

        if metrics["water_liters"] < 3:
            recommendations.append(Recommendation(
                type="hydration",
                priority=Priority.HIGH,
                message="Improve hydration for optimal performance",
                actions=["Drink water throughout day", "Monitor urine color", "Add electrolyte supplements"],
            ))

        for deficiency in metrics["deficiencies"]:
            nutrient = deficiency["nutrient"]
            recommendations.append(Recommendation(
                type="supplementation",
                priority=Priority.HIGH if deficiency["severity"] == "moderate" else Priority.MEDIUM,
                message=f"Address {nutrient} deficiency",
                actions=[f"Supplement with {nutrient}", "Include nutrient-rich foods", "Consult nutritionist"],
            ))

        return recommendations


class StressScorer(DomainScorer):
    """Hormonal and autonomic stress markers plus rest habits."""

    domain = Domain.STRESS

    def build_rubric(self) -> List[RubricItem]:
        unbounded = float("-inf")
        return [
            RubricItem("average_cortisol", 25,
                       bands=BandRule(ideal=(unbounded, 20), tolerance=(unbounded, 25), credits=(25, 20, 10))),
            RubricItem("average_hrv", 25, scale=lambda hrv: min(hrv / 80 * 100, 100)),
            RubricItem("perceived_stress", 20, scale=lambda p: max(0, 100 - p)),
            RubricItem("rest_days", 15, scale=lambda r: r / 3 * 100),
            RubricItem("recovery_frequency", 15, scale=lambda f: f * 100),
        ]

    def fetch(self, athlete_id: str, timeframe_days: int) -> List[StressSample]:
        return self.provider.get_stress_samples(athlete_id, timeframe_days)

    def summarize(self, samples: Sequence[StressSample], timeframe_days: int,
                  as_of: Optional[date] = None) -> Dict[str, Any]:
        readings = [
            reading
            for s in samples
            for reading in (s.cortisol_morning, s.cortisol_afternoon, s.cortisol_evening)
        ]
        days = len(samples)
        return {
            "average_cortisol": float(np.mean(readings)),
            "average_hrv": float(np.mean([s.rmssd for s in samples])),
            "perceived_stress": float(np.mean([s.perceived_stress for s in samples])),
            "mental_fatigue": float(np.mean([s.mental_fatigue for s in samples])),
            # Normalized to rest days per week
            "rest_days": sum(1 for s in samples if s.rest_day) * 7 / days,
            "recovery_frequency": sum(1 for s in samples if s.recovery_activity) / days,
            "days": days,
        }

    def recommend(self, metrics: Dict[str, Any]) -> List[Recommendation]:
        recommendations = []

        if metrics["perceived_stress"] > 50:
            recommendations.append(Recommendation(
                type="stress_management",
                priority=Priority.HIGH,
                message="Implement stress reduction techniques",
                actions=["Practice daily meditation", "Deep breathing exercises",
                         "Progressive muscle relaxation"],
            ))

        if metrics["rest_days"] < 2:
            recommendations.append(Recommendation(
                type="recovery",
                priority=Priority.HIGH,
                message="Increase rest days for optimal recovery",
                actions=["Schedule 2-3 rest days per week", "Active recovery activities", "Monitor fatigue levels"],
            ))

        if metrics["average_hrv"] < 50:
            recommendations.append(Recommendation(
                type="autonomic",
                priority=Priority.MEDIUM,
                message="Improve autonomic nervous system function",
                actions=["Consistent sleep schedule", "Stress management techniques", "Regular exercise routine"],
            ))

        return recommendations


def acute_chronic_ratio(acute_loads: Sequence[float], chronic_loads: Sequence[float]) -> float:
    """Acute:Chronic Workload Ratio.

    - < 0.8: Undertrained
    - 0.8-1.3: Optimal range
    - > 1.5: Danger zone
    """
    if len(chronic_loads) == 0:
        return 1.0

    acute_avg = float(np.mean(acute_loads)) if len(acute_loads) else 0.0
    chronic_avg = float(np.mean(chronic_loads))

    if chronic_avg == 0:
        return 0.0 if acute_avg == 0 else 2.0

    return acute_avg / chronic_avg


def training_monotony(daily_loads: Sequence[float]) -> float:
    """Mean over standard deviation of daily loads; 10.0 when there is no variation."""
    if len(daily_loads) < 2:
        return 0.0

    std_load = float(np.std(daily_loads))
    if std_load == 0:
        return 10.0

    return float(np.mean(daily_loads)) / std_load


class WorkloadScorer(DomainScorer):
    """Training volume, intensity distribution and load progression.

    The acute:chronic ratio needs a 28-day history, so sessions are fetched
    for at least that long while volume and intensity use the requested window.
    """

    domain = Domain.WORKLOAD

    def __init__(self, provider: MetricSampleProvider, optimal_weekly_hours: Optional[float] = None):
        self.optimal_weekly_hours = optimal_weekly_hours or config.OPTIMAL_WEEKLY_HOURS
        super().__init__(provider)

    def build_rubric(self) -> List[RubricItem]:
        optimal_hours = self.optimal_weekly_hours
        return [
            RubricItem("weekly_volume", 25, scale=lambda v: accuracy(v, optimal_hours)),
            RubricItem("intensity_distribution_score", 25),
            RubricItem("acute_chronic_ratio", 20, scale=lambda r: accuracy(r, 1.0)),
            RubricItem("monotony_index", 15, scale=lambda m: accuracy(m, 1.2)),
            RubricItem("strain_index", 15, scale=lambda s: accuracy(s, 200)),
        ]

    def fetch(self, athlete_id: str, timeframe_days: int) -> List[TrainingSession]:
        return self.provider.get_training_sessions(athlete_id, max(timeframe_days, CHRONIC_WINDOW_DAYS))

    def summarize(self, samples: Sequence[TrainingSession], timeframe_days: int,
                  as_of: Optional[date] = None) -> Dict[str, Any]:
        sessions = pd.DataFrame([asdict(s) for s in samples])
        sessions["date"] = pd.to_datetime(sessions["date"])

        end = pd.Timestamp(as_of) if as_of is not None else sessions["date"].max()
        sessions = sessions[sessions["date"] <= end]

        # Days without sessions count as zero load
        calendar = pd.date_range(end - pd.Timedelta(days=CHRONIC_WINDOW_DAYS - 1), end, freq="D")
        daily_loads = sessions.groupby("date")["load"].sum().reindex(calendar, fill_value=0.0)
        acute = daily_loads.iloc[-ACUTE_WINDOW_DAYS:].to_numpy(dtype=float)
        chronic = daily_loads.to_numpy(dtype=float)

        ratio = acute_chronic_ratio(acute, chronic)
        monotony = training_monotony(acute)
        strain = float(np.mean(acute)) * monotony

        window = sessions[sessions["date"] > end - pd.Timedelta(days=timeframe_days)]
        total_minutes = float(window["duration_minutes"].sum())
        weekly_volume = total_minutes / 60 / timeframe_days * 7

        minutes_by_intensity = window.groupby("intensity")["duration_minutes"].sum()
        distribution = {}
        for level in INTENSITY_LEVELS:
            minutes = float(minutes_by_intensity.get(level, 0.0))
            distribution[level] = minutes / total_minutes * 100 if total_minutes > 0 else 0.0

        distribution_score = float(np.mean([
            max(0.0, 100 - abs(distribution[level] - ideal) * 2)
            for level, ideal in IDEAL_INTENSITY_DISTRIBUTION.items()
        ]))

        return {
            "weekly_volume": weekly_volume,
            "intensity_distribution": distribution,
            "intensity_distribution_score": distribution_score,
            "acute_chronic_ratio": ratio,
            "monotony_index": monotony,
            "strain_index": strain,
            "sessions": int(len(window)),
        }

    def recommend(self, metrics: Dict[str, Any]) -> List[Recommendation]:
        recommendations = []

        if metrics["weekly_volume"] > 15:
            recommendations.append(Recommendation(
                type="volume",
                priority=Priority.HIGH,
                message="Reduce training volume to prevent overtraining",
                actions=["Decrease session duration", "Add more rest days", "Focus on quality over quantity"],
            ))

        if metrics["acute_chronic_ratio"] > 1.2:
            recommendations.append(Recommendation(
                type="progression",
                priority=Priority.MEDIUM,
                message="Slow down training progression",
                actions=["Reduce weekly load increases", "Monitor fatigue levels", "Include deload weeks"],
            ))

        if metrics["monotony_index"] > 1.4:
            recommendations.append(Recommendation(
                type="variety",
                priority=Priority.MEDIUM,
                message="Increase training variety",
                actions=["Incorporate different training methods", "Vary intensity levels",
                         "Include cross-training"],
            ))

        return recommendations


def build_scorers(provider: MetricSampleProvider) -> Dict[Domain, DomainScorer]:
    """All four domain scorers bound to one provider."""
    return {
        Domain.SLEEP: SleepScorer(provider),
        Domain.NUTRITION: NutritionScorer(provider),
        Domain.STRESS: StressScorer(provider),
        Domain.WORKLOAD: WorkloadScorer(provider),
    }
