"""Peer-group comparative analysis."""

from datetime import datetime, timezone
from typing import Dict, List, Sequence

import numpy as np
from scipy import stats

from ..errors import InputError
from ..providers import PerformanceProfile
from .rubric import clamp

COMPARISON_METRICS = ("speed", "strength", "endurance", "technique")
SIMILAR_ATHLETE_COUNT = 3


def benchmark_label(rank: float) -> str:
    if rank >= 90:
        return "Elite"
    if rank >= 75:
        return "Advanced"
    if rank >= 50:
        return "Intermediate"
    if rank >= 25:
        return "Developing"
    return "Needs Focus"


class ComparativeAnalyzer:
    """Rank an athlete against peers and surface strengths and gaps."""

    def __init__(self, metrics: Sequence[str] = COMPARISON_METRICS):
        self.metrics = tuple(metrics)

    def rankings(self, athlete: PerformanceProfile, peers: Sequence[PerformanceProfile]) -> Dict[str, int]:
        """Percentile of the athlete's value among peer values, per metric."""
        rankings = {}
        for metric in self.metrics:
            if metric not in athlete.metrics:
                raise InputError(f"Athlete {athlete.id} has no '{metric}' metric")
            peer_values = [p.metrics[metric] for p in peers if metric in p.metrics]
            if not peer_values:
                raise InputError(f"No peer values for '{metric}'")
            percentile = stats.percentileofscore(peer_values, athlete.metrics[metric], kind="weak")
            rankings[metric] = int(round(clamp(float(percentile))))
        return rankings

    def similarity(self, athlete: PerformanceProfile, peer: PerformanceProfile) -> int:
        shared = [m for m in self.metrics if m in athlete.metrics and m in peer.metrics]
        if not shared:
            return 0
        gap = np.mean([abs(athlete.metrics[m] - peer.metrics[m]) for m in shared])
        return int(round(clamp(100 - float(gap))))

    @staticmethod
    def shared_traits(athlete: PerformanceProfile, peer: PerformanceProfile) -> List[str]:
        traits = []
        if abs(athlete.age - peer.age) <= 2:
            traits.append("Similar age")
        if athlete.position == peer.position:
            traits.append("Same position")
        if abs(athlete.experience - peer.experience) <= 2:
            traits.append("Comparable experience")
        return traits

    def similar_athletes(self, athlete: PerformanceProfile,
                         peers: Sequence[PerformanceProfile]) -> List[Dict[str, object]]:
        scored = [(self.similarity(athlete, peer), peer) for peer in peers if peer.id != athlete.id]
        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            {
                "id": peer.id,
                "name": peer.name,
                "similarity": score,
                "shared_traits": self.shared_traits(athlete, peer),
            }
            for score, peer in scored[:SIMILAR_ATHLETE_COUNT]
        ]

    def analyze(self, athlete: PerformanceProfile, peers: Sequence[PerformanceProfile]) -> Dict[str, object]:
        """Rankings, similar athletes, strengths, improvement areas and benchmarks."""
        peers = [peer for peer in peers if peer.id != athlete.id]
        if not peers:
            raise InputError("Peer group must contain at least one other athlete")

        rankings = self.rankings(athlete, peers)

        strengths = []
        improvement_areas = []
        for metric, rank in rankings.items():
            if rank >= 75:
                strengths.append({"metric": metric, "rank": rank,
                                  "description": f"Above average {metric} performance"})
            elif rank <= 25:
                improvement_areas.append({"metric": metric, "rank": rank,
                                          "description": f"Room for improvement in {metric}"})

        return {
            "athlete_id": athlete.id,
            "rankings": rankings,
            "similar_athletes": self.similar_athletes(athlete, peers),
            "strengths": strengths,
            "improvement_areas": improvement_areas,
            "benchmarks": {metric: benchmark_label(rank) for metric, rank in rankings.items()},
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
