"""Trend engine: least-squares slope, improvement deltas and short forecasts."""

import numpy as np
from typing import Dict, Optional, Sequence

from .rubric import clamp, round_half_up

FORECAST_WINDOW = 7
FORECAST_DAYS_AHEAD = 7


def slope(values: Sequence[float]) -> float:
    """Ordinary least-squares slope of values over x = 0..n-1.

    Computed on centred x and y. Fewer than two points, or a flat series,
    yields exactly 0.
    """
    n = len(values)
    if n < 2:
        return 0.0

    y = np.asarray(values, dtype=float)
    if np.ptp(y) == 0:
        return 0.0

    x = np.arange(n, dtype=float)
    dx = x - x.mean()
    return float(np.sum(dx * (y - y.mean())) / np.sum(dx * dx))


def trend_label(value: float) -> str:
    if value > 0:
        return "improving"
    if value < 0:
        return "declining"
    return "stable"


def improvement(values: Sequence[float], window: int = FORECAST_WINDOW) -> float:
    """Mean of the last ``window`` points minus the mean of the ``window`` before.

    Returns 0 when there is no earlier window to compare against.
    """
    if len(values) <= window:
        return 0.0

    recent = values[-window:]
    previous = values[-2 * window:-window]
    return round(float(np.mean(recent)) - float(np.mean(previous)), 1)


def forecast(values: Sequence[float], window: int = FORECAST_WINDOW,
             days_ahead: int = FORECAST_DAYS_AHEAD) -> Optional[Dict[str, object]]:
    """Point forecast ``days_ahead`` out from the trailing window's slope, clamped to 0-100."""
    if len(values) < 2:
        return None

    recent = list(values[-window:])
    trend_slope = slope(recent)
    current = recent[-1]
    predicted = clamp(current + trend_slope * days_ahead)
    # Label from the reported slope so a "0.0" slope never reads as a trend
    reported_slope = round(trend_slope, 3)

    return {
        "current": current,
        "predicted": round_half_up(predicted),
        "slope": reported_slope,
        "trend": trend_label(reported_slope),
    }
