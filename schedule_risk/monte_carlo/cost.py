"""
PURPOSE: Map percentile durations onto percentile cost figures.

Cost scales linearly with duration against a deterministic baseline:
cost(p) = round(duration(p) / baseline * budget). A missing or non-positive
budget yields an all-zero (uninformative, not erroneous) forecast.
"""

import math
from typing import Optional

from .outputs import CostForecast
from .statistics import round_half_up


def resolve_baseline_duration(deterministic_duration: Optional[float], simulated_p50: float) -> float:
    """Prefer the deterministic critical-path duration; fall back to the simulated P50."""
    if deterministic_duration is not None and math.isfinite(deterministic_duration) and deterministic_duration > 0:
        return float(deterministic_duration)
    return float(simulated_p50)


def scale_cost(duration: float, baseline_duration: float, budget: Optional[float]) -> int:
    if budget is None or not math.isfinite(budget) or budget <= 0:
        return 0
    if baseline_duration <= 0:
        return 0
    return int(round_half_up(duration / baseline_duration * budget))


def build_cost_forecast(
    p50: float,
    p80: float,
    p90: float,
    baseline_duration: float,
    budget: Optional[float],
) -> CostForecast:
    return CostForecast(
        p50=scale_cost(p50, baseline_duration, budget),
        p80=scale_cost(p80, baseline_duration, budget),
        p90=scale_cost(p90, baseline_duration, budget),
    )
