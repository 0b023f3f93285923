"""
PURPOSE: Structured, immutable result of a schedule risk simulation.

These dataclasses are the engine's only externally visible artifact. Each one
converts to plain dicts for JSON serialization; nothing here computes
statistics.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .models import SimulationConfig


@dataclass(frozen=True)
class DurationStats:
    """Project duration statistics across iterations, in days (2 decimals)."""
    min: float
    max: float
    mean: float
    std_dev: float
    p50: float
    p80: float
    p90: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "std_dev": self.std_dev,
            "p50": self.p50,
            "p80": self.p80,
            "p90": self.p90,
        }


@dataclass(frozen=True)
class CompletionDates:
    """ISO calendar dates (YYYY-MM-DD) for the P50/P80/P90 durations."""
    p50: str
    p80: str
    p90: str

    def to_dict(self) -> Dict[str, Any]:
        return {"p50": self.p50, "p80": self.p80, "p90": self.p90}


@dataclass(frozen=True)
class CostForecast:
    """Whole-currency cost figures for the P50/P80/P90 durations."""
    p50: int
    p80: int
    p90: int

    def to_dict(self) -> Dict[str, Any]:
        return {"p50": self.p50, "p80": self.p80, "p90": self.p90}


@dataclass(frozen=True)
class HistogramBin:
    min: float
    max: float
    count: int
    cumulative_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "count": self.count,
            "cumulative_percent": self.cumulative_percent,
        }


@dataclass(frozen=True)
class SensitivityItem:
    """
    How strongly one task's duration drives the project duration.

    Attributes:
        task_id (str): Task identifier.
        task_name (str): Task display name.
        correlation_coefficient (float): Spearman rho in [-1, 1], 4 decimals.
        rank (int): 1 = strongest absolute correlation.
    """
    task_id: str
    task_name: str
    correlation_coefficient: float
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "correlation_coefficient": self.correlation_coefficient,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class CriticalityIndexItem:
    task_id: str
    task_name: str
    criticality_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "criticality_percent": self.criticality_percent,
        }


@dataclass(frozen=True)
class ConfidencePercentile:
    """Duration, completion date and cost at one requested confidence level."""
    confidence_level: float
    duration_days: float
    completion_date: str
    cost: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_level": self.confidence_level,
            "duration_days": self.duration_days,
            "completion_date": self.completion_date,
            "cost": self.cost,
        }


@dataclass(frozen=True)
class SimulationResult:
    """
    Complete output of one simulation run.

    Attributes:
        completion_date (CompletionDates): P50/P80/P90 completion dates.
        duration_stats (DurationStats): Min/max/mean/std dev and percentiles.
        histogram (tuple[HistogramBin, ...]): Distribution of project durations.
        sensitivity_analysis (tuple[SensitivityItem, ...]): Ranked duration drivers.
        criticality_index (tuple[CriticalityIndexItem, ...]): Critical-path frequency, descending.
        cost_forecast (CostForecast): P50/P80/P90 cost figures (zero without a budget).
        confidence_percentiles (tuple[ConfidencePercentile, ...]): One entry per requested level.
        simulation_config (SimulationConfig): The validated configuration used.
        iterations_run (int): Number of completed iterations.
    """
    completion_date: CompletionDates
    duration_stats: DurationStats
    histogram: tuple[HistogramBin, ...]
    sensitivity_analysis: tuple[SensitivityItem, ...]
    criticality_index: tuple[CriticalityIndexItem, ...]
    cost_forecast: CostForecast
    confidence_percentiles: tuple[ConfidencePercentile, ...]
    simulation_config: SimulationConfig
    iterations_run: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert results to dictionary for JSON serialization."""
        return {
            "completion_date": self.completion_date.to_dict(),
            "duration_stats": self.duration_stats.to_dict(),
            "histogram": {"bins": [b.to_dict() for b in self.histogram]},
            "sensitivity_analysis": [s.to_dict() for s in self.sensitivity_analysis],
            "criticality_index": [c.to_dict() for c in self.criticality_index],
            "cost_forecast": self.cost_forecast.to_dict(),
            "confidence_percentiles": [c.to_dict() for c in self.confidence_percentiles],
            "simulation_config": self.simulation_config.to_dict(),
            "iterations_run": self.iterations_run,
        }
