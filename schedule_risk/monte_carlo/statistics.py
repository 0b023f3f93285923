"""
PURPOSE: Statistical post-processing of accumulated simulation samples.

RESPONSIBILITIES:
- Linear-interpolation percentiles over the sorted project durations
- Duration statistics (min/max/mean/population std dev/P50/P80/P90)
- Completion dates from a schedule start date
- Fixed-bin histogram with cumulative percentages
- Criticality index (share of iterations each task was critical)

SRP/DRY: no sampling, no network logic, no cost scaling.
"""

import math
from datetime import date, timedelta
from typing import Sequence

import numpy as np

from .config import HISTOGRAM_BIN_COUNT, ROUND_DURATION, ROUND_PERCENT
from .estimates import TaskDistribution
from .outputs import CompletionDates, CriticalityIndexItem, DurationStats, HistogramBin


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero, so -0.125 becomes -0.13 and 0.125 becomes 0.13."""
    if value < 0:
        return -round_half_up(-value, digits)
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def compute_percentile(sorted_values, p: float) -> float:
    """
    Percentile with linear interpolation between closest ranks.

    Args:
        sorted_values: Ascending samples
        p: Percentile in [0, 100]

    Returns:
        0.0 for no samples, the sample itself for a single sample
    """
    values = np.asarray(sorted_values, dtype=float)
    if values.size == 0:
        return 0.0
    if values.size == 1:
        return float(values[0])
    return float(np.percentile(values, p, method="linear"))


def compute_duration_stats(total_durations, sorted_durations=None) -> DurationStats:
    raw = np.asarray(total_durations, dtype=float)
    if raw.size == 0:
        raise ValueError("total_durations cannot be empty")
    ordered = np.sort(raw) if sorted_durations is None else np.asarray(sorted_durations, dtype=float)
    return DurationStats(
        min=round_half_up(float(ordered[0]), ROUND_DURATION),
        max=round_half_up(float(ordered[-1]), ROUND_DURATION),
        mean=round_half_up(float(np.mean(raw)), ROUND_DURATION),
        std_dev=round_half_up(float(np.std(raw)), ROUND_DURATION),
        p50=round_half_up(compute_percentile(ordered, 50), ROUND_DURATION),
        p80=round_half_up(compute_percentile(ordered, 80), ROUND_DURATION),
        p90=round_half_up(compute_percentile(ordered, 90), ROUND_DURATION),
    )


def completion_date(start_date: date, duration_days: float) -> str:
    """Calendar date reached after `duration_days` (rounded to whole days)."""
    return (start_date + timedelta(days=int(round_half_up(duration_days)))).isoformat()


def compute_completion_dates(start_date: date, p50: float, p80: float, p90: float) -> CompletionDates:
    return CompletionDates(
        p50=completion_date(start_date, p50),
        p80=completion_date(start_date, p80),
        p90=completion_date(start_date, p90),
    )


def build_histogram(sorted_values, bin_count: int = HISTOGRAM_BIN_COUNT) -> list[HistogramBin]:
    """
    Equal-width histogram of project durations.

    Bins are half-open [min, max) except the last, which also holds the true
    maximum. When every sample is equal a single bin holds all of them.

    Args:
        sorted_values: Ascending samples
        bin_count: Number of bins (default 20)

    Returns:
        List of HistogramBin; the last bin's cumulative_percent is exactly 100
    """
    if bin_count < 1:
        raise ValueError(f"bin_count must be at least 1, got {bin_count}")
    values = np.asarray(sorted_values, dtype=float)
    total = values.size
    if total == 0:
        return []

    low = float(values[0])
    high = float(values[-1])
    span = high - low
    if span == 0:
        return [
            HistogramBin(
                min=round_half_up(low, ROUND_DURATION),
                max=round_half_up(high, ROUND_DURATION),
                count=int(total),
                cumulative_percent=100.0,
            )
        ]

    width = span / bin_count
    lower_edges = low + np.arange(bin_count) * width
    starts = np.searchsorted(values, lower_edges, side="left")
    ends = np.append(starts[1:], total)

    bins = []
    cumulative = 0
    for b in range(bin_count):
        count = int(ends[b] - starts[b])
        cumulative += count
        upper = high if b == bin_count - 1 else low + (b + 1) * width
        percent = 100.0 if b == bin_count - 1 else round_half_up(cumulative / total * 100, ROUND_PERCENT)
        bins.append(
            HistogramBin(
                min=round_half_up(float(lower_edges[b]), ROUND_DURATION),
                max=round_half_up(upper, ROUND_DURATION),
                count=count,
                cumulative_percent=percent,
            )
        )
    return bins


def compute_criticality_index(
    distributions: Sequence[TaskDistribution],
    critical_counts,
    iterations: int,
) -> list[CriticalityIndexItem]:
    """Percentage of iterations each task was critical, sorted descending."""
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")
    items = [
        CriticalityIndexItem(
            task_id=dist.task_id,
            task_name=dist.task_name,
            criticality_percent=round_half_up(int(count) / iterations * 100, ROUND_PERCENT),
        )
        for dist, count in zip(distributions, critical_counts)
    ]
    return sorted(items, key=lambda item: item.criticality_percent, reverse=True)
