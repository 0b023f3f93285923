"""
PURPOSE: Rank-correlation sensitivity analysis for Monte Carlo simulation outputs.

This module identifies which tasks' duration uncertainty drives the project
duration. For each task it computes the Spearman rank correlation between
the task's sampled durations and the per-iteration project durations, then
ranks tasks by absolute correlation (the tornado chart order).

SRP/DRY: Single responsibility = sensitivity analysis only.
         No result formatting, no simulation, no recommendation logic.
"""

from typing import List, Sequence

import numpy as np
from scipy.stats import rankdata

from .config import ROUND_CORRELATION
from .estimates import TaskDistribution
from .outputs import SensitivityItem
from .simulation import SimulationSamples
from .statistics import round_half_up


def spearman_correlation(x, y) -> float:
    """
    Spearman rank correlation with average ranks for ties.

    Computed as the Pearson correlation of the rank vectors, so ties never
    push the coefficient outside [-1, 1].

    Returns:
        0.0 when there are fewer than two samples or either input is constant.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"inputs must have the same length, got {x.size} and {y.size}")
    if x.size < 2:
        return 0.0

    rank_x = rankdata(x, method="average")
    rank_y = rankdata(y, method="average")
    dx = rank_x - rank_x.mean()
    dy = rank_y - rank_y.mean()
    denominator = np.sqrt(np.dot(dx, dx) * np.dot(dy, dy))
    if denominator == 0:
        return 0.0
    return float(np.clip(np.dot(dx, dy) / denominator, -1.0, 1.0))


class SensitivityAnalyzer:
    """
    Computes Spearman sensitivity of project duration to each task duration.

    Assumptions:
    - Output is the scalar project duration per iteration.
    - Sufficient sample size (typically 1000+ iterations for stable ranks).
    """

    def analyze(
        self,
        distributions: Sequence[TaskDistribution],
        samples: SimulationSamples,
    ) -> List[SensitivityItem]:
        """
        Rank tasks by how strongly their duration tracks project duration.

        Args:
            distributions: Task estimates, in samples column order.
            samples: Accumulated iteration data.

        Returns:
            SensitivityItem list sorted by |rho| descending, ranks 1..N.

        Raises:
            ValueError: If distributions and samples disagree on the task list.
        """
        if [d.task_id for d in distributions] != samples.task_ids:
            raise ValueError("distributions and samples must list the same tasks in the same order")

        scored = []
        for column, dist in enumerate(distributions):
            rho = spearman_correlation(samples.task_durations[:, column], samples.total_durations)
            scored.append((dist, round_half_up(rho, ROUND_CORRELATION)))

        # Stable sort keeps task list order among equal magnitudes
        scored.sort(key=lambda pair: abs(pair[1]), reverse=True)

        return [
            SensitivityItem(
                task_id=dist.task_id,
                task_name=dist.task_name,
                correlation_coefficient=rho,
                rank=rank,
            )
            for rank, (dist, rho) in enumerate(scored, 1)
        ]


def compute_sensitivity(
    distributions: Sequence[TaskDistribution],
    samples: SimulationSamples,
) -> List[SensitivityItem]:
    return SensitivityAnalyzer().analyze(distributions, samples)
