"""
PURPOSE: Run a schedule risk simulation end to end for one schedule.

Wires the collaborators (schedule repository, budget provider, optional
baseline provider) to the distribution builder, the iteration driver and the
statistical aggregation, and returns one immutable SimulationResult.

CONSTRAINTS:
- Configuration is validated before anything is fetched or computed
- Not-found conditions abort before any iteration state is allocated
- Budget and baseline lookups are best effort: failures degrade the cost
  forecast, they never fail the run
- Either a complete result is returned or an error is raised
"""

import logging
import numbers
from typing import Any, Callable, Optional

import numpy as np

from .config import CHUNK_SIZE, NUM_WORKERS, PERCENTILES, RANDOM_SEED, ROUND_DURATION
from .cost import build_cost_forecast, resolve_baseline_duration, scale_cost
from .errors import NoTasksFoundError, ScheduleNotFoundError
from .estimates import build_distributions
from .models import Schedule, SimulationConfig, parse_simulation_config
from .network import TaskNetwork, build_predecessor_map
from .outputs import ConfidencePercentile, SimulationResult
from .repository import BaselineDurationProvider, ProjectBudgetProvider, ScheduleRepository
from .sensitivity import compute_sensitivity
from .simulation import MonteCarloSimulation
from .statistics import (
    build_histogram,
    completion_date,
    compute_completion_dates,
    compute_criticality_index,
    compute_duration_stats,
    compute_percentile,
    round_half_up,
)

logger = logging.getLogger(__name__)


class ScheduleRiskService:
    """
    Monte Carlo schedule risk engine.

    Args:
        schedule_repository: Supplies schedules and their tasks
        budget_provider: Supplies the allocated budget per project (optional)
        baseline_provider: Supplies a deterministic project duration (optional);
                           the simulated P50 is used when unavailable
        random_seed: Seed for reproducible runs (None = random)
        workers: Threads used for iteration chunks
        chunk_size: Iterations per independently seeded chunk
    """

    def __init__(
        self,
        schedule_repository: ScheduleRepository,
        budget_provider: Optional[ProjectBudgetProvider] = None,
        baseline_provider: Optional[BaselineDurationProvider] = None,
        random_seed=RANDOM_SEED,
        workers: int = NUM_WORKERS,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.schedule_repository = schedule_repository
        self.budget_provider = budget_provider
        self.baseline_provider = baseline_provider
        self.random_seed = random_seed
        self.workers = workers
        self.chunk_size = chunk_size

    def run_simulation(
        self,
        schedule_id: str,
        config: Any = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> SimulationResult:
        """
        Simulate completion-date and cost uncertainty for a schedule.

        Args:
            schedule_id: Schedule to simulate
            config: None, a SimulationConfig, or a mapping of config fields
            should_cancel: Cooperative cancellation hook, polled between chunks
            timeout_seconds: Wall-clock budget for the iteration loop

        Returns:
            SimulationResult

        Raises:
            SimulationConfigError: config outside declared bounds
            ScheduleNotFoundError: the schedule does not exist
            NoTasksFoundError: the schedule has no tasks
            SimulationCancelledError: the hook fired or the timeout elapsed
        """
        config = parse_simulation_config(config)

        schedule = self.schedule_repository.find_schedule_by_id(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)

        tasks = self.schedule_repository.find_tasks_by_schedule_id(schedule_id)
        if not tasks:
            raise NoTasksFoundError(schedule_id)

        logger.info(
            "Starting simulation for schedule %s: %s tasks, %s iterations, %s model",
            schedule_id,
            len(tasks),
            config.iterations,
            config.uncertainty_model,
        )

        deterministic_duration = self._lookup_baseline(schedule_id)
        budget = self._lookup_budget(schedule)

        distributions = build_distributions(tasks)
        network = TaskNetwork([task.id for task in tasks], build_predecessor_map(tasks))
        simulation = MonteCarloSimulation(
            num_runs=config.iterations,
            uncertainty_model=config.uncertainty_model,
            random_seed=self.random_seed,
            workers=self.workers,
            chunk_size=self.chunk_size,
            should_cancel=should_cancel,
            timeout_seconds=timeout_seconds,
        )
        samples = simulation.run(distributions, network)

        sorted_durations = np.sort(samples.total_durations)
        p50, p80, p90 = (compute_percentile(sorted_durations, p) for p in PERCENTILES)
        baseline_duration = resolve_baseline_duration(deterministic_duration, p50)

        result = SimulationResult(
            completion_date=compute_completion_dates(schedule.start_date, p50, p80, p90),
            duration_stats=compute_duration_stats(samples.total_durations, sorted_durations),
            histogram=tuple(build_histogram(sorted_durations)),
            sensitivity_analysis=tuple(compute_sensitivity(distributions, samples)),
            criticality_index=tuple(
                compute_criticality_index(distributions, samples.critical_counts, samples.iterations)
            ),
            cost_forecast=build_cost_forecast(p50, p80, p90, baseline_duration, budget),
            confidence_percentiles=self._confidence_percentiles(
                config, schedule, sorted_durations, baseline_duration, budget
            ),
            simulation_config=config,
            iterations_run=samples.iterations,
        )
        logger.info(
            "Simulation for schedule %s done: P50 %.2f, P80 %.2f, P90 %.2f days",
            schedule_id,
            p50,
            p80,
            p90,
        )
        return result

    @staticmethod
    def _confidence_percentiles(
        config: SimulationConfig,
        schedule: Schedule,
        sorted_durations: np.ndarray,
        baseline_duration: float,
        budget: Optional[float],
    ) -> tuple[ConfidencePercentile, ...]:
        rows = []
        for level in config.confidence_levels:
            duration = compute_percentile(sorted_durations, level)
            rows.append(
                ConfidencePercentile(
                    confidence_level=level,
                    duration_days=round_half_up(duration, ROUND_DURATION),
                    completion_date=completion_date(schedule.start_date, duration),
                    cost=scale_cost(duration, baseline_duration, budget),
                )
            )
        return tuple(rows)

    def _lookup_baseline(self, schedule_id: str) -> Optional[float]:
        if self.baseline_provider is None:
            return None
        try:
            return self.baseline_provider.find_baseline_duration(schedule_id)
        except Exception as e:
            logger.warning("Baseline duration unavailable for schedule %s, using simulated P50: %s", schedule_id, e)
            return None

    def _lookup_budget(self, schedule: Schedule) -> Optional[float]:
        if self.budget_provider is None or not schedule.project_id:
            return None
        try:
            budget = self.budget_provider.find_allocated_budget(schedule.project_id)
        except Exception as e:
            logger.warning("Budget unavailable for project %s, cost forecast will be zero: %s", schedule.project_id, e)
            return None
        if budget is not None and (isinstance(budget, bool) or not isinstance(budget, numbers.Real)):
            logger.warning(
                "Budget for project %s is not a number (%r), cost forecast will be zero", schedule.project_id, budget
            )
            return None
        return budget
