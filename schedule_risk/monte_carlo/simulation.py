"""
PURPOSE: Iteration driver for the schedule risk Monte Carlo simulation.

Runs N independent iterations, each sampling one duration per task and
pushing the sampled durations through the critical-path network.

SINGLE RESPONSIBILITY:
- Sample task durations for every iteration
- Run the network pass and collect total durations and critical-path hits
- Return raw accumulated arrays (no statistics, no formatting)

CONSTRAINTS:
- Accumulators are pre-sized; each chunk of iterations owns a disjoint index range
- Each chunk draws from its own spawned generator, so results for a given seed
  do not depend on the worker count
- Does NOT modify the distributions or network; reads only
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Optional, Sequence

import numpy as np

from .config import CHUNK_SIZE, DEFAULT_UNCERTAINTY_MODEL, NUM_RUNS, NUM_WORKERS, RANDOM_SEED
from .distributions import DurationSampler, spawn_random_sources
from .errors import SimulationCancelledError
from .estimates import TaskDistribution
from .network import TaskNetwork

logger = logging.getLogger(__name__)


@dataclass
class SimulationSamples:
    """
    Raw accumulated state of a run.

    Attributes:
        task_ids: Task ids, in column order of task_durations
        total_durations: Project duration per iteration, shape (iterations,)
        task_durations: Sampled duration per iteration and task, shape (iterations, tasks)
        critical_counts: Number of iterations each task was critical, shape (tasks,)
    """
    task_ids: list[str]
    total_durations: np.ndarray
    task_durations: np.ndarray
    critical_counts: np.ndarray

    @property
    def iterations(self) -> int:
        return int(self.total_durations.shape[0])

    def task_history(self, task_id: str) -> np.ndarray:
        return self.task_durations[:, self.task_ids.index(task_id)]


class MonteCarloSimulation:
    """
    Monte Carlo iteration driver for schedule duration risk.

    Each iteration:
    - Samples every task duration from its three-point distribution
    - Runs the forward/backward pass over the dependency network
    - Records the project duration, the sampled durations and the critical tasks
    """

    def __init__(
        self,
        num_runs: int = NUM_RUNS,
        uncertainty_model: str = DEFAULT_UNCERTAINTY_MODEL,
        random_seed=RANDOM_SEED,
        workers: int = NUM_WORKERS,
        chunk_size: int = CHUNK_SIZE,
        should_cancel: Optional[Callable[[], bool]] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the iteration driver.

        Args:
            num_runs: Number of iterations (at least 1)
            uncertainty_model: "pert" or "triangular"
            random_seed: Seed for reproducibility (None = random)
            workers: Thread count; 1 runs chunks sequentially
            chunk_size: Iterations per independently seeded chunk
            should_cancel: Polled between chunks; returning True aborts the run
            timeout_seconds: Wall-clock budget, checked between chunks
        """
        if num_runs < 1:
            raise ValueError(f"num_runs must be at least 1, got {num_runs}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        # Fails fast on an unknown model name.
        DurationSampler(uncertainty_model, np.random.default_rng(0))

        self.num_runs = num_runs
        self.uncertainty_model = uncertainty_model
        self.random_seed = random_seed
        self.workers = workers
        self.chunk_size = chunk_size
        self.should_cancel = should_cancel
        self.timeout_seconds = timeout_seconds

    def run(self, distributions: Sequence[TaskDistribution], network: TaskNetwork) -> SimulationSamples:
        """
        Execute all iterations.

        Args:
            distributions: One three-point estimate per task, in network column order
            network: Dependency network built once for the run

        Returns:
            SimulationSamples with pre-sized, fully populated arrays

        Raises:
            ValueError: if there are no tasks or the network does not match
            SimulationCancelledError: if the cancellation hook or timeout fires
        """
        if not distributions:
            raise ValueError("simulation needs at least one task distribution")
        task_ids = [dist.task_id for dist in distributions]
        if task_ids != network.task_ids:
            raise ValueError("distributions and network must list the same tasks in the same order")

        total_durations = np.empty(self.num_runs)
        task_durations = np.empty((self.num_runs, len(task_ids)))
        critical_counts = np.zeros(len(task_ids), dtype=np.int64)

        chunks = [
            (start, min(start + self.chunk_size, self.num_runs))
            for start in range(0, self.num_runs, self.chunk_size)
        ]
        sources = spawn_random_sources(self.random_seed, len(chunks))

        logger.info(
            "Running %s iterations (%s) over %s tasks in %s chunk(s) with %s worker(s)",
            self.num_runs,
            self.uncertainty_model,
            len(task_ids),
            len(chunks),
            self.workers,
        )
        started = monotonic()
        progress = {"completed": 0}
        lock = threading.Lock()

        def run_chunk(chunk_index: int) -> np.ndarray:
            start, stop = chunks[chunk_index]
            with lock:
                completed = progress["completed"]
            self._check_cancelled(completed, started)

            sampler = DurationSampler(self.uncertainty_model, sources[chunk_index])
            block = task_durations[start:stop]
            for column, dist in enumerate(distributions):
                block[:, column] = sampler.sample(dist, size=stop - start)

            result = network.simulate(block)
            total_durations[start:stop] = result.total_durations
            with lock:
                progress["completed"] += stop - start
            logger.debug("Chunk %s finished: iterations %s..%s", chunk_index, start, stop - 1)
            return result.critical.sum(axis=0)

        if self.workers == 1 or len(chunks) == 1:
            for chunk_index in range(len(chunks)):
                critical_counts += run_chunk(chunk_index)
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = [pool.submit(run_chunk, chunk_index) for chunk_index in range(len(chunks))]
                for future in futures:
                    critical_counts += future.result()

        logger.info("Simulation finished: %s iterations in %.3fs", self.num_runs, monotonic() - started)
        return SimulationSamples(
            task_ids=task_ids,
            total_durations=total_durations,
            task_durations=task_durations,
            critical_counts=critical_counts,
        )

    def _check_cancelled(self, completed: int, started: float) -> None:
        if self.should_cancel is not None and self.should_cancel():
            raise SimulationCancelledError(completed, self.num_runs, "cancellation requested")
        if self.timeout_seconds is not None and monotonic() - started > self.timeout_seconds:
            raise SimulationCancelledError(
                completed, self.num_runs, f"timeout of {self.timeout_seconds}s exceeded"
            )
