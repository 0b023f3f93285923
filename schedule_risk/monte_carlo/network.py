"""
PURPOSE: Critical-path network pass for sampled task durations.

RESPONSIBILITIES:
- Index tasks into an arena (task id -> position) with predecessor/successor links
- Topologically order tasks (Kahn's algorithm, permissive cycle fallback)
- Forward pass (earliest start/finish), backward pass (latest start/finish)
- Report total duration and the zero-float (critical) tasks

CONSTRAINTS:
- Deterministic: all randomness lives in the samplers that produce the durations
- Dangling predecessor references are ignored
- Tasks caught in a dependency cycle are appended in their input list order;
  their float values are then only approximate
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np

from .config import CRITICAL_FLOAT_TOLERANCE, FALLBACK_TASK_DURATION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IterationOutcome:
    total_duration: float
    critical_task_ids: tuple[str, ...]


@dataclass(frozen=True)
class NetworkPass:
    """
    Forward/backward pass output for a batch of iterations.

    All 2-D arrays are shaped (iterations, tasks) with columns in task list order.
    """
    total_durations: np.ndarray
    earliest_start: np.ndarray
    earliest_finish: np.ndarray
    latest_start: np.ndarray
    latest_finish: np.ndarray
    critical: np.ndarray

    @property
    def total_float(self) -> np.ndarray:
        return self.latest_start - self.earliest_start


def build_predecessor_map(tasks) -> dict[str, Optional[str]]:
    """Map each task id to its single predecessor id (or None)."""
    return {task.id: (task.dependency or None) for task in tasks}


def topological_order(task_ids: Sequence[str], predecessor_map: Mapping[str, Optional[str]]) -> list[str]:
    return [task_ids[i] for i in TaskNetwork(task_ids, predecessor_map).order]


class TaskNetwork:
    """
    Dependency network built once per run and reused by every iteration.

    Args:
        task_ids: Task ids in their input list order
        predecessor_map: task id -> predecessor id or None
    """

    def __init__(self, task_ids: Sequence[str], predecessor_map: Mapping[str, Optional[str]]):
        self.task_ids = list(task_ids)
        self.index = {}
        for position, task_id in enumerate(self.task_ids):
            if task_id in self.index:
                raise ValueError(f"Duplicate task id: {task_id}")
            self.index[task_id] = position

        n = len(self.task_ids)
        self.predecessors = np.full(n, -1, dtype=np.intp)
        self.successors: list[list[int]] = [[] for _ in range(n)]
        in_degree = [0] * n
        for position, task_id in enumerate(self.task_ids):
            pred_id = predecessor_map.get(task_id)
            pred = self.index.get(pred_id) if pred_id is not None else None
            if pred is None:
                continue
            self.predecessors[position] = pred
            self.successors[pred].append(position)
            in_degree[position] += 1

        self.order, self.cyclic_tasks = self._kahn(in_degree)
        if self.cyclic_tasks:
            logger.warning(
                "Dependency cycle detected; %s task(s) appended in list order: %s",
                len(self.cyclic_tasks),
                ", ".join(self.cyclic_tasks),
            )

    def __len__(self) -> int:
        return len(self.task_ids)

    @property
    def has_cycle(self) -> bool:
        return bool(self.cyclic_tasks)

    def _kahn(self, in_degree: list[int]) -> tuple[list[int], list[str]]:
        remaining = list(in_degree)
        queue = deque(i for i, degree in enumerate(remaining) if degree == 0)
        order = []
        while queue:
            current = queue.popleft()
            order.append(current)
            for succ in self.successors[current]:
                remaining[succ] -= 1
                if remaining[succ] == 0:
                    queue.append(succ)

        cyclic = []
        if len(order) < len(remaining):
            placed = set(order)
            for i in range(len(remaining)):
                if i not in placed:
                    order.append(i)
                    cyclic.append(self.task_ids[i])
        return order, cyclic

    def simulate(self, durations) -> NetworkPass:
        """
        Run the forward and backward pass.

        Args:
            durations: Sampled durations, shape (tasks,) for one iteration or
                       (iterations, tasks) for a batch. Missing, non-finite or
                       non-positive values count as one day.

        Returns:
            NetworkPass with arrays shaped (iterations, tasks); a 1-D input
            yields a batch of one.
        """
        d = np.array(durations, dtype=float, ndmin=2)
        if d.shape[1] != len(self.task_ids):
            raise ValueError(f"Expected durations for {len(self.task_ids)} tasks, got {d.shape[1]}")
        d[~np.isfinite(d) | (d <= 0)] = FALLBACK_TASK_DURATION

        iterations, n = d.shape
        earliest_start = np.zeros((iterations, n))
        earliest_finish = np.zeros((iterations, n))
        visited = np.zeros(n, dtype=bool)
        for i in self.order:
            pred = self.predecessors[i]
            if pred >= 0 and visited[pred]:
                earliest_start[:, i] = earliest_finish[:, pred]
            earliest_finish[:, i] = earliest_start[:, i] + d[:, i]
            visited[i] = True

        total = earliest_finish.max(axis=1) if n else np.zeros(iterations)

        latest_start = np.zeros((iterations, n))
        latest_finish = np.zeros((iterations, n))
        visited[:] = False
        for i in reversed(self.order):
            finish = total.copy()
            for succ in self.successors[i]:
                if visited[succ]:
                    np.minimum(finish, latest_start[:, succ], out=finish)
            latest_finish[:, i] = finish
            latest_start[:, i] = finish - d[:, i]
            visited[i] = True

        critical = np.abs(latest_start - earliest_start) < CRITICAL_FLOAT_TOLERANCE
        return NetworkPass(
            total_durations=total,
            earliest_start=earliest_start,
            earliest_finish=earliest_finish,
            latest_start=latest_start,
            latest_finish=latest_finish,
            critical=critical,
        )

    def critical_ids(self, critical_row: np.ndarray) -> tuple[str, ...]:
        """Critical task ids for one iteration, in topological order."""
        return tuple(self.task_ids[i] for i in self.order if critical_row[i])


def simulate_iteration(
    tasks,
    sampled_durations: Mapping[str, float],
    predecessor_map: Mapping[str, Optional[str]],
) -> IterationOutcome:
    """
    Simulate a single iteration of the schedule network.

    Args:
        tasks: Tasks (anything with an `id`) in input list order
        sampled_durations: task id -> this iteration's sampled duration
        predecessor_map: task id -> predecessor id or None

    Returns:
        IterationOutcome with the project duration and the critical task ids
    """
    network = TaskNetwork([task.id for task in tasks], predecessor_map)
    row = [sampled_durations.get(task_id, FALLBACK_TASK_DURATION) for task_id in network.task_ids]
    result = network.simulate(row)
    return IterationOutcome(
        total_duration=float(result.total_durations[0]),
        critical_task_ids=network.critical_ids(result.critical[0]),
    )
