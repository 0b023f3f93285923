"""
PURPOSE: Deterministic critical path for a schedule, using most-likely durations.

This is the baseline the cost forecast is scaled against. It runs the same
network pass as the simulation, once, with each task's most-likely duration,
and reports per-task early/late dates and float.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .estimates import resolve_most_likely
from .network import TaskNetwork, build_predecessor_map
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CPMTaskResult:
    task_id: str
    name: str
    duration: float
    early_start: float
    early_finish: float
    late_start: float
    late_finish: float
    total_float: float
    free_float: float
    is_critical: bool


@dataclass(frozen=True)
class CriticalPathResult:
    critical_path_task_ids: tuple[str, ...]
    tasks: tuple[CPMTaskResult, ...]
    project_duration: float


class CriticalPathBaseline:
    """Baseline duration provider backed by a deterministic CPM pass."""

    def __init__(self, schedule_repository: ScheduleRepository):
        self.schedule_repository = schedule_repository

    def calculate_critical_path(self, schedule_id: str) -> CriticalPathResult:
        tasks = self.schedule_repository.find_tasks_by_schedule_id(schedule_id)
        if not tasks:
            return CriticalPathResult(critical_path_task_ids=(), tasks=(), project_duration=0.0)

        network = TaskNetwork([task.id for task in tasks], build_predecessor_map(tasks))
        durations = [resolve_most_likely(task) for task in tasks]
        result = network.simulate(durations)
        es = result.earliest_start[0]
        ef = result.earliest_finish[0]
        ls = result.latest_start[0]
        lf = result.latest_finish[0]
        critical = result.critical[0]

        rows = []
        for i in network.order:
            total_float = float(ls[i] - es[i])
            succs = network.successors[i]
            if succs:
                free_float = max(0.0, float(min(es[s] for s in succs) - ef[i]))
            else:
                free_float = max(0.0, total_float)
            rows.append(
                CPMTaskResult(
                    task_id=tasks[i].id,
                    name=tasks[i].name,
                    duration=durations[i],
                    early_start=float(es[i]),
                    early_finish=float(ef[i]),
                    late_start=float(ls[i]),
                    late_finish=float(lf[i]),
                    total_float=total_float,
                    free_float=free_float,
                    is_critical=bool(critical[i]),
                )
            )

        return CriticalPathResult(
            critical_path_task_ids=network.critical_ids(critical),
            tasks=tuple(rows),
            project_duration=float(result.total_durations[0]),
        )

    def find_baseline_duration(self, schedule_id: str) -> Optional[float]:
        cp = self.calculate_critical_path(schedule_id)
        if cp.project_duration <= 0:
            return None
        logger.debug(
            "Baseline for schedule %s: %.2f days, critical path %s",
            schedule_id,
            cp.project_duration,
            ", ".join(cp.critical_path_task_ids),
        )
        return cp.project_duration
