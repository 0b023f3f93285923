"""
Collaborator interfaces consumed by the schedule risk engine.

The engine never owns storage. It reads schedules and tasks from a
ScheduleRepository, the allocated budget from a ProjectBudgetProvider, and
optionally a deterministic duration from a BaselineDurationProvider. The
in-memory implementations below back tests and offline runs.
"""

from typing import Any, Iterable, Optional, Protocol

from .models import Schedule, Task


class ScheduleRepository(Protocol):
    def find_schedule_by_id(self, schedule_id: str) -> Optional[Schedule]: ...

    def find_tasks_by_schedule_id(self, schedule_id: str) -> list[Task]: ...


class ProjectBudgetProvider(Protocol):
    def find_allocated_budget(self, project_id: str) -> Optional[float]: ...


class BaselineDurationProvider(Protocol):
    def find_baseline_duration(self, schedule_id: str) -> Optional[float]: ...


class InMemoryScheduleRepository:
    def __init__(self):
        self._schedules: dict[str, Schedule] = {}
        self._tasks: dict[str, list[Task]] = {}

    def add_schedule(self, schedule: Schedule, tasks: Iterable[Task] = ()) -> None:
        self._schedules[schedule.id] = schedule
        self._tasks[schedule.id] = list(tasks)

    def find_schedule_by_id(self, schedule_id: str) -> Optional[Schedule]:
        return self._schedules.get(schedule_id)

    def find_tasks_by_schedule_id(self, schedule_id: str) -> list[Task]:
        return list(self._tasks.get(schedule_id, []))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryScheduleRepository":
        """
        Build a repository holding one schedule.

        Args:
            data: {"schedule": {...}, "tasks": [{...}, ...]} with snake_case
                  or camelCase keys.
        """
        repository = cls()
        schedule = Schedule.model_validate(data["schedule"])
        tasks = [Task.model_validate(task) for task in data.get("tasks", [])]
        repository.add_schedule(schedule, tasks)
        return repository


class InMemoryBudgetProvider:
    def __init__(self, budgets: Optional[dict[str, float]] = None):
        self._budgets = dict(budgets or {})

    def find_allocated_budget(self, project_id: str) -> Optional[float]:
        return self._budgets.get(project_id)
