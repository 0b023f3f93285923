"""
PURPOSE: Convert task point estimates into three-point duration estimates.

RESPONSIBILITIES:
- Resolve each task's most-likely duration (estimate, else date span, else 1 day)
- Derive optimistic and pessimistic bounds, widening the pessimistic tail by priority
- Single responsibility: no sampling, no aggregation
"""

from dataclasses import dataclass
from typing import Iterable

from .config import (
    DEFAULT_MOST_LIKELY_DAYS,
    DEFAULT_PESSIMISTIC_MULTIPLIER,
    OPTIMISTIC_FACTOR,
    PESSIMISTIC_MULTIPLIERS,
)
from .models import Task


@dataclass(frozen=True)
class TaskDistribution:
    """Three-point duration estimate for one task, in days."""
    task_id: str
    task_name: str
    optimistic: float
    most_likely: float
    pessimistic: float


def resolve_most_likely(task: Task) -> float:
    if task.estimated_days is not None and task.estimated_days > 0:
        return float(task.estimated_days)
    if task.start_date is not None and task.end_date is not None:
        span_days = (task.end_date - task.start_date).days
        return float(max(1, span_days))
    return DEFAULT_MOST_LIKELY_DAYS


def pessimistic_multiplier(priority: str) -> float:
    return PESSIMISTIC_MULTIPLIERS.get(priority, DEFAULT_PESSIMISTIC_MULTIPLIER)


def build_distribution(task: Task) -> TaskDistribution:
    """Build the three-point estimate for a single task. Never fails."""
    most_likely = resolve_most_likely(task)
    return TaskDistribution(
        task_id=task.id,
        task_name=task.name,
        optimistic=most_likely * OPTIMISTIC_FACTOR,
        most_likely=most_likely,
        pessimistic=most_likely * pessimistic_multiplier(task.priority),
    )


def build_distributions(tasks: Iterable[Task]) -> list[TaskDistribution]:
    return [build_distribution(task) for task in tasks]
