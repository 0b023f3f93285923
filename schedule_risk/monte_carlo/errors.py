"""
Error taxonomy for the schedule risk engine.

Not-found and validation errors are fatal for a simulation request and are
raised before any sampling happens. Degenerate inputs (zero-width
distributions, cycles, missing budgets) are not errors and never appear here.
"""

from typing import Any, Optional


class ScheduleRiskError(Exception):
    """Base class for all engine errors."""


class NotFoundError(ScheduleRiskError):
    """A referenced schedule, or the tasks it needs, does not exist."""


class ScheduleNotFoundError(NotFoundError):
    def __init__(self, schedule_id: str):
        super().__init__(f"Schedule not found: {schedule_id}")
        self.schedule_id = schedule_id


class NoTasksFoundError(NotFoundError):
    def __init__(self, schedule_id: str):
        super().__init__(f"No tasks found for schedule: {schedule_id}")
        self.schedule_id = schedule_id


class SimulationConfigError(ScheduleRiskError, ValueError):
    """
    Simulation configuration outside its declared bounds.

    Attributes:
        fields: Names of the offending configuration fields.
        details: Structured error entries (pydantic style dicts).
    """

    def __init__(self, message: str, fields: list[str], details: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.fields = fields
        self.details = details or []


class SimulationCancelledError(ScheduleRiskError):
    """The cancellation hook fired or the timeout elapsed mid-run."""

    def __init__(self, completed_iterations: int, requested_iterations: int, reason: str):
        super().__init__(
            f"Simulation cancelled after {completed_iterations}/{requested_iterations} iterations: {reason}"
        )
        self.completed_iterations = completed_iterations
        self.requested_iterations = requested_iterations
        self.reason = reason
