"""
PURPOSE: Input models for the schedule risk engine.

The engine reads tasks and schedules from an external repository and a
simulation configuration from its caller. These pydantic models are the
narrow contract for both; they carry no simulation logic.
"""

from datetime import date
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .config import (
    DEFAULT_CONFIDENCE_LEVELS,
    DEFAULT_UNCERTAINTY_MODEL,
    MAX_CONFIDENCE_LEVEL,
    MAX_CONFIDENCE_LEVEL_COUNT,
    MAX_RUNS,
    MIN_CONFIDENCE_LEVEL,
    MIN_RUNS,
    NUM_RUNS,
)
from .errors import SimulationConfigError

UncertaintyModel = Literal["pert", "triangular"]

ConfidenceLevel = Annotated[float, Field(ge=MIN_CONFIDENCE_LEVEL, le=MAX_CONFIDENCE_LEVEL)]


class Task(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    estimated_days: Optional[float] = Field(
        default=None,
        description="Most-likely duration in days. Takes precedence over the start/end dates.",
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    priority: str = Field(
        default="medium",
        description="One of low, medium, high, urgent. Unknown values use the medium spread.",
    )
    dependency: Optional[str] = Field(
        default=None,
        description="Id of the single predecessor task, if any.",
    )


class Schedule(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    start_date: date
    project_id: Optional[str] = None
    name: Optional[str] = None


class SimulationConfig(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    iterations: int = Field(
        default=NUM_RUNS,
        ge=MIN_RUNS,
        le=MAX_RUNS,
        description="Number of Monte Carlo iterations.",
    )
    confidence_levels: list[ConfidenceLevel] = Field(
        default_factory=lambda: list(DEFAULT_CONFIDENCE_LEVELS),
        min_length=1,
        max_length=MAX_CONFIDENCE_LEVEL_COUNT,
        description="Percentiles to report completion date and cost for.",
    )
    uncertainty_model: UncertaintyModel = Field(
        default=DEFAULT_UNCERTAINTY_MODEL,
        description="Duration distribution: pert or triangular.",
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "iterations": self.iterations,
            "confidence_levels": list(self.confidence_levels),
            "uncertainty_model": self.uncertainty_model,
        }


_FIELD_NAMES_BY_ALIAS = {
    field.alias: name for name, field in SimulationConfig.model_fields.items() if field.alias
}


def parse_simulation_config(raw: Any = None) -> SimulationConfig:
    """
    Validate caller-supplied configuration before any computation starts.

    Args:
        raw: None (all defaults), a SimulationConfig, or a mapping using either
             snake_case or camelCase keys.

    Returns:
        A validated, immutable SimulationConfig.

    Raises:
        SimulationConfigError: naming every offending field.
    """
    if raw is None:
        return SimulationConfig()
    if isinstance(raw, SimulationConfig):
        return raw
    if not isinstance(raw, dict):
        raise SimulationConfigError(
            f"Simulation config must be a mapping, got {type(raw).__name__}",
            fields=[],
        )
    try:
        return SimulationConfig.model_validate(raw)
    except ValidationError as e:
        details = e.errors(include_url=False)
        fields = []
        for error in details:
            loc = error.get("loc") or ()
            name = str(loc[0]) if loc else ""
            name = _FIELD_NAMES_BY_ALIAS.get(name, name)
            if name and name not in fields:
                fields.append(name)
        raise SimulationConfigError(
            f"Invalid simulation config: {', '.join(fields) or 'unknown field'}",
            fields=fields,
            details=details,
        ) from e
