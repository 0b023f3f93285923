"""
Monte Carlo simulation module for schedule completion-date and cost risk.

PURPOSE:
    Quantify how uncertain task durations in a dependency network translate
    into uncertainty of the project finish date and cost, by running
    thousands of independent iterations of a critical-path pass.

RESPONSIBILITIES:
    - Build three-point duration estimates from task data
    - Expose distribution samplers (PERT via Gamma/Beta, triangular)
    - Run the per-iteration forward/backward network pass
    - Aggregate percentiles, histogram, sensitivity and criticality
    - Scale percentile durations into a cost forecast

SRP/DRY CHECK:
    Each submodule has a single responsibility:
    - estimates.py: Three-point estimates only
    - distributions.py: Sampling from uncertainty distributions only
    - network.py: Deterministic critical-path pass only
    - simulation.py: Iteration loop and accumulation only
    - statistics.py / sensitivity.py: Post-processing only
    - cost.py: Cost scaling only
    - outputs.py: Result objects only
    - service.py: Wiring collaborators into one run
"""

from .critical_path import CriticalPathBaseline, CriticalPathResult
from .distributions import (
    DurationSampler,
    make_random_source,
    sample_beta,
    sample_gamma,
    sample_pert,
    sample_standard_normal,
    sample_triangular,
)
from .errors import (
    NoTasksFoundError,
    NotFoundError,
    ScheduleNotFoundError,
    ScheduleRiskError,
    SimulationCancelledError,
    SimulationConfigError,
)
from .estimates import TaskDistribution, build_distribution, build_distributions
from .models import Schedule, SimulationConfig, Task, parse_simulation_config
from .network import IterationOutcome, TaskNetwork, build_predecessor_map, simulate_iteration
from .outputs import SimulationResult
from .repository import InMemoryBudgetProvider, InMemoryScheduleRepository
from .sensitivity import SensitivityAnalyzer, spearman_correlation
from .service import ScheduleRiskService
from .simulation import MonteCarloSimulation, SimulationSamples

__version__ = "0.1.0"

__all__ = [
    "CriticalPathBaseline",
    "CriticalPathResult",
    "DurationSampler",
    "make_random_source",
    "sample_beta",
    "sample_gamma",
    "sample_pert",
    "sample_standard_normal",
    "sample_triangular",
    "NoTasksFoundError",
    "NotFoundError",
    "ScheduleNotFoundError",
    "ScheduleRiskError",
    "SimulationCancelledError",
    "SimulationConfigError",
    "TaskDistribution",
    "build_distribution",
    "build_distributions",
    "Schedule",
    "SimulationConfig",
    "Task",
    "parse_simulation_config",
    "IterationOutcome",
    "TaskNetwork",
    "build_predecessor_map",
    "simulate_iteration",
    "SimulationResult",
    "InMemoryBudgetProvider",
    "InMemoryScheduleRepository",
    "SensitivityAnalyzer",
    "spearman_correlation",
    "ScheduleRiskService",
    "MonteCarloSimulation",
    "SimulationSamples",
]
