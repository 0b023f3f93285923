"""
PURPOSE: Simulation configuration and threshold parameters for the schedule risk engine.

RESPONSIBILITIES:
- Define simulation hyperparameters (number of runs, random seed, workers)
- Bounds used to validate caller-supplied configuration
- Three-point estimate multipliers per task priority
- Output rounding and histogram shape
- Single responsibility: configuration only, no simulation logic
"""

import os


def _env_int(name, default=None):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


# Simulation Parameters
NUM_RUNS = 10000  # Standard Monte Carlo sample size
MIN_RUNS = 100
MAX_RUNS = 100000
RANDOM_SEED = _env_int("SCHEDULE_RISK_RANDOM_SEED")  # None = fresh OS entropy
NUM_WORKERS = _env_int("SCHEDULE_RISK_WORKERS", 1)
CHUNK_SIZE = 2000  # Iterations per independently seeded batch

# Uncertainty models
UNCERTAINTY_MODELS = ("pert", "triangular")
DEFAULT_UNCERTAINTY_MODEL = "pert"

# Confidence levels
DEFAULT_CONFIDENCE_LEVELS = [50, 80, 90]
MIN_CONFIDENCE_LEVEL = 1
MAX_CONFIDENCE_LEVEL = 99
MAX_CONFIDENCE_LEVEL_COUNT = 10

# Percentile Outputs
PERCENTILES = [50, 80, 90]  # P50, P80, P90

# Three-point estimates
OPTIMISTIC_FACTOR = 0.75
PESSIMISTIC_MULTIPLIERS = {
    "low": 1.5,
    "medium": 1.75,
    "high": 2.0,
    "urgent": 2.0,
}
DEFAULT_PESSIMISTIC_MULTIPLIER = 1.75
DEFAULT_MOST_LIKELY_DAYS = 1.0

# PERT shape clamp
MIN_BETA_SHAPE = 1.001

# Network simulation
CRITICAL_FLOAT_TOLERANCE = 1e-4
FALLBACK_TASK_DURATION = 1.0  # Used when a task has no usable sampled duration

# Histogram
HISTOGRAM_BIN_COUNT = 20

# Output Configuration
ROUND_DURATION = 2  # Decimal places for durations
ROUND_PERCENT = 2  # Decimal places for cumulative/criticality percentages
ROUND_CORRELATION = 4  # Decimal places for Spearman coefficients
