"""
PURPOSE: Probabilistic distribution samplers for task duration uncertainty.

RESPONSIBILITIES:
- Standard normal variates (polar Box-Muller)
- Gamma variates (Marsaglia-Tsang, with the shape < 1 boost)
- Beta variates (ratio of two Gamma variates)
- PERT durations (moment-matched Beta rescaled to [optimistic, pessimistic])
- Triangular durations (inverse CDF)
- Single responsibility: only sampling, no I/O or aggregation

Every sampler draws from an injected numpy Generator, so independent workers
never share generator state. With size=None a sampler returns one float,
otherwise a numpy array of `size` independent draws.
"""

import numpy as np

from .config import MIN_BETA_SHAPE, UNCERTAINTY_MODELS
from .estimates import TaskDistribution

_DEGENERATE_GAMMA_SUM = np.finfo(float).tiny


def make_random_source(seed=None) -> np.random.Generator:
    """Create a generator. None seeds from OS entropy."""
    return np.random.default_rng(seed)


def spawn_random_sources(seed, count: int) -> list[np.random.Generator]:
    """
    Create `count` statistically independent generators from one seed.

    Args:
        seed: int, None, or an existing numpy SeedSequence
        count: Number of generators to create

    Returns:
        List of numpy Generators, one per worker or iteration chunk
    """
    if isinstance(seed, np.random.SeedSequence):
        sequence = seed
    else:
        sequence = np.random.SeedSequence(seed)
    return [np.random.default_rng(child) for child in sequence.spawn(count)]


def _draw_count(size) -> int:
    if size is None:
        return 1
    size = int(size)
    if size < 0:
        raise ValueError(f"size must be non-negative, got {size}")
    return size


def _finish(values: np.ndarray, size):
    if size is None:
        return float(values[0])
    return values


def _constant(value: float, size):
    if size is None:
        return float(value)
    return np.full(_draw_count(size), float(value))


def _check_three_point(optimistic, most_likely, pessimistic):
    if not (optimistic <= most_likely <= pessimistic):
        raise ValueError(
            f"Invalid three-point estimate: optimistic={optimistic}, "
            f"most_likely={most_likely}, pessimistic={pessimistic}"
        )


def sample_standard_normal(rng: np.random.Generator, size=None):
    """
    Sample N(0, 1) with the polar Box-Muller method.

    Pairs of uniforms in (-1, 1) are rejected until their squared radius s
    lies strictly inside (0, 1).
    """
    n = _draw_count(size)
    out = np.empty(n)
    filled = 0
    while filled < n:
        needed = n - filled
        u = rng.uniform(-1.0, 1.0, needed)
        v = rng.uniform(-1.0, 1.0, needed)
        s = u * u + v * v
        inside = (s > 0.0) & (s < 1.0)
        u = u[inside]
        s = s[inside]
        out[filled:filled + u.size] = u * np.sqrt(-2.0 * np.log(s) / s)
        filled += u.size
    return _finish(out, size)


def sample_gamma(shape: float, rng: np.random.Generator, size=None):
    """
    Sample Gamma(shape, 1) using Marsaglia and Tsang's method.

    For shape < 1 the draw is boosted: Gamma(shape + 1) * U^(1/shape).
    Candidates with v = 1 + c*x <= 0 are rejected and redrawn, as are
    candidates failing both squeeze and log acceptance tests.

    Raises:
        ValueError: if shape is not positive
    """
    if not shape > 0:
        raise ValueError(f"shape must be positive, got {shape}")
    n = _draw_count(size)

    if shape < 1.0:
        boosted = sample_gamma(shape + 1.0, rng, n)
        u = rng.random(n)
        return _finish(boosted * u ** (1.0 / shape), size)

    d = shape - 1.0 / 3.0
    c = 1.0 / np.sqrt(9.0 * d)

    out = np.empty(n)
    pending = np.arange(n)
    while pending.size:
        x = sample_standard_normal(rng, pending.size)
        v = 1.0 + c * x
        positive = v > 0.0

        slots = pending[positive]
        x = x[positive]
        v = v[positive] ** 3
        u = rng.random(slots.size)

        x_sq = x * x
        accepted = u < 1.0 - 0.0331 * x_sq * x_sq
        with np.errstate(divide="ignore"):
            accepted |= np.log(u) < 0.5 * x_sq + d * (1.0 - v + np.log(v))

        out[slots[accepted]] = d * v[accepted]
        pending = np.concatenate((pending[~positive], slots[~accepted]))
    return _finish(out, size)


def sample_beta(alpha: float, beta: float, rng: np.random.Generator, size=None):
    """Sample Beta(alpha, beta) as G(alpha) / (G(alpha) + G(beta))."""
    n = _draw_count(size)
    x = sample_gamma(alpha, rng, n)
    y = sample_gamma(beta, rng, n)
    total = x + y
    degenerate = total <= _DEGENERATE_GAMMA_SUM
    out = np.where(degenerate, 0.5, x / np.where(degenerate, 1.0, total))
    return _finish(out, size)


def pert_beta_shapes(optimistic: float, most_likely: float, pessimistic: float) -> tuple[float, float]:
    """
    Beta shape parameters matching the PERT mean and standard deviation.

    Both shapes are clamped to at least MIN_BETA_SHAPE so the density stays
    unimodal. Only valid when pessimistic > optimistic.
    """
    mean = (optimistic + 4.0 * most_likely + pessimistic) / 6.0
    sd = (pessimistic - optimistic) / 6.0
    alpha = ((mean - optimistic) / (pessimistic - optimistic)) * (
        ((mean - optimistic) * (pessimistic - mean)) / (sd * sd) - 1.0
    )
    beta = alpha * (pessimistic - mean) / (mean - optimistic)
    return max(MIN_BETA_SHAPE, alpha), max(MIN_BETA_SHAPE, beta)


def sample_pert(optimistic: float, most_likely: float, pessimistic: float, rng: np.random.Generator, size=None):
    """
    Sample from a PERT distribution on [optimistic, pessimistic].

    A zero-width estimate returns the PERT mean without consuming randomness.

    Raises:
        ValueError: if the estimate is not ordered optimistic <= most_likely <= pessimistic
    """
    _check_three_point(optimistic, most_likely, pessimistic)
    mean = (optimistic + 4.0 * most_likely + pessimistic) / 6.0
    sd = (pessimistic - optimistic) / 6.0
    if sd <= 0:
        return _constant(mean, size)

    alpha, beta = pert_beta_shapes(optimistic, most_likely, pessimistic)
    n = _draw_count(size)
    samples = sample_beta(alpha, beta, rng, n)
    return _finish(optimistic + samples * (pessimistic - optimistic), size)


def sample_triangular(optimistic: float, most_likely: float, pessimistic: float, rng: np.random.Generator, size=None):
    """
    Sample from a triangular distribution by inverting its CDF.

    A zero-width estimate returns most_likely without consuming randomness.

    Raises:
        ValueError: if the estimate is not ordered optimistic <= most_likely <= pessimistic
    """
    _check_three_point(optimistic, most_likely, pessimistic)
    span = pessimistic - optimistic
    if span == 0:
        return _constant(most_likely, size)

    n = _draw_count(size)
    u = rng.random(n)
    mode_fraction = (most_likely - optimistic) / span
    left = optimistic + np.sqrt(u * span * (most_likely - optimistic))
    right = pessimistic - np.sqrt((1.0 - u) * span * (pessimistic - most_likely))
    return _finish(np.where(u < mode_fraction, left, right), size)


class DurationSampler:
    """Draws task durations for one uncertainty model from one random source."""

    def __init__(self, uncertainty_model: str, rng: np.random.Generator):
        if uncertainty_model not in UNCERTAINTY_MODELS:
            raise ValueError(
                f"Unknown uncertainty_model: {uncertainty_model}. "
                f"Must be one of {', '.join(UNCERTAINTY_MODELS)}"
            )
        self.uncertainty_model = uncertainty_model
        self.rng = rng

    def sample(self, distribution: TaskDistribution, size=None):
        return sample_duration(distribution, self.uncertainty_model, self.rng, size=size)


def sample_duration(distribution: TaskDistribution, uncertainty_model: str, rng: np.random.Generator, size=None):
    """Sample a task's duration using the named uncertainty model."""
    if uncertainty_model == "pert":
        sampler = sample_pert
    elif uncertainty_model == "triangular":
        sampler = sample_triangular
    else:
        raise ValueError(
            f"Unknown uncertainty_model: {uncertainty_model}. "
            f"Must be one of {', '.join(UNCERTAINTY_MODELS)}"
        )
    return sampler(
        distribution.optimistic,
        distribution.most_likely,
        distribution.pessimistic,
        rng,
        size=size,
    )
