"""Numeric helpers shared by the dynamics engine and the run aggregator."""

import math
from typing import Callable, Sequence

import numpy as np

# A source of uniform draws in [0, 1), e.g. ``np.random.default_rng(seed).random``
UniformSource = Callable[[], float]


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def average(values: Sequence[float]) -> float:
    return float(np.mean(values))


def minimum(values: Sequence[float]) -> float:
    return float(np.min(values))


def percentile(values, p: float):
    """p-th percentile with linear interpolation between closest ranks.

    Ranks are taken along axis 0, so a (runs, steps) matrix yields one
    percentile per step. The fractional rank is ``p/100 * (M - 1)``.
    """
    ordered = np.sort(np.asarray(values, dtype=float), axis=0)
    rank = (p / 100.0) * (ordered.shape[0] - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return ordered[lower]
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (rank - lower)


def sigmoid(x: float, steepness: float) -> float:
    """Logistic function; 0.5 at x=0."""
    return 1.0 / (1.0 + math.exp(-steepness * x))


def gaussian_sample(uniform: UniformSource) -> float:
    """Standard normal draw via the Box-Muller transform.

    Consumes exactly two uniform draws.
    """
    u1 = 1.0 - uniform()  # (0, 1], keeps log() finite
    u2 = uniform()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def round_to(values, decimals: int = 3):
    """Round a scalar or array for display; arrays come back as lists."""
    rounded = np.round(values, decimals)
    if np.ndim(rounded) == 0:
        return float(rounded)
    return rounded.tolist()
