"""Primitive random draws shared by the planner and the samplers.

All randomness flows through an explicit :class:`numpy.random.Generator` so
that a single seed reproduces an entire inference run.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np


def uniform(lower: float, upper: float, rng: np.random.Generator) -> float:
    """Draw one value from ``Uniform(lower, upper)``.

    Raises
    ------
    ValueError
        If ``lower > upper``.
    """

    lo = float(lower)
    hi = float(upper)
    if lo > hi:
        raise ValueError(f"uniform requires lower <= upper, got lower={lo} upper={hi}")
    return float(rng.uniform(lo, hi))


def gamma(shape: float, rate: float, rng: np.random.Generator) -> float:
    """Draw one value from ``Gamma(shape, rate)``.

    Parameters
    ----------
    shape : float
        Positive shape parameter.
    rate : float
        Positive rate parameter. NumPy is parameterized by scale, so the draw
        uses ``scale = 1 / rate``.
    rng : numpy.random.Generator
        Random generator.

    Returns
    -------
    float
        Gamma draw.
    """

    if float(shape) <= 0.0 or float(rate) <= 0.0:
        raise ValueError("gamma requires shape > 0 and rate > 0")
    return float(rng.gamma(float(shape), 1.0 / float(rate)))


def normalize_weights(weights: Sequence[float]) -> np.ndarray:
    """Validate non-negative weights and return them as probabilities.

    Raises
    ------
    ValueError
        If any weight is negative or non-finite, or the total is not positive.
    """

    values = np.asarray(weights, dtype=float)
    if values.ndim != 1 or values.size == 0:
        raise ValueError("weights must be a non-empty 1D sequence")
    if not np.all(np.isfinite(values)):
        raise ValueError("weights must be finite")
    if np.any(values < 0.0):
        raise ValueError("weights must be non-negative")

    total = float(np.sum(values))
    if total <= 0.0:
        raise ValueError("weights must sum to a positive value")
    return values / total


def categorical(
    items: Sequence[Any],
    weights: Sequence[float],
    rng: np.random.Generator,
) -> Any:
    """Sample one item with probability proportional to its weight.

    Parameters
    ----------
    items : Sequence[Any]
        Candidate items.
    weights : Sequence[float]
        Non-negative weights aligned with ``items``. Need not be normalized.
    rng : numpy.random.Generator
        Random generator.

    Returns
    -------
    Any
        ``items[i]`` with probability ``weights[i] / sum(weights)``.
    """

    if len(items) != len(weights):
        raise ValueError(
            f"items and weights must have equal length, got {len(items)} and {len(weights)}"
        )
    probs = normalize_weights(weights)
    return items[int(rng.choice(len(items), p=probs))]


__all__ = ["categorical", "gamma", "normalize_weights", "uniform"]
