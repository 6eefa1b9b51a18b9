"""Error taxonomy for scenario configuration and posterior inference.

Configuration problems derive from :class:`ValueError` so callers that
already guard config parsing keep working. Inference failures derive from
:class:`RuntimeError` and are only raised once the configured budget is
exhausted; they never accompany a partial sample sequence.
"""

from __future__ import annotations


class ScenarioConfigError(ValueError):
    """Scenario data is malformed (e.g. a transition missing for an action)."""


class NumericalDegeneracyError(ArithmeticError):
    """Softmax normalizer is zero or non-finite for one planner call."""


class InferenceError(RuntimeError):
    """Terminal failure of a posterior sampling run."""


class UnsatisfiableConditioningError(InferenceError):
    """The conditioning predicate never held within the attempt budget.

    Parameters
    ----------
    n_attempts : int
        Number of prior proposals evaluated before giving up.
    """

    def __init__(self, n_attempts: int) -> None:
        self.n_attempts = int(n_attempts)
        super().__init__(
            f"conditioning predicate was never satisfied in {self.n_attempts} prior proposals; "
            "observations may be contradictory under the configured priors"
        )

    def __reduce__(self) -> tuple[type, tuple[int]]:
        return (type(self), (self.n_attempts,))


class InferenceTimeoutError(InferenceError):
    """The sampler exceeded its wall-clock budget.

    Parameters
    ----------
    timeout_seconds : float
        Configured budget.
    n_iterations : int
        Iterations completed before the budget expired.
    """

    def __init__(self, timeout_seconds: float, n_iterations: int) -> None:
        self.timeout_seconds = float(timeout_seconds)
        self.n_iterations = int(n_iterations)
        super().__init__(
            f"sampler exceeded timeout of {self.timeout_seconds:g}s "
            f"after {self.n_iterations} iterations"
        )

    def __reduce__(self) -> tuple[type, tuple[float, int]]:
        return (type(self), (self.timeout_seconds, self.n_iterations))


__all__ = [
    "InferenceError",
    "InferenceTimeoutError",
    "NumericalDegeneracyError",
    "ScenarioConfigError",
    "UnsatisfiableConditioningError",
]
