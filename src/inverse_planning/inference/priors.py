"""Prior specifications for latent costs, rewards, and rationality.

Latent parameter vectors are plain ``dict[str, float]`` mappings keyed by
:func:`cost_param_name`, :func:`reward_param_name` and :data:`BETA_PARAM`.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from scipy import stats

from inverse_planning.core.config_validation import (
    coerce_float,
    require_mapping,
    validate_allowed_keys,
    validate_required_keys,
)
from inverse_planning.core.errors import ScenarioConfigError
from inverse_planning.runtime.sampling import gamma, uniform

BETA_PARAM = "beta"


def cost_param_name(action: Hashable) -> str:
    """Return the latent-vector key for one action cost."""

    return f"cost[{action}]"


def reward_param_name(state: Hashable) -> str:
    """Return the latent-vector key for one goal-state reward."""

    return f"reward[{state}]"


@dataclass(frozen=True, slots=True)
class UniformPrior:
    """Bounded ``Uniform(lower, upper)`` prior."""

    lower: float
    upper: float

    def __post_init__(self) -> None:
        if not float(self.lower) < float(self.upper):
            raise ValueError(
                f"uniform prior requires lower < upper, got lower={self.lower} upper={self.upper}"
            )

    def sample(self, rng: np.random.Generator) -> float:
        """Draw one value."""

        return uniform(self.lower, self.upper, rng)

    def log_pdf(self, value: float) -> float:
        """Return log-density, ``-inf`` outside support."""

        return float(
            stats.uniform.logpdf(float(value), loc=self.lower, scale=self.upper - self.lower)
        )


@dataclass(frozen=True, slots=True)
class GammaPrior:
    """``Gamma(shape, rate)`` prior on positive reals."""

    shape: float = 2.0
    rate: float = 1.0

    def __post_init__(self) -> None:
        if float(self.shape) <= 0.0 or float(self.rate) <= 0.0:
            raise ValueError("gamma prior requires shape > 0 and rate > 0")

    @property
    def mean(self) -> float:
        """Return prior mean ``shape / rate``."""

        return float(self.shape) / float(self.rate)

    def sample(self, rng: np.random.Generator) -> float:
        """Draw one value."""

        return gamma(self.shape, self.rate, rng)

    def log_pdf(self, value: float) -> float:
        """Return log-density, ``-inf`` for non-positive values."""

        return float(stats.gamma.logpdf(float(value), a=self.shape, scale=1.0 / self.rate))


class MemoizedCostFunction:
    """Action -> cost mapping that draws each latent cost at most once.

    One instance belongs to exactly one proposal: the first lookup of an
    action draws its cost, later lookups within the same proposal return the
    cached value. Fixed costs (null actions) bypass the cache.

    Parameters
    ----------
    draw : Callable[[Hashable], float]
        Draw function invoked on the first lookup of a latent action.
    fixed_costs : Mapping[Hashable, float] | None, optional
        Actions with constant cost.
    """

    def __init__(
        self,
        draw: Callable[[Hashable], float],
        *,
        fixed_costs: Mapping[Hashable, float] | None = None,
    ) -> None:
        self._draw = draw
        self._fixed = dict(fixed_costs) if fixed_costs is not None else {}
        self._cache: dict[Hashable, float] = {}

    def __call__(self, action: Hashable) -> float:
        if action in self._fixed:
            return float(self._fixed[action])
        if action not in self._cache:
            self._cache[action] = float(self._draw(action))
        return self._cache[action]

    def snapshot(self) -> dict[Hashable, float]:
        """Return a copy of the drawn latent costs."""

        return dict(self._cache)


@dataclass(frozen=True, slots=True)
class DifficultyCostPrior:
    """Per-action cost priors keyed by an ordinal difficulty class.

    Parameters
    ----------
    classes : Mapping[str, UniformPrior]
        Difficulty class -> cost prior, ordered from easiest to hardest.
        Bounds must be non-decreasing along that order.
    action_difficulty : Mapping[Hashable, str]
        Latent action -> difficulty class.
    null_actions : tuple[Hashable, ...]
        Actions whose cost is fixed at ``0.0``.
    """

    classes: Mapping[str, UniformPrior]
    action_difficulty: Mapping[Hashable, str]
    null_actions: tuple[Hashable, ...] = ("do-nothing",)

    def __post_init__(self) -> None:
        classes = dict(self.classes)
        if not classes:
            raise ValueError("cost prior must define at least one difficulty class")

        ordered = list(classes.items())
        for (easier_name, easier), (harder_name, harder) in zip(ordered, ordered[1:]):
            if harder.lower < easier.lower or harder.upper < easier.upper:
                raise ValueError(
                    f"difficulty class {harder_name!r} must not be cheaper than {easier_name!r}"
                )

        difficulty = dict(self.action_difficulty)
        unknown = sorted(
            {str(name) for name in difficulty.values() if name not in classes}
        )
        if unknown:
            raise ValueError(f"action_difficulty references unknown classes: {unknown}")

        null_actions = tuple(self.null_actions)
        overlap = [action for action in null_actions if action in difficulty]
        if overlap:
            raise ValueError(f"null actions cannot have a difficulty class: {overlap}")

        object.__setattr__(self, "classes", classes)
        object.__setattr__(self, "action_difficulty", difficulty)
        object.__setattr__(self, "null_actions", null_actions)

    def is_null(self, action: Hashable) -> bool:
        """Return whether ``action`` has fixed zero cost."""

        return action in self.null_actions

    def prior_for(self, action: Hashable) -> UniformPrior:
        """Return the cost prior of a latent action.

        Raises
        ------
        ScenarioConfigError
            If ``action`` has no difficulty class.
        """

        try:
            return self.classes[self.action_difficulty[action]]
        except KeyError:
            raise ScenarioConfigError(
                f"action {action!r} has no difficulty class and is not a null action"
            ) from None

    def fixed_costs(self) -> dict[Hashable, float]:
        """Return constant costs for null actions."""

        return {action: 0.0 for action in self.null_actions}

    def memoized(self, rng: np.random.Generator) -> MemoizedCostFunction:
        """Build a fresh per-proposal cost function drawing from this prior."""

        return MemoizedCostFunction(
            lambda action: self.prior_for(action).sample(rng),
            fixed_costs=self.fixed_costs(),
        )


@dataclass(frozen=True, slots=True)
class PriorSpec:
    """Full prior over the latent parameter vector."""

    cost: DifficultyCostPrior
    reward: UniformPrior = field(default_factory=lambda: UniformPrior(0.0, 1.0))
    rationality: GammaPrior = field(default_factory=GammaPrior)
    movement_cost: UniformPrior = field(default_factory=lambda: UniformPrior(0.0, 0.1))


def uniform_prior_from_config(raw: Any, *, field_name: str) -> UniformPrior:
    """Parse ``{"lower": ..., "upper": ...}``."""

    mapping = require_mapping(raw, field_name=field_name)
    validate_allowed_keys(mapping, field_name=field_name, allowed_keys=("lower", "upper"))
    validate_required_keys(mapping, field_name=field_name, required_keys=("lower", "upper"))
    return UniformPrior(
        lower=coerce_float(mapping["lower"], field_name=f"{field_name}.lower"),
        upper=coerce_float(mapping["upper"], field_name=f"{field_name}.upper"),
    )


def gamma_prior_from_config(raw: Any, *, field_name: str) -> GammaPrior:
    """Parse ``{"shape": ..., "rate": ...}`` with defaults ``(2, 1)``."""

    mapping = require_mapping(raw, field_name=field_name)
    validate_allowed_keys(mapping, field_name=field_name, allowed_keys=("shape", "rate"))
    return GammaPrior(
        shape=coerce_float(mapping.get("shape", 2.0), field_name=f"{field_name}.shape"),
        rate=coerce_float(mapping.get("rate", 1.0), field_name=f"{field_name}.rate"),
    )


def cost_prior_from_config(
    raw_classes: Any,
    raw_difficulty: Any,
    *,
    null_actions: Iterable[Hashable],
) -> DifficultyCostPrior:
    """Parse difficulty classes and action assignments."""

    classes = {
        str(name): uniform_prior_from_config(spec, field_name=f"cost_classes.{name}")
        for name, spec in require_mapping(raw_classes, field_name="cost_classes").items()
    }
    difficulty = {
        str(action): str(name)
        for action, name in require_mapping(raw_difficulty, field_name="action_difficulty").items()
    }
    return DifficultyCostPrior(
        classes=classes,
        action_difficulty=difficulty,
        null_actions=tuple(null_actions),
    )


__all__ = [
    "BETA_PARAM",
    "DifficultyCostPrior",
    "GammaPrior",
    "MemoizedCostFunction",
    "PriorSpec",
    "UniformPrior",
    "cost_param_name",
    "cost_prior_from_config",
    "gamma_prior_from_config",
    "reward_param_name",
    "uniform_prior_from_config",
]
