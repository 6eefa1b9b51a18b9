"""Posterior-predictive simulation on a held-out test scenario.

Prediction runs a second chain through :class:`MetropolisHastingsSampler`
whose predicate always holds, so every proposal is accepted and each
retained draw is an independent forward simulation:

1. draw one movement cost shared by all non-null test actions,
2. pick one posterior reward sample uniformly with replacement,
3. draw rationality from its prior,
4. run the softmax planner on the test scenario ``n_predictions`` times.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping, Sequence
from typing import Any

import numpy as np

from inverse_planning.core.scenarios import Scenario

from .mcmc import ChainSettings, MCMCResult, MetropolisHastingsSampler, PriorResampleKernel
from .model import Study, reward_function, simulate_repeated_actions
from .priors import BETA_PARAM

MOVEMENT_COST_PARAM = "movement_cost"
POSTERIOR_INDEX_PARAM = "posterior_index"
PREDICTED_ACTIONS_PARAM = "predicted_actions"


class PosteriorPredictiveModel:
    """Unconditioned forward model bound to a held-out scenario.

    Parameters
    ----------
    study : Study
        Study supplying the test scenario and priors.
    posterior_samples : Sequence[Sequence[float]]
        Reward tuples aligned with ``study.goal_states``.
    n_predictions : int, optional
        Planner runs per draw.

    Raises
    ------
    ValueError
        If ``posterior_samples`` is empty or has the wrong arity.
    """

    def __init__(
        self,
        study: Study,
        posterior_samples: Sequence[Sequence[float]],
        *,
        n_predictions: int = 2,
    ) -> None:
        samples = tuple(tuple(float(value) for value in sample) for sample in posterior_samples)
        if not samples:
            raise ValueError("posterior_samples must not be empty")
        arity = len(study.goal_states)
        if any(len(sample) != arity for sample in samples):
            raise ValueError(f"every posterior sample must contain {arity} goal rewards")
        if n_predictions <= 0:
            raise ValueError("n_predictions must be > 0")

        self.study = study
        self.test: Scenario = study.require_test()
        self.posterior_samples = samples
        self.n_predictions = int(n_predictions)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Prediction has no continuous latents eligible for local moves."""

        return ()

    def sample_prior(self, rng: np.random.Generator) -> dict[str, Any]:
        """Draw one posterior-predictive simulation."""

        priors = self.study.priors
        movement_cost = priors.movement_cost.sample(rng)
        index = int(rng.integers(len(self.posterior_samples)))
        beta = priors.rationality.sample(rng)

        goal_rewards = dict(zip(self.study.goal_states, self.posterior_samples[index], strict=True))
        actions = simulate_repeated_actions(
            self.test,
            reward=reward_function(self.study.fixed_rewards, goal_rewards),
            cost=self._cost_function(movement_cost),
            beta=beta,
            rng=rng,
            n_repeats=self.n_predictions,
        )
        return {
            MOVEMENT_COST_PARAM: movement_cost,
            POSTERIOR_INDEX_PARAM: index,
            BETA_PARAM: beta,
            PREDICTED_ACTIONS_PARAM: actions,
        }

    def log_prior(self, params: Mapping[str, Any]) -> float:
        """Constant density; only prior resampling is supported here."""

        return 0.0

    def condition(self, params: Mapping[str, Any], rng: np.random.Generator) -> bool:
        """Prediction is unconditioned."""

        return True

    def query(self, params: Mapping[str, Any]) -> tuple[Hashable, ...]:
        """Return the predicted test actions."""

        return tuple(params[PREDICTED_ACTIONS_PARAM])

    def _cost_function(self, movement_cost: float) -> Callable[[Hashable], float]:
        cost_prior = self.study.priors.cost

        def cost(action: Hashable) -> float:
            return 0.0 if cost_prior.is_null(action) else float(movement_cost)

        return cost


def run_posterior_predictive(
    study: Study,
    posterior_samples: Sequence[Sequence[float]],
    settings: ChainSettings,
    *,
    n_predictions: int = 2,
) -> MCMCResult:
    """Simulate predicted test actions from posterior reward samples.

    Parameters
    ----------
    study : Study
        Study with a test scenario.
    posterior_samples : Sequence[Sequence[float]]
        Output of reward inference.
    settings : ChainSettings
        Chain settings (e.g. ``num_samples=1000, lag=10``).
    n_predictions : int, optional
        Planner runs per retained draw.

    Returns
    -------
    MCMCResult
        Samples are tuples of ``n_predictions`` predicted actions.
    """

    model = PosteriorPredictiveModel(study, posterior_samples, n_predictions=n_predictions)
    return MetropolisHastingsSampler(model, kernel=PriorResampleKernel()).run(settings)


__all__ = [
    "MOVEMENT_COST_PARAM",
    "POSTERIOR_INDEX_PARAM",
    "PREDICTED_ACTIONS_PARAM",
    "PosteriorPredictiveModel",
    "run_posterior_predictive",
]
