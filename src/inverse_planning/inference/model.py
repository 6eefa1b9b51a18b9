"""Inverse-planning model over familiarization scenarios.

The model draws latent action costs, goal rewards, and rationality from
their priors, then forward-simulates the softmax planner on every observed
scenario. A latent vector satisfies the conditioning predicate only when
each simulated repeated action sequence equals the observed one exactly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

from inverse_planning.core.errors import NumericalDegeneracyError, ScenarioConfigError
from inverse_planning.core.scenarios import Scenario, collect_actions
from inverse_planning.runtime.planner import choose_agent_action

from .priors import (
    BETA_PARAM,
    DifficultyCostPrior,
    GammaPrior,
    PriorSpec,
    UniformPrior,
    cost_param_name,
    reward_param_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Study:
    """Familiarization and test scenarios with their priors.

    Parameters
    ----------
    familiarization : tuple[Scenario, ...]
        Observed scenarios used for conditioning.
    test : Scenario | None
        Held-out scenario used for posterior-predictive simulation.
    goal_states : tuple[Hashable, ...]
        Goal states with latent rewards, in query order.
    priors : PriorSpec
        Priors over costs, rewards, rationality, and test movement cost.
    fixed_rewards : Mapping[Hashable, float], optional
        States with constant reward (the start state by default).

    Raises
    ------
    ScenarioConfigError
        If a scenario reaches a state with no reward, an observed scenario is
        missing, or an action has no cost prior.
    """

    familiarization: tuple[Scenario, ...]
    test: Scenario | None
    goal_states: tuple[Hashable, ...]
    priors: PriorSpec
    fixed_rewards: Mapping[Hashable, float] = field(default_factory=lambda: {"start": 0.0})

    def __post_init__(self) -> None:
        familiarization = tuple(self.familiarization)
        goal_states = tuple(self.goal_states)
        fixed_rewards = {state: float(value) for state, value in dict(self.fixed_rewards).items()}

        if not any(scenario.is_observed for scenario in familiarization):
            raise ScenarioConfigError("study must contain at least one observed scenario")
        if not goal_states:
            raise ScenarioConfigError("study must declare at least one goal state")
        if len(set(goal_states)) != len(goal_states):
            raise ScenarioConfigError("goal_states must be unique")
        overlap = [state for state in goal_states if state in fixed_rewards]
        if overlap:
            raise ScenarioConfigError(f"goal states cannot have fixed rewards: {overlap}")

        known_states = set(goal_states) | set(fixed_rewards)
        scenarios = familiarization + ((self.test,) if self.test is not None else ())
        for scenario in scenarios:
            unknown = [state for state in scenario.states if state not in known_states]
            if unknown:
                raise ScenarioConfigError(
                    f"scenario {scenario.name!r} reaches states without reward: {unknown}"
                )

        for action in collect_actions(familiarization):
            if not self.priors.cost.is_null(action):
                self.priors.cost.prior_for(action)

        object.__setattr__(self, "familiarization", familiarization)
        object.__setattr__(self, "goal_states", goal_states)
        object.__setattr__(self, "fixed_rewards", fixed_rewards)

    @property
    def observed(self) -> tuple[Scenario, ...]:
        """Return familiarization scenarios carrying observations."""

        return tuple(scenario for scenario in self.familiarization if scenario.is_observed)

    def latent_actions(self) -> tuple[Hashable, ...]:
        """Return familiarization actions with latent costs, in first-appearance order."""

        return tuple(
            action
            for action in collect_actions(self.familiarization)
            if not self.priors.cost.is_null(action)
        )

    def require_test(self) -> Scenario:
        """Return the test scenario or fail fast when it is missing."""

        if self.test is None:
            raise ScenarioConfigError("study has no test scenario")
        return self.test


def reward_function(
    fixed_rewards: Mapping[Hashable, float],
    goal_rewards: Mapping[Hashable, float],
) -> Callable[[Hashable], float]:
    """Build a state -> reward function from fixed and goal rewards."""

    def reward(state: Hashable) -> float:
        if state in fixed_rewards:
            return float(fixed_rewards[state])
        try:
            return float(goal_rewards[state])
        except KeyError:
            raise ScenarioConfigError(f"no reward defined for state {state!r}") from None

    return reward


def simulate_repeated_actions(
    scenario: Scenario,
    *,
    reward: Callable[[Hashable], float],
    cost: Callable[[Hashable], float],
    beta: float,
    rng: np.random.Generator,
    n_repeats: int | None = None,
) -> tuple[Hashable, ...]:
    """Run the planner ``n_repeats`` times (default ``repeat_count``) on one scenario."""

    count = scenario.repeat_count if n_repeats is None else int(n_repeats)
    return tuple(
        choose_agent_action(
            scenario.actions,
            reward=reward,
            cost=cost,
            transition=scenario.transition,
            beta=beta,
            rng=rng,
        )
        for _ in range(count)
    )


class InversePlanningModel:
    """Conditioned model inferring goal rewards from observed choices.

    Model Contract
    --------------
    Prior
        ``cost[a] ~ Uniform(class(a))`` for each latent action (drawn once per
        proposal through a memoized cost function), ``reward[g] ~
        Uniform(0, 1)`` for each goal, ``beta ~ Gamma(2, 1)``.
    Conditioning
        For every observed scenario, ``repeat_count`` planner draws must all
        equal the observed action.
    Query
        Goal rewards in ``study.goal_states`` order.

    Parameters
    ----------
    study : Study
        Scenarios and priors.
    """

    def __init__(self, study: Study) -> None:
        self.study = study
        self._latent_actions = study.latent_actions()
        self._parameter_names = (
            *(cost_param_name(action) for action in self._latent_actions),
            *(reward_param_name(state) for state in study.goal_states),
            BETA_PARAM,
        )

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Return latent-vector keys in sampling order."""

        return self._parameter_names

    def sample_prior(self, rng: np.random.Generator) -> dict[str, float]:
        """Draw one latent vector from the prior.

        Costs are drawn through a fresh memoized cost function scoped to this
        proposal, so repeated lookups of an action share one draw.
        """

        priors = self.study.priors
        costs = priors.cost.memoized(rng)
        params = {cost_param_name(action): costs(action) for action in self._latent_actions}
        for state in self.study.goal_states:
            params[reward_param_name(state)] = priors.reward.sample(rng)
        params[BETA_PARAM] = priors.rationality.sample(rng)
        return params

    def log_prior(self, params: Mapping[str, float]) -> float:
        """Return summed independent log-prior density."""

        priors = self.study.priors
        total = 0.0
        for action in self._latent_actions:
            total += priors.cost.prior_for(action).log_pdf(params[cost_param_name(action)])
        for state in self.study.goal_states:
            total += priors.reward.log_pdf(params[reward_param_name(state)])
        total += priors.rationality.log_pdf(params[BETA_PARAM])
        return float(total) if np.isfinite(total) else float("-inf")

    def cost_function(self, params: Mapping[str, float]) -> Callable[[Hashable], float]:
        """Return the action -> cost function bound to ``params``."""

        cost_prior = self.study.priors.cost

        def cost(action: Hashable) -> float:
            if cost_prior.is_null(action):
                return 0.0
            try:
                return float(params[cost_param_name(action)])
            except KeyError:
                raise ScenarioConfigError(f"no latent cost for action {action!r}") from None

        return cost

    def reward_function(self, params: Mapping[str, float]) -> Callable[[Hashable], float]:
        """Return the state -> reward function bound to ``params``."""

        return reward_function(
            self.study.fixed_rewards,
            {state: params[reward_param_name(state)] for state in self.study.goal_states},
        )

    def condition(self, params: Mapping[str, float], rng: np.random.Generator) -> bool:
        """Return whether every observed scenario is reproduced exactly.

        Simulation stops at the first mismatching action. A numerically
        degenerate planner call counts as a mismatch.
        """

        reward = self.reward_function(params)
        cost = self.cost_function(params)
        beta = float(params[BETA_PARAM])
        try:
            for scenario in self.study.observed:
                for _ in range(scenario.repeat_count):
                    action = choose_agent_action(
                        scenario.actions,
                        reward=reward,
                        cost=cost,
                        transition=scenario.transition,
                        beta=beta,
                        rng=rng,
                    )
                    if action != scenario.observed_action:
                        return False
        except NumericalDegeneracyError as exc:
            logger.debug("treating degenerate proposal as non-matching: %s", exc)
            return False
        return True

    def query(self, params: Mapping[str, float]) -> tuple[float, ...]:
        """Return goal rewards in ``goal_states`` order."""

        return tuple(float(params[reward_param_name(state)]) for state in self.study.goal_states)


def make_study(
    *,
    familiarization: Sequence[Scenario],
    test: Scenario | None,
    goal_states: Sequence[Hashable],
    cost_classes: Mapping[str, UniformPrior],
    action_difficulty: Mapping[Hashable, str],
    null_actions: Sequence[Hashable] = ("do-nothing",),
    fixed_rewards: Mapping[Hashable, float] | None = None,
    reward_prior: UniformPrior | None = None,
    rationality_prior: GammaPrior | None = None,
    movement_cost_prior: UniformPrior | None = None,
) -> Study:
    """Convenience constructor assembling :class:`PriorSpec` defaults."""

    priors = PriorSpec(
        cost=DifficultyCostPrior(
            classes=cost_classes,
            action_difficulty=action_difficulty,
            null_actions=tuple(null_actions),
        ),
        reward=reward_prior if reward_prior is not None else UniformPrior(0.0, 1.0),
        rationality=rationality_prior if rationality_prior is not None else GammaPrior(),
        movement_cost=(
            movement_cost_prior if movement_cost_prior is not None else UniformPrior(0.0, 0.1)
        ),
    )
    return Study(
        familiarization=tuple(familiarization),
        test=test,
        goal_states=tuple(goal_states),
        priors=priors,
        fixed_rewards=dict(fixed_rewards) if fixed_rewards is not None else {"start": 0.0},
    )


__all__ = [
    "InversePlanningModel",
    "Study",
    "make_study",
    "reward_function",
    "simulate_repeated_actions",
]
