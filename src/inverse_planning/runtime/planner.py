"""Softmax planner over one-step actions.

Model Contract
--------------
Utility
    ``U(a) = reward(transition(a)) - cost(a)``.
Decision Rule
    ``P(a) = exp(beta * U(a)) / sum_b exp(beta * U(b))`` over the scenario's
    actions. ``beta=0`` implies uniform probabilities.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence

import numpy as np

from inverse_planning.core.errors import NumericalDegeneracyError

from .sampling import categorical

RewardFunction = Callable[[Hashable], float]
CostFunction = Callable[[Hashable], float]
TransitionFunction = Callable[[Hashable], Hashable]


def action_utilities(
    actions: Sequence[Hashable],
    *,
    reward: RewardFunction,
    cost: CostFunction,
    transition: TransitionFunction,
) -> np.ndarray:
    """Return ``reward(transition(a)) - cost(a)`` for each action in order."""

    return np.asarray(
        [float(reward(transition(action))) - float(cost(action)) for action in actions],
        dtype=float,
    )


def action_distribution(
    actions: Sequence[Hashable],
    *,
    reward: RewardFunction,
    cost: CostFunction,
    transition: TransitionFunction,
    beta: float,
) -> dict[Hashable, float]:
    """Compute softmax action probabilities.

    Parameters
    ----------
    actions : Sequence[Hashable]
        Available actions. Must be non-empty.
    reward : Callable[[Hashable], float]
        State -> reward mapping.
    cost : Callable[[Hashable], float]
        Action -> cost mapping.
    transition : Callable[[Hashable], Hashable]
        Action -> resulting-state mapping.
    beta : float
        Non-negative rationality (inverse temperature).

    Returns
    -------
    dict[Hashable, float]
        Action probabilities keyed by action, in ``actions`` order.

    Raises
    ------
    ValueError
        If ``actions`` is empty or ``beta`` is negative.
    NumericalDegeneracyError
        If utilities or the normalizer are non-finite.
    """

    if len(actions) == 0:
        raise ValueError("actions must contain at least one action")
    if beta < 0.0:
        raise ValueError("beta must be >= 0")

    if beta == 0.0:
        probability = 1.0 / float(len(actions))
        return {action: probability for action in actions}

    utilities = action_utilities(actions, reward=reward, cost=cost, transition=transition)
    logits = float(beta) * utilities
    if not np.all(np.isfinite(logits)):
        raise NumericalDegeneracyError(
            f"non-finite softmax logits for beta={beta!r}: {logits.tolist()}"
        )

    # Subtract max(logits) for numerically stable exponentiation.
    logits -= float(np.max(logits))
    exp_logits = np.exp(logits)
    normalizer = float(np.sum(exp_logits))
    if not np.isfinite(normalizer) or normalizer <= 0.0:
        raise NumericalDegeneracyError(f"softmax normalizer is degenerate: {normalizer!r}")

    probs = exp_logits / normalizer
    return {action: float(prob) for action, prob in zip(actions, probs, strict=True)}


def choose_agent_action(
    actions: Sequence[Hashable],
    *,
    reward: RewardFunction,
    cost: CostFunction,
    transition: TransitionFunction,
    beta: float,
    rng: np.random.Generator,
) -> Hashable:
    """Sample one action from the softmax planner.

    Returns
    -------
    Hashable
        One element of ``actions``.
    """

    distribution = action_distribution(
        actions,
        reward=reward,
        cost=cost,
        transition=transition,
        beta=beta,
    )
    return categorical(tuple(distribution), tuple(distribution.values()), rng)


__all__ = [
    "CostFunction",
    "RewardFunction",
    "TransitionFunction",
    "action_distribution",
    "action_utilities",
    "choose_agent_action",
]
