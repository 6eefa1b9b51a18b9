"""Tests for the softmax planner."""

from __future__ import annotations

import numpy as np
import pytest

from inverse_planning.core import NumericalDegeneracyError
from inverse_planning.runtime import action_distribution, action_utilities, choose_agent_action

TRANSITIONS = {"jump": "goal", "stay": "start"}
REWARDS = {"goal": 0.8, "start": 0.0}
COSTS = {"jump": 0.3, "stay": 0.0}


def _distribution(beta: float, actions=("jump", "stay")) -> dict:
    """Evaluate the planner on the two-action jump/stay scenario."""

    return action_distribution(
        actions,
        reward=REWARDS.__getitem__,
        cost=COSTS.__getitem__,
        transition=TRANSITIONS.__getitem__,
        beta=beta,
    )


def test_action_utilities_subtract_cost_from_reward() -> None:
    """Utility should be reward of the reached state minus action cost."""

    utilities = action_utilities(
        ("jump", "stay"),
        reward=REWARDS.__getitem__,
        cost=COSTS.__getitem__,
        transition=TRANSITIONS.__getitem__,
    )
    assert utilities.tolist() == pytest.approx([0.5, 0.0])


def test_single_action_is_chosen_with_certainty() -> None:
    """A scenario with one action should always yield that action."""

    rng = np.random.default_rng(0)
    for beta in (0.0, 0.5, 50.0):
        assert _distribution(beta, actions=("jump",)) == {"jump": 1.0}
        action = choose_agent_action(
            ("jump",),
            reward=REWARDS.__getitem__,
            cost=COSTS.__getitem__,
            transition=TRANSITIONS.__getitem__,
            beta=beta,
            rng=rng,
        )
        assert action == "jump"


def test_equal_utilities_give_uniform_probabilities() -> None:
    """Actions with identical utility should be equally likely for any beta."""

    distribution = action_distribution(
        ("left", "right", "up"),
        reward=lambda state: 0.5,
        cost=lambda action: 0.1,
        transition=lambda action: f"{action}-goal",
        beta=7.0,
    )
    assert list(distribution.values()) == pytest.approx([1.0 / 3.0] * 3)


def test_zero_beta_is_uniform() -> None:
    """beta=0 should ignore utilities."""

    assert _distribution(0.0) == {"jump": 0.5, "stay": 0.5}


def test_small_beta_approaches_uniform_and_large_beta_approaches_argmax() -> None:
    """Rationality should interpolate between uniform and argmax choice."""

    nearly_uniform = _distribution(1e-6)
    assert nearly_uniform["jump"] == pytest.approx(0.5, abs=1e-6)

    nearly_greedy = _distribution(200.0)
    assert nearly_greedy["jump"] == pytest.approx(1.0, abs=1e-12)
    assert sum(nearly_greedy.values()) == pytest.approx(1.0)


def test_probabilities_follow_softmax_formula() -> None:
    """Two-action probabilities should equal the logistic of the utility gap."""

    distribution = _distribution(2.0)
    expected = 1.0 / (1.0 + np.exp(-2.0 * 0.5))
    assert distribution["jump"] == pytest.approx(expected)
    assert distribution["stay"] == pytest.approx(1.0 - expected)


def test_planner_rejects_empty_actions_and_negative_beta() -> None:
    """Invalid planner inputs should fail fast."""

    with pytest.raises(ValueError, match="at least one action"):
        _distribution(1.0, actions=())
    with pytest.raises(ValueError, match="beta must be >= 0"):
        _distribution(-1.0)


def test_non_finite_utilities_raise_numerical_degeneracy() -> None:
    """Infinite rationality or rewards should surface as degeneracy errors."""

    with pytest.raises(NumericalDegeneracyError, match="non-finite"):
        _distribution(float("inf"))
    with pytest.raises(NumericalDegeneracyError):
        action_distribution(
            ("jump", "stay"),
            reward=lambda state: float("nan"),
            cost=COSTS.__getitem__,
            transition=TRANSITIONS.__getitem__,
            beta=1.0,
        )


def test_choose_agent_action_frequencies_match_distribution() -> None:
    """Sampled actions should match softmax probabilities."""

    rng = np.random.default_rng(5)
    draws = [
        choose_agent_action(
            ("jump", "stay"),
            reward=REWARDS.__getitem__,
            cost=COSTS.__getitem__,
            transition=TRANSITIONS.__getitem__,
            beta=2.0,
            rng=rng,
        )
        for _ in range(4000)
    ]
    assert draws.count("jump") / len(draws) == pytest.approx(_distribution(2.0)["jump"], abs=0.03)
