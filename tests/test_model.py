"""Tests for the inverse-planning model and study validation."""

from __future__ import annotations

import numpy as np
import pytest

from inverse_planning.core import Scenario, ScenarioConfigError
from inverse_planning.inference import InversePlanningModel, UniformPrior, make_study, simulate_repeated_actions
from inverse_planning.inference.model import reward_function


def _jump_scenario(observed: str) -> Scenario:
    """Build one jump-or-stay scenario with the given observation."""

    return Scenario(
        name=f"observed-{observed}",
        actions=("jump", "do-nothing"),
        transitions={"jump": "goal", "do-nothing": "start"},
        observed_action=observed,
    )


def _study(observed: str = "jump"):
    """Build a one-goal study with a single observed scenario."""

    return make_study(
        familiarization=(_jump_scenario(observed),),
        test=None,
        goal_states=("goal",),
        cost_classes={"short": UniformPrior(0.05, 0.25)},
        action_difficulty={"jump": "short"},
    )


def _params(*, cost: float, reward: float, beta: float) -> dict[str, float]:
    return {"cost[jump]": cost, "reward[goal]": reward, "beta": beta}


def test_model_parameter_names_follow_costs_rewards_beta() -> None:
    """Latent vector keys should be costs, then rewards, then rationality."""

    model = InversePlanningModel(_study())
    assert model.parameter_names == ("cost[jump]", "reward[goal]", "beta")


def test_sample_prior_respects_prior_support() -> None:
    """Prior draws should lie in their declared supports."""

    model = InversePlanningModel(_study())
    rng = np.random.default_rng(0)
    for _ in range(50):
        params = model.sample_prior(rng)
        assert 0.05 <= params["cost[jump]"] <= 0.25
        assert 0.0 <= params["reward[goal]"] <= 1.0
        assert params["beta"] > 0.0
        assert np.isfinite(model.log_prior(params))


def test_log_prior_is_negative_infinity_outside_support() -> None:
    """Out-of-support latents should have zero prior density."""

    model = InversePlanningModel(_study())
    assert model.log_prior(_params(cost=0.5, reward=0.5, beta=1.0)) == float("-inf")
    assert model.log_prior(_params(cost=0.1, reward=1.5, beta=1.0)) == float("-inf")


def test_condition_matches_only_reproduced_observations() -> None:
    """Near-deterministic planners should reproduce or contradict observations."""

    rng = np.random.default_rng(1)
    eager = _params(cost=0.1, reward=1.0, beta=500.0)
    assert InversePlanningModel(_study("jump")).condition(eager, rng)
    assert not InversePlanningModel(_study("do-nothing")).condition(eager, rng)


def test_condition_treats_degenerate_planner_as_mismatch() -> None:
    """Numerical degeneracy should reject the proposal instead of raising."""

    model = InversePlanningModel(_study())
    assert not model.condition(_params(cost=0.1, reward=0.5, beta=float("inf")), np.random.default_rng(0))


def test_query_returns_goal_rewards_in_order() -> None:
    """Query should project latents onto goal rewards."""

    model = InversePlanningModel(_study())
    assert model.query(_params(cost=0.1, reward=0.7, beta=1.0)) == (0.7,)


def test_reward_function_rejects_unknown_state() -> None:
    """Unknown states have no reward."""

    reward = reward_function({"start": 0.0}, {"goal": 0.4})
    assert reward("start") == 0.0
    assert reward("goal") == pytest.approx(0.4)
    with pytest.raises(ScenarioConfigError, match="no reward defined"):
        reward("elsewhere")


def test_simulate_repeated_actions_uses_repeat_count() -> None:
    """Forward simulation should produce one action per repetition."""

    scenario = _jump_scenario("jump")
    actions = simulate_repeated_actions(
        scenario,
        reward=reward_function({"start": 0.0}, {"goal": 1.0}),
        cost=lambda action: 0.0,
        beta=1.0,
        rng=np.random.default_rng(2),
    )
    assert len(actions) == scenario.repeat_count
    assert set(actions) <= {"jump", "do-nothing"}


def test_study_validation_rejects_inconsistent_scenarios() -> None:
    """Studies should reject unrewarded states, missing costs, and no observations."""

    with pytest.raises(ScenarioConfigError, match="without reward"):
        make_study(
            familiarization=(_jump_scenario("jump"),),
            test=None,
            goal_states=("other-goal",),
            cost_classes={"short": UniformPrior(0.05, 0.25)},
            action_difficulty={"jump": "short"},
        )
    with pytest.raises(ScenarioConfigError, match="no difficulty class"):
        make_study(
            familiarization=(_jump_scenario("jump"),),
            test=None,
            goal_states=("goal",),
            cost_classes={"short": UniformPrior(0.05, 0.25)},
            action_difficulty={},
        )
    unobserved = Scenario(name="x", actions=("jump",), transitions={"jump": "goal"})
    with pytest.raises(ScenarioConfigError, match="at least one observed scenario"):
        make_study(
            familiarization=(unobserved,),
            test=None,
            goal_states=("goal",),
            cost_classes={"short": UniformPrior(0.05, 0.25)},
            action_difficulty={"jump": "short"},
        )
    with pytest.raises(ScenarioConfigError, match="no test scenario"):
        _study().require_test()
