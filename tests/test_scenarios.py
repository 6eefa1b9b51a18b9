"""Tests for scenario descriptors and scenario tables."""

from __future__ import annotations

import pytest

from inverse_planning.core import (
    Scenario,
    ScenarioConfigError,
    collect_actions,
    scenario_from_config,
    scenarios_from_config,
)


def _jump_scenario(**overrides) -> Scenario:
    """Build one observed two-action scenario."""

    kwargs = {
        "name": "1A",
        "actions": ("jump-short-barrier", "do-nothing"),
        "transitions": {"jump-short-barrier": "reach-yellow", "do-nothing": "start"},
        "observed_action": "jump-short-barrier",
    }
    kwargs.update(overrides)
    return Scenario(**kwargs)


def test_scenario_exposes_transitions_and_observations() -> None:
    """Scenario should map actions to states and repeat observations."""

    scenario = _jump_scenario()
    assert scenario.transition("do-nothing") == "start"
    assert scenario.states == ("reach-yellow", "start")
    assert scenario.is_observed
    assert scenario.observed_sequence() == ("jump-short-barrier",) * 4


def test_scenario_rejects_partial_transition_function() -> None:
    """Every action must have a defined resulting state."""

    with pytest.raises(ScenarioConfigError, match="transition is undefined"):
        _jump_scenario(transitions={"jump-short-barrier": "reach-yellow"})


def test_scenario_rejects_transitions_for_unknown_actions() -> None:
    """Transition keys outside the action set are malformed."""

    with pytest.raises(ScenarioConfigError, match="unknown actions"):
        _jump_scenario(
            transitions={
                "jump-short-barrier": "reach-yellow",
                "do-nothing": "start",
                "fly": "reach-blue",
            }
        )


def test_scenario_rejects_unavailable_observation_and_bad_counts() -> None:
    """Observed action must be available and repeat counts positive."""

    with pytest.raises(ScenarioConfigError, match="not in its action set"):
        _jump_scenario(observed_action="fly")
    with pytest.raises(ScenarioConfigError, match="repeat_count"):
        _jump_scenario(repeat_count=0)
    with pytest.raises(ScenarioConfigError, match="duplicate actions"):
        _jump_scenario(actions=("do-nothing", "do-nothing"))


def test_unknown_action_transition_raises_scenario_error() -> None:
    """Querying an action outside the scenario should fail."""

    with pytest.raises(ScenarioConfigError, match="no transition for action"):
        _jump_scenario().transition("fly")


def test_test_scenario_has_no_observation() -> None:
    """Held-out scenarios carry no observed action."""

    scenario = Scenario(
        name="test",
        actions=("go-left", "go-right"),
        transitions={"go-left": "reach-blue", "go-right": "reach-yellow"},
    )
    assert not scenario.is_observed
    with pytest.raises(ScenarioConfigError, match="no observed action"):
        scenario.observed_sequence()


def test_scenario_from_config_parses_mapping() -> None:
    """Config parser should build a scenario with defaults."""

    scenario = scenario_from_config(
        {
            "name": "2B",
            "actions": ["jump-medium-barrier", "do-nothing"],
            "transitions": {"jump-medium-barrier": "reach-blue", "do-nothing": "start"},
            "observed_action": "do-nothing",
            "repeat_count": 2,
        }
    )
    assert scenario.actions == ("jump-medium-barrier", "do-nothing")
    assert scenario.observed_sequence() == ("do-nothing", "do-nothing")


def test_scenario_from_config_rejects_unknown_keys() -> None:
    """Scenario config should be strict about keys."""

    with pytest.raises(ValueError, match="unknown keys"):
        scenario_from_config(
            {
                "name": "x",
                "actions": ["a"],
                "transitions": {"a": "start"},
                "reward": 1.0,
            },
            field_name="config.test",
        )


def test_scenarios_from_config_rejects_duplicate_names() -> None:
    """Scenario tables must use unique names."""

    row = {"name": "1A", "actions": ["a"], "transitions": {"a": "start"}}
    with pytest.raises(ScenarioConfigError, match="duplicate scenario names"):
        scenarios_from_config([row, row])


def test_collect_actions_preserves_first_appearance_order() -> None:
    """Actions across scenarios should be deduplicated in order."""

    first = _jump_scenario()
    second = _jump_scenario(
        name="1B",
        actions=("jump-medium-barrier", "do-nothing"),
        transitions={"jump-medium-barrier": "reach-yellow", "do-nothing": "start"},
        observed_action="jump-medium-barrier",
    )
    assert collect_actions((first, second)) == (
        "jump-short-barrier",
        "do-nothing",
        "jump-medium-barrier",
    )
