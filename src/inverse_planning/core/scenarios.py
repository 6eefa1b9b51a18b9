"""Scenario descriptors for familiarization and test trials.

A scenario is pure data: the actions available to the agent, the
deterministic state each action leads to, and (for familiarization trials)
the action the agent was observed to take on every repetition.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .config_validation import (
    coerce_int,
    coerce_non_empty_str,
    require_mapping,
    require_sequence,
    validate_allowed_keys,
    validate_required_keys,
)
from .errors import ScenarioConfigError

DEFAULT_REPEAT_COUNT = 4


@dataclass(frozen=True, slots=True)
class Scenario:
    """One experimental trial shown to the observer.

    Parameters
    ----------
    name : str
        Stable scenario label (e.g. ``"1A"``).
    actions : tuple[Hashable, ...]
        Actions available to the agent. Must be non-empty and unique.
    transitions : Mapping[Hashable, Hashable]
        Deterministic action -> resulting-state mapping. Must be defined for
        every action in ``actions``.
    observed_action : Hashable | None, optional
        Action the agent took on each repetition. ``None`` for held-out
        test scenarios.
    repeat_count : int, optional
        Number of identical observed repetitions.

    Raises
    ------
    ScenarioConfigError
        If the transition mapping is not total over ``actions`` or the
        observed action is not available.
    """

    name: str
    actions: tuple[Hashable, ...]
    transitions: Mapping[Hashable, Hashable]
    observed_action: Hashable | None = None
    repeat_count: int = DEFAULT_REPEAT_COUNT

    def __post_init__(self) -> None:
        actions = tuple(self.actions)
        if not actions:
            raise ScenarioConfigError(f"scenario {self.name!r} must contain at least one action")
        if len(set(actions)) != len(actions):
            raise ScenarioConfigError(f"scenario {self.name!r} has duplicate actions")

        transitions = dict(self.transitions)
        missing = [action for action in actions if action not in transitions]
        if missing:
            raise ScenarioConfigError(
                f"scenario {self.name!r} transition is undefined for actions: {missing}"
            )
        extra = [action for action in transitions if action not in actions]
        if extra:
            raise ScenarioConfigError(
                f"scenario {self.name!r} transition references unknown actions: {extra}"
            )

        if self.observed_action is not None and self.observed_action not in actions:
            raise ScenarioConfigError(
                f"scenario {self.name!r} observed action {self.observed_action!r} "
                "is not in its action set"
            )
        if int(self.repeat_count) <= 0:
            raise ScenarioConfigError(f"scenario {self.name!r} repeat_count must be > 0")

        object.__setattr__(self, "actions", actions)
        object.__setattr__(self, "transitions", transitions)
        object.__setattr__(self, "repeat_count", int(self.repeat_count))

    @property
    def is_observed(self) -> bool:
        """Return whether this scenario carries an observation."""

        return self.observed_action is not None

    @property
    def states(self) -> tuple[Hashable, ...]:
        """Return resulting states in action order, without duplicates."""

        return tuple(dict.fromkeys(self.transitions[action] for action in self.actions))

    def transition(self, action: Hashable) -> Hashable:
        """Return the state reached by ``action``.

        Raises
        ------
        ScenarioConfigError
            If ``action`` is not part of this scenario.
        """

        try:
            return self.transitions[action]
        except KeyError:
            raise ScenarioConfigError(
                f"scenario {self.name!r} has no transition for action {action!r}"
            ) from None

    def observed_sequence(self) -> tuple[Hashable, ...]:
        """Return the observed action repeated ``repeat_count`` times."""

        if self.observed_action is None:
            raise ScenarioConfigError(f"scenario {self.name!r} has no observed action")
        return (self.observed_action,) * self.repeat_count


def scenario_from_config(raw: Any, *, field_name: str = "scenario") -> Scenario:
    """Parse one scenario mapping.

    Expected keys are ``name``, ``actions`` and ``transitions`` with optional
    ``observed_action`` and ``repeat_count``.
    """

    mapping = require_mapping(raw, field_name=field_name)
    validate_allowed_keys(
        mapping,
        field_name=field_name,
        allowed_keys=("name", "actions", "transitions", "observed_action", "repeat_count"),
    )
    validate_required_keys(
        mapping,
        field_name=field_name,
        required_keys=("name", "actions", "transitions"),
    )

    name = coerce_non_empty_str(mapping["name"], field_name=f"{field_name}.name")
    actions = tuple(
        coerce_non_empty_str(action, field_name=f"{field_name}.actions[{index}]")
        for index, action in enumerate(
            require_sequence(mapping["actions"], field_name=f"{field_name}.actions")
        )
    )
    transitions = {
        str(action): coerce_non_empty_str(state, field_name=f"{field_name}.transitions.{action}")
        for action, state in require_mapping(
            mapping["transitions"], field_name=f"{field_name}.transitions"
        ).items()
    }
    observed = mapping.get("observed_action")
    return Scenario(
        name=name,
        actions=actions,
        transitions=transitions,
        observed_action=(
            coerce_non_empty_str(observed, field_name=f"{field_name}.observed_action")
            if observed is not None
            else None
        ),
        repeat_count=coerce_int(
            mapping.get("repeat_count", DEFAULT_REPEAT_COUNT),
            field_name=f"{field_name}.repeat_count",
        ),
    )


def scenarios_from_config(raw: Any, *, field_name: str = "scenarios") -> tuple[Scenario, ...]:
    """Parse a named table of scenarios, rejecting duplicate names."""

    rows = require_sequence(raw, field_name=field_name)
    scenarios = tuple(
        scenario_from_config(row, field_name=f"{field_name}[{index}]")
        for index, row in enumerate(rows)
    )
    names = [scenario.name for scenario in scenarios]
    if len(set(names)) != len(names):
        raise ScenarioConfigError(f"{field_name} has duplicate scenario names")
    return scenarios


def collect_actions(scenarios: Sequence[Scenario]) -> tuple[Hashable, ...]:
    """Return all actions across ``scenarios`` in first-appearance order."""

    ordered: dict[Hashable, None] = {}
    for scenario in scenarios:
        for action in scenario.actions:
            ordered.setdefault(action, None)
    return tuple(ordered)


__all__ = [
    "DEFAULT_REPEAT_COUNT",
    "Scenario",
    "collect_actions",
    "scenario_from_config",
    "scenarios_from_config",
]
