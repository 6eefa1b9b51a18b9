"""Built-in infant goal-inference study.

Four familiarization trials show an agent facing a barrier in front of one of
two goals (yellow or blue). The agent clears a short and a medium barrier to
reach yellow, clears a short barrier to reach blue, but stays put when the
blue goal sits behind a medium barrier. A held-out test trial offers both
goals with no barrier in the way.
"""

from __future__ import annotations

import copy
from typing import Any

from inverse_planning.inference.config import study_from_config
from inverse_planning.inference.model import Study

YELLOW_GOAL = "reach-yellow"
BLUE_GOAL = "reach-blue"

INFANT_GOALS_CONFIG: dict[str, Any] = {
    "goal_states": [YELLOW_GOAL, BLUE_GOAL],
    "fixed_rewards": {"start": 0.0},
    "null_actions": ["do-nothing"],
    "reward_prior": {"lower": 0.0, "upper": 1.0},
    "rationality_prior": {"shape": 2.0, "rate": 1.0},
    "movement_cost_prior": {"lower": 0.0, "upper": 0.1},
    "cost_classes": {
        "short": {"lower": 0.05, "upper": 0.25},
        "medium": {"lower": 0.4, "upper": 0.6},
        "tall": {"lower": 0.75, "upper": 0.95},
    },
    "action_difficulty": {
        "jump-short-barrier": "short",
        "jump-medium-barrier": "medium",
        "jump-tall-barrier": "tall",
    },
    "familiarization": [
        {
            "name": "1A",
            "actions": ["jump-short-barrier", "do-nothing"],
            "transitions": {"jump-short-barrier": YELLOW_GOAL, "do-nothing": "start"},
            "observed_action": "jump-short-barrier",
        },
        {
            "name": "1B",
            "actions": ["jump-medium-barrier", "do-nothing"],
            "transitions": {"jump-medium-barrier": YELLOW_GOAL, "do-nothing": "start"},
            "observed_action": "jump-medium-barrier",
        },
        {
            "name": "2A",
            "actions": ["jump-short-barrier", "do-nothing"],
            "transitions": {"jump-short-barrier": BLUE_GOAL, "do-nothing": "start"},
            "observed_action": "jump-short-barrier",
        },
        {
            "name": "2B",
            "actions": ["jump-medium-barrier", "do-nothing"],
            "transitions": {"jump-medium-barrier": BLUE_GOAL, "do-nothing": "start"},
            "observed_action": "do-nothing",
        },
    ],
    "test": {
        "name": "test",
        "actions": ["go-left", "go-right"],
        "transitions": {"go-left": BLUE_GOAL, "go-right": YELLOW_GOAL},
    },
    "inference": {"num_samples": 10_000, "lag": 10},
    "prediction": {"num_samples": 1_000, "lag": 10},
}


def infant_goals_config() -> dict[str, Any]:
    """Return a deep copy of the built-in study config mapping."""

    return copy.deepcopy(INFANT_GOALS_CONFIG)


def build_infant_goals_study() -> Study:
    """Build the built-in study from :data:`INFANT_GOALS_CONFIG`."""

    return study_from_config(INFANT_GOALS_CONFIG)


__all__ = [
    "BLUE_GOAL",
    "INFANT_GOALS_CONFIG",
    "YELLOW_GOAL",
    "build_infant_goals_study",
    "infant_goals_config",
]
