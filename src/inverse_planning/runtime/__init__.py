"""Forward simulation primitives: random draws and the softmax planner."""

from .planner import (
    CostFunction,
    RewardFunction,
    TransitionFunction,
    action_distribution,
    action_utilities,
    choose_agent_action,
)
from .sampling import categorical, gamma, normalize_weights, uniform

__all__ = [
    "CostFunction",
    "RewardFunction",
    "TransitionFunction",
    "action_distribution",
    "action_utilities",
    "categorical",
    "choose_agent_action",
    "gamma",
    "normalize_weights",
    "uniform",
]
