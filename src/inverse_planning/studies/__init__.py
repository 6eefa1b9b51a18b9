"""Built-in studies."""

from .infant_goals import (
    BLUE_GOAL,
    INFANT_GOALS_CONFIG,
    YELLOW_GOAL,
    build_infant_goals_study,
    infant_goals_config,
)

__all__ = [
    "BLUE_GOAL",
    "INFANT_GOALS_CONFIG",
    "YELLOW_GOAL",
    "build_infant_goals_study",
    "infant_goals_config",
]
