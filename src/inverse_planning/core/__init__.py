"""Core data contracts: scenarios, config helpers, and errors."""

from .config_loading import SUPPORTED_CONFIG_SUFFIXES, apply_config_overrides, load_config_mapping
from .config_validation import validate_allowed_keys, validate_required_keys
from .errors import (
    InferenceError,
    InferenceTimeoutError,
    NumericalDegeneracyError,
    ScenarioConfigError,
    UnsatisfiableConditioningError,
)
from .scenarios import (
    DEFAULT_REPEAT_COUNT,
    Scenario,
    collect_actions,
    scenario_from_config,
    scenarios_from_config,
)

__all__ = [
    "DEFAULT_REPEAT_COUNT",
    "InferenceError",
    "InferenceTimeoutError",
    "NumericalDegeneracyError",
    "SUPPORTED_CONFIG_SUFFIXES",
    "Scenario",
    "ScenarioConfigError",
    "UnsatisfiableConditioningError",
    "apply_config_overrides",
    "collect_actions",
    "load_config_mapping",
    "scenario_from_config",
    "scenarios_from_config",
    "validate_allowed_keys",
    "validate_required_keys",
]
