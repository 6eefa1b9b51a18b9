"""Top-level package for ``inverse_planning``.

An observer infers how much an agent values each goal by inverting a
noisy-rational planner:

1. a :class:`~inverse_planning.core.scenarios.Scenario` fixes the agent's
   options and where each one leads,
2. :func:`~inverse_planning.runtime.planner.choose_agent_action` picks an
   action by softmax over reward minus cost,
3. :class:`~inverse_planning.inference.mcmc.MetropolisHastingsSampler`
   conditions latent rewards, costs and rationality on observed choices,
4. :func:`~inverse_planning.inference.predictive.run_posterior_predictive`
   turns the posterior into predictions on a held-out scenario.
"""

from .core import (
    InferenceError,
    InferenceTimeoutError,
    NumericalDegeneracyError,
    Scenario,
    ScenarioConfigError,
    UnsatisfiableConditioningError,
    load_config_mapping,
)
from .inference import (
    ChainSettings,
    MetropolisHastingsSampler,
    PriorResampleKernel,
    RandomWalkKernel,
    Study,
    dominance_probability,
    infer_agent_reward,
    make_study,
    predict_agent_action,
    run_query_from_config,
    study_from_config,
)
from .runtime import action_distribution, choose_agent_action
from .studies import build_infant_goals_study

__all__ = [
    "ChainSettings",
    "InferenceError",
    "InferenceTimeoutError",
    "MetropolisHastingsSampler",
    "NumericalDegeneracyError",
    "PriorResampleKernel",
    "RandomWalkKernel",
    "Scenario",
    "ScenarioConfigError",
    "Study",
    "UnsatisfiableConditioningError",
    "action_distribution",
    "build_infant_goals_study",
    "choose_agent_action",
    "dominance_probability",
    "infer_agent_reward",
    "load_config_mapping",
    "make_study",
    "predict_agent_action",
    "run_query_from_config",
    "study_from_config",
]
