"""Bayesian inverse planning: priors, MH sampling, and posterior queries."""

from .config import (
    DEFAULT_INFERENCE_SETTINGS,
    DEFAULT_PREDICTION_SETTINGS,
    ChainSpec,
    chain_spec_from_config,
    study_from_config,
)
from .mcmc import (
    ChainSettings,
    ChainState,
    ConditionedModel,
    MCMCDiagnostics,
    MCMCDraw,
    MCMCResult,
    MetropolisHastingsSampler,
    PriorResampleKernel,
    ProposalKernel,
    RandomWalkKernel,
    sample_posterior,
)
from .model import InversePlanningModel, Study, make_study, reward_function, simulate_repeated_actions
from .posterior import (
    PosteriorParameterSummary,
    PosteriorSamples,
    PosteriorSummary,
    action_frequencies,
    dominance_probability,
    frequency_records,
    posterior_summary_records,
    summarize_posterior,
)
from .predictive import PosteriorPredictiveModel, run_posterior_predictive
from .priors import DifficultyCostPrior, GammaPrior, MemoizedCostFunction, PriorSpec, UniformPrior
from .queries import (
    PredictionResult,
    infer_agent_reward,
    predict_agent_action,
    run_prediction,
    run_query_from_config,
    sample_reward_posterior,
)

__all__ = [
    "ChainSettings",
    "ChainSpec",
    "ChainState",
    "ConditionedModel",
    "DEFAULT_INFERENCE_SETTINGS",
    "DEFAULT_PREDICTION_SETTINGS",
    "DifficultyCostPrior",
    "GammaPrior",
    "InversePlanningModel",
    "MCMCDiagnostics",
    "MCMCDraw",
    "MCMCResult",
    "MemoizedCostFunction",
    "MetropolisHastingsSampler",
    "PosteriorParameterSummary",
    "PosteriorPredictiveModel",
    "PosteriorSamples",
    "PosteriorSummary",
    "PredictionResult",
    "PriorResampleKernel",
    "PriorSpec",
    "ProposalKernel",
    "RandomWalkKernel",
    "Study",
    "UniformPrior",
    "action_frequencies",
    "chain_spec_from_config",
    "dominance_probability",
    "frequency_records",
    "infer_agent_reward",
    "make_study",
    "posterior_summary_records",
    "predict_agent_action",
    "reward_function",
    "run_posterior_predictive",
    "run_prediction",
    "run_query_from_config",
    "sample_posterior",
    "sample_reward_posterior",
    "simulate_repeated_actions",
    "study_from_config",
    "summarize_posterior",
]
