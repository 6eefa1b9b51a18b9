"""Top-level queries: infer goal rewards and predict test-trial actions."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from .config import (
    DEFAULT_INFERENCE_SETTINGS,
    DEFAULT_PREDICTION_SETTINGS,
    ChainSpec,
    chain_spec_from_config,
    study_from_config,
)
from .mcmc import (
    ChainSettings,
    MCMCResult,
    MetropolisHastingsSampler,
    PriorResampleKernel,
    ProposalKernel,
)
from .model import InversePlanningModel, Study
from .predictive import run_posterior_predictive

logger = logging.getLogger(__name__)

QueryType = Literal["infer", "predict"]


@dataclass(frozen=True, slots=True)
class PredictionResult:
    """Predicted test actions together with the posterior they came from.

    Parameters
    ----------
    posterior : MCMCResult
        Reward inference output.
    predictive : MCMCResult
        Posterior-predictive simulation output.
    """

    posterior: MCMCResult
    predictive: MCMCResult

    @property
    def predictions(self) -> tuple[tuple[Hashable, ...], ...]:
        """Return predicted action tuples in sampling order."""

        return self.predictive.samples


def sample_reward_posterior(
    study: Study,
    *,
    settings: ChainSettings = DEFAULT_INFERENCE_SETTINGS,
    kernel: ProposalKernel | None = None,
) -> MCMCResult:
    """Condition goal rewards on the study's familiarization observations.

    Returns
    -------
    MCMCResult
        Samples are reward tuples in ``study.goal_states`` order.
    """

    return MetropolisHastingsSampler(InversePlanningModel(study), kernel=kernel).run(settings)


def infer_agent_reward(
    study: Study,
    *,
    settings: ChainSettings = DEFAULT_INFERENCE_SETTINGS,
    kernel: ProposalKernel | None = None,
) -> tuple[tuple[float, ...], ...]:
    """Return posterior goal-reward tuples, one per retained draw."""

    return sample_reward_posterior(study, settings=settings, kernel=kernel).samples


def run_prediction(
    study: Study,
    *,
    inference_settings: ChainSettings = DEFAULT_INFERENCE_SETTINGS,
    prediction_settings: ChainSettings = DEFAULT_PREDICTION_SETTINGS,
    kernel: ProposalKernel | None = None,
    n_predictions: int = 2,
) -> PredictionResult:
    """Infer rewards, then simulate the held-out test scenario.

    Parameters
    ----------
    study : Study
        Study with familiarization and test scenarios.
    inference_settings : ChainSettings, optional
        Settings for reward inference.
    prediction_settings : ChainSettings, optional
        Settings for the unconditioned predictive chain.
    kernel : PriorResampleKernel | RandomWalkKernel | None, optional
        Proposal kernel for reward inference.
    n_predictions : int, optional
        Planner runs per predictive draw.

    Returns
    -------
    PredictionResult
        Both chain outputs.
    """

    test = study.require_test()
    posterior = sample_reward_posterior(study, settings=inference_settings, kernel=kernel)
    logger.info(
        "simulating %d predictive draws on scenario %r",
        prediction_settings.n_chains * prediction_settings.draws_per_chain,
        test.name,
    )
    predictive = run_posterior_predictive(
        study,
        posterior.samples,
        prediction_settings,
        n_predictions=n_predictions,
    )
    return PredictionResult(posterior=posterior, predictive=predictive)


def predict_agent_action(
    study: Study,
    *,
    inference_settings: ChainSettings = DEFAULT_INFERENCE_SETTINGS,
    prediction_settings: ChainSettings = DEFAULT_PREDICTION_SETTINGS,
    kernel: ProposalKernel | None = None,
) -> tuple[tuple[Hashable, ...], ...]:
    """Return predicted test action pairs, one per retained predictive draw."""

    return run_prediction(
        study,
        inference_settings=inference_settings,
        prediction_settings=prediction_settings,
        kernel=kernel,
    ).predictions


def run_query_from_config(
    config: Mapping[str, Any],
    *,
    query: QueryType,
    random_seed: int | None = None,
) -> MCMCResult | PredictionResult:
    """Run one top-level query from a study config mapping.

    Parameters
    ----------
    config : Mapping[str, Any]
        Study config, optionally with ``inference``/``prediction`` sections.
    query : {"infer", "predict"}
        Query to run.
    random_seed : int | None, optional
        Seed override. The prediction chain uses ``random_seed + 1`` so the
        two chains draw independent streams.

    Returns
    -------
    MCMCResult | PredictionResult
        Reward posterior for ``"infer"``; both chains for ``"predict"``.
    """

    if query not in ("infer", "predict"):
        raise ValueError(f"query must be 'infer' or 'predict', got {query!r}")

    study = study_from_config(config)
    inference = chain_spec_from_config(
        config.get("inference"),
        field_name="config.inference",
        defaults=DEFAULT_INFERENCE_SETTINGS,
        random_seed=random_seed,
    )
    if query == "infer":
        return sample_reward_posterior(study, settings=inference.settings, kernel=inference.kernel)

    prediction: ChainSpec = chain_spec_from_config(
        config.get("prediction"),
        field_name="config.prediction",
        defaults=DEFAULT_PREDICTION_SETTINGS,
        random_seed=random_seed + 1 if random_seed is not None else None,
    )
    if not isinstance(prediction.kernel, PriorResampleKernel):
        raise ValueError("config.prediction.kernel must be 'prior_resample'")
    return run_prediction(
        study,
        inference_settings=inference.settings,
        prediction_settings=prediction.settings,
        kernel=inference.kernel,
    )


__all__ = [
    "PredictionResult",
    "QueryType",
    "infer_agent_reward",
    "predict_agent_action",
    "run_prediction",
    "run_query_from_config",
    "sample_reward_posterior",
]
