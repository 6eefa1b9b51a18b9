"""Tests for config-driven study and chain parsing."""

from __future__ import annotations

import pytest

from inverse_planning.core import ScenarioConfigError
from inverse_planning.inference import (
    DEFAULT_INFERENCE_SETTINGS,
    ChainSettings,
    PriorResampleKernel,
    RandomWalkKernel,
    UniformPrior,
    chain_spec_from_config,
    predict_agent_action,
    run_query_from_config,
    study_from_config,
)
from inverse_planning.studies import infant_goals_config


def _small_config() -> dict:
    """Build one cheap single-goal study config."""

    return {
        "goal_states": ["goal"],
        "cost_classes": {"short": {"lower": 0.05, "upper": 0.25}},
        "action_difficulty": {"jump": "short"},
        "familiarization": [
            {
                "name": "1A",
                "actions": ["jump", "do-nothing"],
                "transitions": {"jump": "goal", "do-nothing": "start"},
                "observed_action": "jump",
                "repeat_count": 2,
            }
        ],
        "test": {
            "name": "test",
            "actions": ["go", "do-nothing"],
            "transitions": {"go": "goal", "do-nothing": "start"},
        },
        "inference": {"num_samples": 200, "lag": 10, "random_seed": 3},
        "prediction": {"num_samples": 100, "lag": 10},
    }


def test_study_from_config_builds_builtin_study() -> None:
    """The built-in config should parse into four observed scenarios and a test."""

    study = study_from_config(infant_goals_config())
    assert [scenario.name for scenario in study.familiarization] == ["1A", "1B", "2A", "2B"]
    assert study.goal_states == ("reach-yellow", "reach-blue")
    assert study.fixed_rewards == {"start": 0.0}
    assert study.require_test().actions == ("go-left", "go-right")
    assert study.latent_actions() == ("jump-short-barrier", "jump-medium-barrier")
    assert study.priors.cost.prior_for("jump-medium-barrier") == UniformPrior(0.4, 0.6)


def test_study_from_config_applies_prior_defaults() -> None:
    """Absent prior sections should fall back to documented defaults."""

    study = study_from_config(_small_config())
    assert study.priors.reward == UniformPrior(0.0, 1.0)
    assert study.priors.rationality.mean == pytest.approx(2.0)
    assert study.priors.movement_cost == UniformPrior(0.0, 0.1)
    assert study.priors.cost.is_null("do-nothing")


def test_study_from_config_rejects_unknown_and_missing_keys() -> None:
    """Study configs should be strict about keys."""

    config = _small_config()
    config["observer"] = {}
    with pytest.raises(ValueError, match="unknown keys"):
        study_from_config(config)

    config = _small_config()
    del config["familiarization"]
    with pytest.raises(ValueError, match="missing required keys"):
        study_from_config(config)


def test_study_from_config_rejects_inconsistent_scenarios() -> None:
    """Scenario errors should surface as ScenarioConfigError."""

    config = _small_config()
    config["familiarization"][0]["transitions"] = {"jump": "goal"}
    with pytest.raises(ScenarioConfigError, match="transition is undefined"):
        study_from_config(config)

    config = _small_config()
    config["goal_states"] = ["elsewhere"]
    with pytest.raises(ScenarioConfigError, match="without reward"):
        study_from_config(config)


def test_chain_spec_from_config_uses_defaults_and_overrides() -> None:
    """Chain sections should overlay defaults and honor the seed override."""

    spec = chain_spec_from_config(None, field_name="config.inference", defaults=DEFAULT_INFERENCE_SETTINGS)
    assert spec.settings == DEFAULT_INFERENCE_SETTINGS
    assert isinstance(spec.kernel, PriorResampleKernel)

    spec = chain_spec_from_config(
        {"num_samples": 100, "lag": 5, "burn_in": 20, "random_seed": 1, "timeout_seconds": 30},
        field_name="config.inference",
        defaults=DEFAULT_INFERENCE_SETTINGS,
        random_seed=99,
    )
    assert spec.settings == ChainSettings(
        num_samples=100,
        lag=5,
        burn_in=20,
        timeout_seconds=30.0,
        random_seed=99,
    )


def test_chain_spec_from_config_builds_random_walk_kernel() -> None:
    """Random-walk kernels should accept proposal scales."""

    spec = chain_spec_from_config(
        {"kernel": "random_walk", "proposal_scale": 0.05, "proposal_scales": {"beta": 0.5}},
        field_name="config.inference",
        defaults=DEFAULT_INFERENCE_SETTINGS,
    )
    assert isinstance(spec.kernel, RandomWalkKernel)
    assert spec.kernel.default_scale == pytest.approx(0.05)
    assert spec.kernel.scales == {"beta": 0.5}


def test_chain_spec_from_config_rejects_invalid_sections() -> None:
    """Unknown kernels, keys, and misplaced scales should fail fast."""

    with pytest.raises(ValueError, match="kernel must be one of"):
        chain_spec_from_config({"kernel": "hmc"}, field_name="c", defaults=DEFAULT_INFERENCE_SETTINGS)
    with pytest.raises(ValueError, match="unknown keys"):
        chain_spec_from_config({"thin": 2}, field_name="c", defaults=DEFAULT_INFERENCE_SETTINGS)
    with pytest.raises(ValueError, match="only valid with kernel 'random_walk'"):
        chain_spec_from_config({"proposal_scale": 0.1}, field_name="c", defaults=DEFAULT_INFERENCE_SETTINGS)
    with pytest.raises(ValueError, match="multiple of lag"):
        chain_spec_from_config({"num_samples": 15}, field_name="c", defaults=DEFAULT_INFERENCE_SETTINGS)


def test_run_query_from_config_infer_and_predict() -> None:
    """Config-driven queries should honor chain sections."""

    posterior = run_query_from_config(_small_config(), query="infer")
    assert len(posterior.samples) == 20
    assert all(0.0 <= sample[0] <= 1.0 for sample in posterior.samples)
    assert posterior.random_seed == 3

    prediction = run_query_from_config(_small_config(), query="predict", random_seed=5)
    assert prediction.posterior.random_seed == 5
    assert prediction.predictive.random_seed == 6
    assert len(prediction.predictions) == 10
    assert all(set(pair) <= {"go", "do-nothing"} for pair in prediction.predictions)


def test_run_query_from_config_rejects_bad_query_and_prediction_kernel() -> None:
    """Unknown queries and conditioned prediction kernels are invalid."""

    with pytest.raises(ValueError, match="query must be"):
        run_query_from_config(_small_config(), query="explain")

    config = _small_config()
    config["prediction"]["kernel"] = "random_walk"
    with pytest.raises(ValueError, match="prediction.kernel must be 'prior_resample'"):
        run_query_from_config(config, query="predict")


def test_predict_agent_action_returns_one_pair_per_retained_draw() -> None:
    """The prediction query should yield num_samples // lag action pairs."""

    study = study_from_config(_small_config())
    predictions = predict_agent_action(
        study,
        inference_settings=ChainSettings(num_samples=200, lag=10, random_seed=2),
        prediction_settings=ChainSettings(num_samples=60, lag=6, random_seed=3),
    )
    assert len(predictions) == 10
    assert all(len(pair) == 2 for pair in predictions)
    assert all(set(pair) <= {"go", "do-nothing"} for pair in predictions)


def test_config_numbers_reject_null_and_fractional_values() -> None:
    """Null or non-integral chain settings and repeat counts are config errors."""

    with pytest.raises(ValueError, match="config.inference.lag must be an integer"):
        chain_spec_from_config({"lag": None}, field_name="config.inference", defaults=DEFAULT_INFERENCE_SETTINGS)
    with pytest.raises(ValueError, match="c.num_samples must be an integer"):
        chain_spec_from_config({"num_samples": 12.5}, field_name="c", defaults=DEFAULT_INFERENCE_SETTINGS)
    with pytest.raises(ValueError, match="c.timeout_seconds must be a number"):
        chain_spec_from_config({"timeout_seconds": "soon"}, field_name="c", defaults=DEFAULT_INFERENCE_SETTINGS)

    config = _small_config()
    config["test"]["repeat_count"] = None
    with pytest.raises(ValueError, match="config.test.repeat_count must be an integer"):
        study_from_config(config)

    config = _small_config()
    config["cost_classes"]["short"]["upper"] = None
    with pytest.raises(ValueError, match="must be a number"):
        study_from_config(config)
