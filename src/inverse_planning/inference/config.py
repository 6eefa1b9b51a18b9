"""Config-driven construction of studies and sampler settings.

A study config is one mapping with the scenario table, priors, and optional
``inference``/``prediction`` chain sections::

    goal_states: [reach-yellow, reach-blue]
    fixed_rewards: {start: 0.0}
    null_actions: [do-nothing]
    cost_classes:
      short: {lower: 0.05, upper: 0.25}
    action_difficulty: {jump-short-barrier: short}
    familiarization:
      - {name: 1A, actions: [...], transitions: {...}, observed_action: ...}
    test: {name: test, actions: [...], transitions: {...}}
    inference: {num_samples: 10000, lag: 10}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from inverse_planning.core.config_validation import (
    coerce_float,
    coerce_int,
    coerce_non_empty_str,
    require_mapping,
    require_sequence,
    validate_allowed_keys,
    validate_required_keys,
)
from inverse_planning.core.scenarios import scenario_from_config, scenarios_from_config

from .mcmc import ChainSettings, PriorResampleKernel, ProposalKernel, RandomWalkKernel
from .model import Study
from .priors import (
    GammaPrior,
    PriorSpec,
    UniformPrior,
    cost_prior_from_config,
    gamma_prior_from_config,
    uniform_prior_from_config,
)

STUDY_KEYS: tuple[str, ...] = (
    "goal_states",
    "fixed_rewards",
    "null_actions",
    "reward_prior",
    "rationality_prior",
    "movement_cost_prior",
    "cost_classes",
    "action_difficulty",
    "familiarization",
    "test",
    "inference",
    "prediction",
)

CHAIN_KEYS: tuple[str, ...] = (
    "num_samples",
    "lag",
    "burn_in",
    "max_init_attempts",
    "timeout_seconds",
    "n_chains",
    "parallel_chains",
    "random_seed",
    "kernel",
    "proposal_scale",
    "proposal_scales",
)

KERNEL_TYPES: tuple[str, ...] = ("prior_resample", "random_walk")

DEFAULT_INFERENCE_SETTINGS = ChainSettings(num_samples=10_000, lag=10)
DEFAULT_PREDICTION_SETTINGS = ChainSettings(num_samples=1_000, lag=10)


@dataclass(frozen=True, slots=True)
class ChainSpec:
    """Parsed chain section: run settings plus proposal kernel."""

    settings: ChainSettings
    kernel: ProposalKernel = field(default_factory=PriorResampleKernel)


def study_from_config(config: Mapping[str, Any]) -> Study:
    """Parse a study config mapping into a :class:`Study`.

    Raises
    ------
    ValueError
        If keys are unknown or missing, or values are malformed.
    ScenarioConfigError
        If scenarios are inconsistent with goals, rewards, or costs.
    """

    cfg = require_mapping(config, field_name="config")
    validate_allowed_keys(cfg, field_name="config", allowed_keys=STUDY_KEYS)
    validate_required_keys(
        cfg,
        field_name="config",
        required_keys=("goal_states", "cost_classes", "action_difficulty", "familiarization"),
    )

    goal_states = tuple(
        coerce_non_empty_str(state, field_name=f"config.goal_states[{index}]")
        for index, state in enumerate(
            require_sequence(cfg["goal_states"], field_name="config.goal_states")
        )
    )
    null_actions = tuple(
        coerce_non_empty_str(action, field_name=f"config.null_actions[{index}]")
        for index, action in enumerate(
            require_sequence(cfg.get("null_actions", ["do-nothing"]), field_name="config.null_actions")
        )
    )
    fixed_rewards = {
        str(state): coerce_float(value, field_name=f"config.fixed_rewards.{state}")
        for state, value in require_mapping(
            cfg.get("fixed_rewards", {"start": 0.0}), field_name="config.fixed_rewards"
        ).items()
    }

    priors = PriorSpec(
        cost=cost_prior_from_config(
            cfg["cost_classes"],
            cfg["action_difficulty"],
            null_actions=null_actions,
        ),
        reward=(
            uniform_prior_from_config(cfg["reward_prior"], field_name="config.reward_prior")
            if "reward_prior" in cfg
            else UniformPrior(0.0, 1.0)
        ),
        rationality=(
            gamma_prior_from_config(cfg["rationality_prior"], field_name="config.rationality_prior")
            if "rationality_prior" in cfg
            else GammaPrior()
        ),
        movement_cost=(
            uniform_prior_from_config(
                cfg["movement_cost_prior"], field_name="config.movement_cost_prior"
            )
            if "movement_cost_prior" in cfg
            else UniformPrior(0.0, 0.1)
        ),
    )

    return Study(
        familiarization=scenarios_from_config(
            cfg["familiarization"], field_name="config.familiarization"
        ),
        test=(
            scenario_from_config(cfg["test"], field_name="config.test")
            if cfg.get("test") is not None
            else None
        ),
        goal_states=goal_states,
        priors=priors,
        fixed_rewards=fixed_rewards,
    )


def chain_spec_from_config(
    raw: Any,
    *,
    field_name: str,
    defaults: ChainSettings,
    random_seed: int | None = None,
) -> ChainSpec:
    """Parse one chain section, falling back to ``defaults`` for absent keys.

    Parameters
    ----------
    raw : Any
        Chain mapping (``None`` uses ``defaults`` entirely).
    field_name : str
        Config path used in error messages.
    defaults : ChainSettings
        Settings used for absent keys.
    random_seed : int | None, optional
        Seed override taking precedence over the configured seed.

    Returns
    -------
    ChainSpec
        Settings and proposal kernel.
    """

    section = require_mapping(raw if raw is not None else {}, field_name=field_name)
    validate_allowed_keys(section, field_name=field_name, allowed_keys=CHAIN_KEYS)

    configured_seed = section.get("random_seed", defaults.random_seed)
    seed = random_seed if random_seed is not None else configured_seed
    timeout = section.get("timeout_seconds", defaults.timeout_seconds)
    parallel = section.get("parallel_chains", defaults.parallel_chains)

    settings = ChainSettings(
        num_samples=coerce_int(
            section.get("num_samples", defaults.num_samples), field_name=f"{field_name}.num_samples"
        ),
        lag=coerce_int(section.get("lag", defaults.lag), field_name=f"{field_name}.lag"),
        burn_in=coerce_int(section.get("burn_in", defaults.burn_in), field_name=f"{field_name}.burn_in"),
        max_init_attempts=coerce_int(
            section.get("max_init_attempts", defaults.max_init_attempts),
            field_name=f"{field_name}.max_init_attempts",
        ),
        timeout_seconds=(
            coerce_float(timeout, field_name=f"{field_name}.timeout_seconds")
            if timeout is not None
            else None
        ),
        n_chains=coerce_int(section.get("n_chains", defaults.n_chains), field_name=f"{field_name}.n_chains"),
        parallel_chains=(
            coerce_int(parallel, field_name=f"{field_name}.parallel_chains")
            if parallel is not None
            else None
        ),
        random_seed=coerce_int(seed, field_name=f"{field_name}.random_seed") if seed is not None else None,
    )
    return ChainSpec(settings=settings, kernel=_kernel_from_section(section, field_name=field_name))


def _kernel_from_section(section: Mapping[str, Any], *, field_name: str) -> ProposalKernel:
    """Build the proposal kernel named by ``section["kernel"]``."""

    kind = coerce_non_empty_str(
        section.get("kernel", "prior_resample"),
        field_name=f"{field_name}.kernel",
    )
    if kind not in KERNEL_TYPES:
        raise ValueError(
            f"{field_name}.kernel must be one of {list(KERNEL_TYPES)}, got {kind!r}"
        )

    if kind == "prior_resample":
        if "proposal_scale" in section or "proposal_scales" in section:
            raise ValueError(
                f"{field_name}.proposal_scale(s) are only valid with kernel 'random_walk'"
            )
        return PriorResampleKernel()

    scales = {
        str(name): coerce_float(value, field_name=f"{field_name}.proposal_scales.{name}")
        for name, value in require_mapping(
            section.get("proposal_scales", {}), field_name=f"{field_name}.proposal_scales"
        ).items()
    }
    return RandomWalkKernel(
        default_scale=coerce_float(
            section.get("proposal_scale", 0.1), field_name=f"{field_name}.proposal_scale"
        ),
        scales=scales,
    )


__all__ = [
    "CHAIN_KEYS",
    "ChainSpec",
    "DEFAULT_INFERENCE_SETTINGS",
    "DEFAULT_PREDICTION_SETTINGS",
    "KERNEL_TYPES",
    "STUDY_KEYS",
    "chain_spec_from_config",
    "study_from_config",
]
