"""CLI for config-driven reward inference and action prediction."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from inverse_planning.core import InferenceError, apply_config_overrides, load_config_mapping
from inverse_planning.io import (
    read_reward_samples_csv,
    write_action_samples_csv,
    write_records_csv,
    write_reward_samples_csv,
    write_samples_json,
)
from inverse_planning.studies import infant_goals_config

from .config import DEFAULT_PREDICTION_SETTINGS, chain_spec_from_config, study_from_config
from .mcmc import MCMCDiagnostics, MCMCResult, PriorResampleKernel
from .posterior import (
    PosteriorSamples,
    action_frequencies,
    dominance_probability,
    frequency_records,
    posterior_summary_records,
    summarize_posterior,
)
from .predictive import run_posterior_predictive
from .priors import reward_param_name
from .queries import PredictionResult, run_query_from_config

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


def run_inverse_planning_cli(argv: Sequence[str] | None = None) -> int:
    """Run reward inference or action prediction from a study config.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        CLI argument list. When ``None``, process arguments are used.

    Returns
    -------
    int
        Exit code (`0` on success, `2` on invalid input or failed inference).
    """

    parser = argparse.ArgumentParser(
        description="Infer goal rewards or predict actions by Bayesian inverse planning."
    )
    parser.add_argument(
        "--query",
        choices=("infer", "predict"),
        default="infer",
        help="Query to run.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to study JSON or YAML config. Defaults to the built-in infant-goals study.",
    )
    parser.add_argument(
        "--posterior-csv",
        default=None,
        help="Reward samples CSV from a previous 'infer' run; '--query predict' skips inference.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override one config entry by dotted path, e.g. inference.num_samples=500.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed override.")
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for output CSV/JSON files.",
    )
    parser.add_argument(
        "--prefix",
        default="inverse_planning",
        help="Output filename prefix.",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging verbosity.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level)),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = apply_config_overrides(
            load_config_mapping(args.config) if args.config is not None else infant_goals_config(),
            args.overrides,
        )
        output_dir = Path(args.output_dir)
        prefix = str(args.prefix)
        if args.posterior_csv is not None:
            if args.query != "predict":
                raise ValueError("--posterior-csv is only valid with --query predict")
            paths = _predict_from_saved_posterior(
                config,
                posterior_csv=args.posterior_csv,
                random_seed=args.seed,
                output_dir=output_dir,
                prefix=prefix,
            )
        else:
            result = run_query_from_config(config, query=args.query, random_seed=args.seed)
            paths = _write_query_outputs(
                result,
                goal_states=_goal_states(config),
                output_dir=output_dir,
                prefix=prefix,
            )
    except (ValueError, InferenceError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"Query complete: query={args.query}")
    for label, path in paths.items():
        print(f"{label}: {path}")
    return 0


def _goal_states(config: dict[str, Any]) -> tuple[str, ...]:
    """Return configured goal states in query order."""

    return tuple(str(state) for state in config["goal_states"])


def _write_query_outputs(
    result: MCMCResult | PredictionResult,
    *,
    goal_states: Sequence[str],
    output_dir: Path,
    prefix: str,
) -> dict[str, Path]:
    """Write samples, summaries, and diagnostics for one query result."""

    posterior = result.posterior if isinstance(result, PredictionResult) else result
    paths = _write_posterior_outputs(
        posterior,
        goal_states=goal_states,
        output_dir=output_dir,
        prefix=prefix,
    )
    if isinstance(result, PredictionResult):
        paths.update(
            _write_prediction_outputs(result.predictive, output_dir=output_dir, prefix=prefix)
        )
    return paths


def _write_posterior_outputs(
    posterior: MCMCResult,
    *,
    goal_states: Sequence[str],
    output_dir: Path,
    prefix: str,
) -> dict[str, Path]:
    names = [reward_param_name(state) for state in goal_states]
    samples = PosteriorSamples.from_tuples(posterior.samples, names)
    summary = summarize_posterior(samples)

    paths = {
        "Reward samples CSV": write_reward_samples_csv(
            posterior.samples,
            output_dir / f"{prefix}_rewards.csv",
            goal_states=goal_states,
        ),
        "Reward samples JSON": write_samples_json(
            posterior.samples,
            output_dir / f"{prefix}_rewards.json",
            field_names=names,
            metadata={"random_seed": posterior.random_seed, "n_chains": posterior.n_chains},
        ),
        "Posterior summary CSV": write_records_csv(
            posterior_summary_records(summary),
            output_dir / f"{prefix}_posterior_summary.csv",
        ),
    }

    dominance: dict[str, float] = {}
    for first_index, first in enumerate(names):
        for second in names[first_index + 1 :]:
            dominance[f"P({first} > {second})"] = dominance_probability(
                samples.draws(first),
                samples.draws(second),
            )

    summary_payload = {
        "n_draws": summary.n_draws,
        "acceptance_rate": posterior.acceptance_rate,
        "means": {item.parameter_name: item.mean for item in summary.parameters},
        "dominance": dominance,
        "chains": [_diagnostics_record(item) for item in posterior.chain_diagnostics],
    }
    summary_path = output_dir / f"{prefix}_summary.json"
    summary_path.write_text(json.dumps(summary_payload, indent=2, sort_keys=True), encoding="utf-8")
    paths["Summary JSON"] = summary_path
    return paths


def _write_prediction_outputs(
    predictive: MCMCResult,
    *,
    output_dir: Path,
    prefix: str,
) -> dict[str, Path]:
    return {
        "Predicted actions CSV": write_action_samples_csv(
            predictive.samples,
            output_dir / f"{prefix}_actions.csv",
        ),
        "Action frequencies CSV": write_records_csv(
            frequency_records(action_frequencies(predictive.samples)),
            output_dir / f"{prefix}_action_frequencies.csv",
        ),
    }


def _predict_from_saved_posterior(
    config: dict[str, Any],
    *,
    posterior_csv: str,
    random_seed: int | None,
    output_dir: Path,
    prefix: str,
) -> dict[str, Path]:
    """Run only the predictive chain against previously written reward samples."""

    study = study_from_config(config)
    posterior_samples = read_reward_samples_csv(posterior_csv, goal_states=study.goal_states)
    prediction = chain_spec_from_config(
        config.get("prediction"),
        field_name="config.prediction",
        defaults=DEFAULT_PREDICTION_SETTINGS,
        random_seed=random_seed,
    )
    if not isinstance(prediction.kernel, PriorResampleKernel):
        raise ValueError("config.prediction.kernel must be 'prior_resample'")
    predictive = run_posterior_predictive(study, posterior_samples, prediction.settings)
    return _write_prediction_outputs(predictive, output_dir=output_dir, prefix=prefix)


def _diagnostics_record(diagnostics: MCMCDiagnostics) -> dict[str, Any]:
    return {
        "kernel": diagnostics.kernel,
        "n_iterations": int(diagnostics.n_iterations),
        "n_kept_draws": int(diagnostics.n_kept_draws),
        "n_accepted": int(diagnostics.n_accepted),
        "acceptance_rate": float(diagnostics.acceptance_rate),
        "n_init_attempts": int(diagnostics.n_init_attempts),
        "elapsed_seconds": float(diagnostics.elapsed_seconds),
    }


def main() -> None:
    """Execute inverse-planning CLI and exit with returned code."""

    raise SystemExit(run_inverse_planning_cli())


if __name__ == "__main__":
    main()


__all__ = ["main", "run_inverse_planning_cli"]
