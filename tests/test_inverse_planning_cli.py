"""Tests for the config-driven inverse-planning CLI."""

from __future__ import annotations

import csv
import json

from inverse_planning.inference.cli import run_inverse_planning_cli
from inverse_planning.studies import infant_goals_config


def _fast_config(tmp_path) -> str:
    """Write the built-in study with short chains to a JSON file."""

    config = infant_goals_config()
    config["inference"] = {"num_samples": 500, "lag": 10}
    config["prediction"] = {"num_samples": 100, "lag": 10}
    path = tmp_path / "study.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def test_cli_infer_writes_samples_and_summary(tmp_path, capsys) -> None:
    """Infer query should write reward samples and a summary JSON."""

    code = run_inverse_planning_cli(
        [
            "--query",
            "infer",
            "--config",
            _fast_config(tmp_path),
            "--seed",
            "11",
            "--output-dir",
            str(tmp_path / "out"),
            "--prefix",
            "infant",
        ]
    )
    assert code == 0

    rewards_path = tmp_path / "out" / "infant_rewards.csv"
    with rewards_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 50

    summary = json.loads((tmp_path / "out" / "infant_summary.json").read_text(encoding="utf-8"))
    assert summary["n_draws"] == 50
    assert set(summary["means"]) == {"reward[reach-yellow]", "reward[reach-blue]"}
    assert "P(reward[reach-yellow] > reward[reach-blue])" in summary["dominance"]
    assert len(summary["chains"]) == 1

    output = capsys.readouterr().out
    assert "Query complete: query=infer" in output
    assert "Summary JSON:" in output


def test_cli_predict_writes_actions(tmp_path, capsys) -> None:
    """Predict query should additionally write predicted action pairs."""

    code = run_inverse_planning_cli(
        [
            "--query",
            "predict",
            "--config",
            _fast_config(tmp_path),
            "--seed",
            "3",
            "--output-dir",
            str(tmp_path),
        ]
    )
    assert code == 0
    actions_path = tmp_path / "inverse_planning_actions.csv"
    with actions_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 10
    assert {row["action_0"] for row in rows} <= {"go-left", "go-right"}
    assert (tmp_path / "inverse_planning_action_frequencies.csv").exists()
    assert "Predicted actions CSV:" in capsys.readouterr().out


def test_cli_predict_from_saved_posterior(tmp_path) -> None:
    """Prediction can reuse a reward CSV from an earlier infer run."""

    config_path = _fast_config(tmp_path)
    assert run_inverse_planning_cli(
        ["--config", config_path, "--seed", "1", "--output-dir", str(tmp_path), "--prefix", "a"]
    ) == 0
    code = run_inverse_planning_cli(
        [
            "--query",
            "predict",
            "--config",
            config_path,
            "--posterior-csv",
            str(tmp_path / "a_rewards.csv"),
            "--output-dir",
            str(tmp_path),
            "--prefix",
            "b",
        ]
    )
    assert code == 0
    assert (tmp_path / "b_actions.csv").exists()
    assert not (tmp_path / "b_rewards.csv").exists()


def test_cli_reports_invalid_config_with_exit_code(tmp_path, capsys) -> None:
    """Invalid configs should produce exit code 2 and a stderr message."""

    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"goal_states": ["reach-blue"]}), encoding="utf-8")

    code = run_inverse_planning_cli(["--config", str(path), "--output-dir", str(tmp_path)])
    assert code == 2
    assert "missing required keys" in capsys.readouterr().err


def test_cli_builtin_study_with_overrides(tmp_path) -> None:
    """Without --config the built-in study runs, shortened via --set."""

    code = run_inverse_planning_cli(
        [
            "--set",
            "inference.num_samples=200",
            "--set",
            "inference.lag=20",
            "--seed",
            "4",
            "--output-dir",
            str(tmp_path),
        ]
    )
    assert code == 0
    summary = json.loads((tmp_path / "inverse_planning_summary.json").read_text(encoding="utf-8"))
    assert summary["n_draws"] == 10


def test_cli_saved_posterior_rejects_conditioned_prediction_kernel(tmp_path, capsys) -> None:
    """Predicting from a saved posterior keeps the prediction kernel check."""

    config = infant_goals_config()
    config["prediction"] = {"num_samples": 100, "lag": 10, "kernel": "random_walk"}
    config_path = tmp_path / "study.json"
    config_path.write_text(json.dumps(config), encoding="utf-8")
    rewards_path = tmp_path / "rewards.csv"
    rewards_path.write_text(
        "draw_index,reward[reach-yellow],reward[reach-blue]\n0,0.8,0.2\n",
        encoding="utf-8",
    )

    code = run_inverse_planning_cli(
        [
            "--query",
            "predict",
            "--config",
            str(config_path),
            "--posterior-csv",
            str(rewards_path),
            "--output-dir",
            str(tmp_path),
        ]
    )
    assert code == 2
    assert "prediction.kernel must be 'prior_resample'" in capsys.readouterr().err
    assert not (tmp_path / "inverse_planning_actions.csv").exists()


def test_cli_reports_null_numeric_override_with_exit_code(tmp_path, capsys) -> None:
    """Null chain settings should be reported as invalid input, not crash."""

    code = run_inverse_planning_cli(["--set", "inference.lag=null", "--output-dir", str(tmp_path)])
    assert code == 2
    assert "config.inference.lag must be an integer" in capsys.readouterr().err
