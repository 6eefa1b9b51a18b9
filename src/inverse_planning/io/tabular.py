"""Tabular CSV/JSON I/O for sample sequences and summaries.

Sample sequences are ordered fixed-arity tuples. CSV rows keep sampling
order and carry a ``draw_index`` column so burn-in prefixes can be dropped
downstream.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Hashable, Mapping, Sequence
from pathlib import Path
from typing import Any


def write_reward_samples_csv(
    samples: Sequence[Sequence[float]],
    path: str | Path,
    *,
    goal_states: Sequence[Hashable],
) -> Path:
    """Write posterior reward tuples to CSV.

    Parameters
    ----------
    samples : Sequence[Sequence[float]]
        Reward tuples aligned with ``goal_states``.
    path : str | pathlib.Path
        Destination CSV path.
    goal_states : Sequence[Hashable]
        Goal state per tuple position; columns are ``reward[<state>]``.

    Returns
    -------
    pathlib.Path
        Output CSV path.

    Raises
    ------
    ValueError
        If no samples are provided or a tuple has the wrong arity.
    """

    columns = [f"reward[{state}]" for state in goal_states]
    rows = _indexed_rows(samples, columns=columns, convert=float)
    return _write_rows(rows, path, fieldnames=["draw_index", *columns])


def read_reward_samples_csv(
    path: str | Path,
    *,
    goal_states: Sequence[Hashable],
) -> tuple[tuple[float, ...], ...]:
    """Read reward tuples written by :func:`write_reward_samples_csv`.

    Raises
    ------
    ValueError
        If required reward columns are missing or the file has no rows.
    """

    columns = [f"reward[{state}]" for state in goal_states]
    input_path = Path(path)
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        missing = sorted(set(columns) - set(reader.fieldnames or ()))
        if missing:
            raise ValueError(f"CSV is missing required columns: {missing}")
        samples = tuple(
            tuple(float(raw[column]) for column in columns)
            for raw in reader
        )
    if not samples:
        raise ValueError(f"CSV {input_path} contains no samples")
    return samples


def write_action_samples_csv(
    predictions: Sequence[Sequence[Hashable]],
    path: str | Path,
) -> Path:
    """Write predicted action tuples to CSV with columns ``action_<i>``."""

    if not predictions:
        raise ValueError("predictions must not be empty")
    columns = [f"action_{index}" for index in range(len(predictions[0]))]
    rows = _indexed_rows(predictions, columns=columns, convert=str)
    return _write_rows(rows, path, fieldnames=["draw_index", *columns])


def write_records_csv(records: Sequence[Mapping[str, Any]], path: str | Path) -> Path:
    """Write summary records (one mapping per row) to CSV."""

    if not records:
        raise ValueError("records must not be empty")
    fieldnames = list(records[0])
    return _write_rows([dict(record) for record in records], path, fieldnames=fieldnames)


def write_samples_json(
    samples: Sequence[Sequence[Any]],
    path: str | Path,
    *,
    field_names: Sequence[str],
    metadata: Mapping[str, Any] | None = None,
) -> Path:
    """Write a sample sequence as JSON ``{"fields": [...], "samples": [[...], ...]}``."""

    payload: dict[str, Any] = {
        "fields": [str(name) for name in field_names],
        "samples": [list(sample) for sample in samples],
    }
    if metadata is not None:
        payload["metadata"] = dict(metadata)

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return output_path


def _indexed_rows(
    samples: Sequence[Sequence[Any]],
    *,
    columns: Sequence[str],
    convert: Any,
) -> list[dict[str, Any]]:
    """Convert sample tuples into CSV row mappings with a draw index."""

    if not samples:
        raise ValueError("samples must not be empty")

    rows: list[dict[str, Any]] = []
    for index, sample in enumerate(samples):
        if len(sample) != len(columns):
            raise ValueError(
                f"sample {index} has {len(sample)} values; expected {len(columns)}"
            )
        row: dict[str, Any] = {"draw_index": index}
        row.update({column: convert(value) for column, value in zip(columns, sample, strict=True)})
        rows.append(row)
    return rows


def _write_rows(rows: list[dict[str, Any]], path: str | Path, *, fieldnames: list[str]) -> Path:
    """Write row mappings to a CSV file, creating parent directories."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    return output_path


__all__ = [
    "read_reward_samples_csv",
    "write_action_samples_csv",
    "write_records_csv",
    "write_reward_samples_csv",
    "write_samples_json",
]
