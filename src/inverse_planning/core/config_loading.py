"""Load declarative study configuration files and apply overrides.

Study tables (scenarios, priors, chain settings) are stored as JSON or YAML
mappings. Individual entries can be replaced from the command line with
dotted ``key.path=value`` overrides, e.g. ``inference.num_samples=500``.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import IO, Any

SUPPORTED_CONFIG_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")


def _read_json(handle: IO[str]) -> Any:
    return json.load(handle)


def _read_yaml(handle: IO[str]) -> Any:
    try:
        import yaml
    except ImportError as exc:  # pragma: no cover - exercised only without pyyaml
        raise ImportError(
            "YAML study configs require PyYAML. Install with `pip install pyyaml`."
        ) from exc
    return yaml.safe_load(handle)


_READERS: dict[str, Callable[[IO[str]], Any]] = {
    ".json": _read_json,
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
}


def load_config_mapping(path: str | Path) -> dict[str, Any]:
    """Load one study config file whose root is an object mapping.

    Parameters
    ----------
    path : str | pathlib.Path
        Config file path with a ``.json``, ``.yaml`` or ``.yml`` suffix.

    Returns
    -------
    dict[str, Any]
        Parsed config mapping.

    Raises
    ------
    ValueError
        If the suffix is unsupported or the root is not a mapping.
    ImportError
        If a YAML file is given and PyYAML is not installed.
    """

    config_path = Path(path)
    reader = _READERS.get(config_path.suffix.lower())
    if reader is None:
        raise ValueError(
            f"unsupported config file extension {config_path.suffix.lower()!r}; "
            f"expected one of {', '.join(SUPPORTED_CONFIG_SUFFIXES)}"
        )

    with config_path.open("r", encoding="utf-8") as handle:
        raw = reader(handle)
    if not isinstance(raw, dict):
        raise ValueError("config root must be a JSON/YAML object")
    return raw


def apply_config_overrides(
    config: Mapping[str, Any],
    overrides: Sequence[str],
) -> dict[str, Any]:
    """Return a copy of ``config`` with dotted ``key.path=value`` overrides applied.

    Values are decoded as JSON when possible (``500``, ``0.1``, ``null``,
    ``["a"]``) and kept as plain strings otherwise. Intermediate mappings are
    created as needed.

    Raises
    ------
    ValueError
        If an override is not ``key=value`` or a path crosses a non-mapping.
    """

    updated = copy.deepcopy(dict(config))
    for override in overrides:
        key_path, separator, raw_value = override.partition("=")
        keys = [part.strip() for part in key_path.split(".")]
        if not separator or not all(keys):
            raise ValueError(f"config override must look like 'key.path=value', got {override!r}")

        node: dict[str, Any] = updated
        for depth, key in enumerate(keys[:-1]):
            child = node.setdefault(key, {})
            if not isinstance(child, dict):
                prefix = ".".join(keys[: depth + 1])
                raise ValueError(f"config override {override!r} crosses non-object {prefix!r}")
            node = child
        node[keys[-1]] = _decode_override_value(raw_value.strip())
    return updated


def _decode_override_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


__all__ = ["SUPPORTED_CONFIG_SUFFIXES", "apply_config_overrides", "load_config_mapping"]
