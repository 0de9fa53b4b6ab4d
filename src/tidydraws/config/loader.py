"""Build a TidyConfig from YAML files and command-line overrides.

A config file holds up to three sections (``draws``, ``summary``,
``plot``). Files are applied in order, key by key within each section, so
a later file only needs the keys it changes; command-line overrides are
applied last. ``$VAR`` / ``${VAR}`` in variable specs and colors are
expanded from the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from tidydraws.config.schema import TidyConfig

SECTIONS = tuple(TidyConfig.model_fields)


def _read_sections(path: str | Path) -> dict[str, dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a mapping of sections, got {type(data).__name__}")

    unknown = sorted(set(data) - set(SECTIONS))
    if unknown:
        raise ValueError(f"{path}: unknown section(s) {unknown}; expected {list(SECTIONS)}")
    for section, values in data.items():
        if not isinstance(values, Mapping):
            raise ValueError(f"{path}: section '{section}' must be a mapping")
    return {section: dict(values) for section, values in data.items()}


def _expand(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand(v) for v in value]
    return value


def load_config(
    paths: str | Path | list[str | Path] = (),
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> TidyConfig:
    """Load and validate a TidyConfig.

    Args:
        paths: One YAML file or a list of them; later files win.
        overrides: Per-section values applied after the files, e.g.
            ``{"summary": {"point": "mean"}}``. None values are skipped,
            so unset command-line options leave the files' values alone.

    Returns:
        Validated config. Every variable spec has been parsed.

    Raises:
        ValueError: If a file is not a mapping of known sections.
        pydantic.ValidationError: If a value is invalid (e.g. a probability
            outside (0, 1) or a malformed variable spec).
    """
    path_list = [paths] if isinstance(paths, (str, Path)) else list(paths)

    merged: dict[str, dict[str, Any]] = {}
    for path in path_list:
        for section, values in _read_sections(path).items():
            merged.setdefault(section, {}).update(values)

    for section, values in (overrides or {}).items():
        merged.setdefault(section, {}).update({k: v for k, v in values.items() if v is not None})

    expanded = {
        section: {key: _expand(value) for key, value in values.items()}
        for section, values in merged.items()
    }
    return TidyConfig.model_validate(expanded)
