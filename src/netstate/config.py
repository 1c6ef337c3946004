"""
Configuration file support.

Analysis parameters can be kept in a YAML or JSON file:

    method: bere
    inference:
      regularization: L2
      weight: 0.5
      penalty: 10
    transition:
      ridge: 0.0
      remove_diagonal: true
    null:
      n_permutations: 200
      randomize: within-gene
      seed: 7
      n_jobs: 4

Keyword overrides passed to build_config() take precedence over file values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from netstate.core.errors import InvalidOptionError
from netstate.inference.options import InferenceMethod, InferenceOptions
from netstate.stats.null_ensemble import NullOptions
from netstate.stats.transition import TransitionOptions

__all__ = [
    'AnalysisConfig',
    'load_config',
    'build_config',
]

_SECTIONS = ("method", "inference", "transition", "null")


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Complete configuration for a transition analysis.

    ``null`` is None when no null ensemble is requested.
    """
    method: InferenceMethod = InferenceMethod.BERE
    inference: InferenceOptions = field(default_factory=InferenceOptions)
    transition: TransitionOptions = field(default_factory=TransitionOptions)
    null: Optional[NullOptions] = None


_READERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Read an analysis configuration mapping from a YAML or JSON file.

    An empty file yields an empty mapping (all defaults).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the suffix is not .yaml/.yml/.json, the file does not
            parse, or its top level is not a mapping

    Examples:
        >>> build_config(load_config(Path("analysis.yaml"))).inference.weight
        0.5
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    reader = _READERS.get(config_path.suffix.lower())
    if reader is None:
        raise ValueError(
            f"Unsupported config format: {config_path.suffix or '(none)'}. "
            f"Expected one of: {', '.join(_READERS)}"
        )

    with config_path.open() as handle:
        try:
            config = reader(handle)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Could not parse {config_path.name}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(
            f"{config_path.name} must contain a mapping at top level, got {type(config).__name__}"
        )
    return config


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise InvalidOptionError(f"Config section '{name}' must be a mapping, got {type(value).__name__}")
    return dict(value)


def build_config(
    config: Optional[Dict[str, Any]] = None,
    **overrides: Dict[str, Any],
) -> AnalysisConfig:
    """
    Turn a configuration mapping into validated option objects.

    Parameters:
        config: Mapping as returned by load_config() (may be None)
        **overrides: Per-section overrides, e.g. ``inference={"weight": 0.2}``
            or ``method="cd"``. Section values are merged key by key.

    Returns:
        AnalysisConfig

    Raises:
        InvalidOptionError: For unknown sections, unknown keys or invalid values
    """
    config = dict(config or {})
    unknown = sorted(set(config) - set(_SECTIONS))
    if unknown:
        raise InvalidOptionError(f"Unknown config section(s): {', '.join(unknown)}")
    unknown = sorted(set(overrides) - set(_SECTIONS))
    if unknown:
        raise InvalidOptionError(f"Unknown override section(s): {', '.join(unknown)}")

    method = overrides.get("method", config.get("method", InferenceMethod.BERE.value))

    sections = {}
    for name in ("inference", "transition", "null"):
        merged = _section(config, name)
        merged.update(overrides.get(name) or {})
        sections[name] = merged

    has_null = "null" in config or "null" in overrides
    return AnalysisConfig(
        method=InferenceMethod.parse(method),
        inference=InferenceOptions.from_dict(sections["inference"]),
        transition=TransitionOptions.from_dict(sections["transition"]),
        null=NullOptions.from_dict(sections["null"]) if has_null else None,
    )
