from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .schema import Settings

DEFAULT_CONFIG_PATH = Path("config/default.yaml")
OVERRIDES_ENV_VAR = "DIALOGUE_TUTOR_CONFIG_OVERRIDES"


def read_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping; a blank file yields {} and any other top-level type is rejected."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid configuration: {path} must hold a mapping, got {type(data).__name__}")
    return data


def merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge `override` into a copy of `base`; neither input is modified."""
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = merge_dicts(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def env_overrides() -> Dict[str, Any]:
    """Parse the JSON object in DIALOGUE_TUTOR_CONFIG_OVERRIDES, or {} when unset."""
    raw = os.getenv(OVERRIDES_ENV_VAR)
    if not raw:
        return {}
    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as err:
        raise ValueError(f"Failed to parse {OVERRIDES_ENV_VAR} env var as JSON.") from err
    if not isinstance(overrides, dict):
        raise ValueError(f"{OVERRIDES_ENV_VAR} must be a JSON object, e.g. {{\"navigation\": {{\"cooldown_ms\": 150}}}}")
    return overrides


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Build validated Settings for one course player.

    An explicit `config_path` must exist. Without one, `config/default.yaml` is used when
    present and the built-in defaults otherwise. Environment overrides are merged last, so
    a single knob such as the navigation cooldown can be changed without editing the file.
    """
    if config_path is not None:
        data = read_yaml(Path(config_path))
    elif DEFAULT_CONFIG_PATH.exists():
        data = read_yaml(DEFAULT_CONFIG_PATH)
    else:
        data = {}

    data = merge_dicts(data, env_overrides())
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
