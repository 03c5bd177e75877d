# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/config/loader.py

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import BootstrapConfig

log = logging.getLogger("konnect_dp")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    data = yaml.safe_load(expanded) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML value must be a mapping")
    return data


def load_config(
    path: str | Path | None = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BootstrapConfig:
    """
    Build a BootstrapConfig from an optional YAML file plus CLI overrides.

    Values given on the command line win over the file, but only when they
    are non-empty, so unset options fall through to the file and then to
    the model defaults.
    """
    data: dict = {}
    if path:
        path = Path(path)
        log.debug("Loading bootstrap config from %s", path)
        data = _load_yaml(path)

    if overrides:
        _deep_merge(data, overrides)

    return BootstrapConfig.model_validate(data)
