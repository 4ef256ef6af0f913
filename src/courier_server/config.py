"""Configuration loading utilities for the courier server.

This module handles layered configuration:
1. Explicit path argument (highest precedence)
2. Environment variable COURIER_CONFIG
3. Fallback to "config/default.yaml"

It also supports optional overrides from environment variables with prefix
``COURIER__`` (e.g., COURIER__REPOSITORY__DATA_DIR=/tmp/content).
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "server": {"cors_origins": ["*"]},
    "repository": {"data_dir": "data"},
    "messaging": {
        "transports": ["chat"],
        "store_root": "/_user/message",
        "profiles_root": "/profiles",
    },
    "tags": {"root": "/tags", "max_depth": 10},
    "logging": {"level": "INFO"},
}


def _coerce(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides with prefix COURIER__."""
    prefix = "COURIER__"
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        # e.g., COURIER__TAGS__MAX_DEPTH -> cfg["tags"]["max_depth"]
        parts = key[len(prefix):].lower().split("__")
        sub = cfg
        for p in parts[:-1]:
            if p not in sub or not isinstance(sub[p], dict):
                sub[p] = {}
            sub = sub[p]
        sub[parts[-1]] = _coerce(value)
    return cfg


def _merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in over.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load YAML configuration for the courier server.

    Parameters
    ----------
    path : str | None
        Optional path to a configuration file. If not provided, the
        environment variable ``COURIER_CONFIG`` is consulted. As a
        last resort ``config/default.yaml`` is used.

    Returns
    -------
    Dict[str, Any]
        File values layered over :data:`DEFAULTS`, with environment
        overrides applied.
    """
    if path is None:
        path = os.environ.get("COURIER_CONFIG", "config/default.yaml")

    path_obj = Path(path)
    if not path_obj.exists():
        LOGGER.warning("Config file not found at %s. Using defaults.", path_obj)
        return _apply_env_overrides(copy.deepcopy(DEFAULTS))

    with path_obj.open("r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to parse config file {path_obj}: {e}")

    if not isinstance(loaded, dict):
        raise RuntimeError(f"Invalid config format in {path_obj}, expected dict.")

    return _apply_env_overrides(_merge(DEFAULTS, loaded))
