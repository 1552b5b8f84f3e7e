"""YAML configuration loading with environment variable resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from happypath.data.schema import ThresholdPolicy
from happypath.remember.store import InMemoryStore, JsonFileStore, KeyValueStore
from happypath.utils.mappings import DEFAULT_KEY_PREFIX

logger = logging.getLogger(__name__)

ENV_SUFFIX = "_env"


def load_config(config_path: Path) -> dict:
    """Load a YAML config file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Parsed config dict with ``*_env`` references resolved. An empty file
        yields an empty dict.
    """
    with open(config_path) as f:
        config = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")
    return resolve_env_vars(config)


def resolve_env_vars(config: dict) -> dict:
    """Resolve environment variable references in config values.

    Keys ending with '_env' are treated as env var names. When the variable is
    set, its value replaces the key without the suffix; otherwise the base key
    keeps its configured value. The '_env' keys themselves are dropped.
    Integer base values coerce the override to int.
    """
    resolved: dict[str, Any] = {}
    overrides: dict[str, str] = {}
    for key, value in config.items():
        if isinstance(value, dict):
            resolved[key] = resolve_env_vars(value)
        elif isinstance(key, str) and key.endswith(ENV_SUFFIX):
            overrides[key[: -len(ENV_SUFFIX)]] = value
        else:
            resolved[key] = value

    for base_key, env_name in overrides.items():
        env_value = os.environ.get(str(env_name))
        if env_value is None:
            continue
        current = resolved.get(base_key)
        if isinstance(current, int) and not isinstance(current, bool):
            try:
                resolved[base_key] = int(env_value)
            except ValueError:
                raise ValueError(
                    f"Environment variable {env_name} must be an integer for '{base_key}', "
                    f"got {env_value!r}"
                ) from None
        else:
            resolved[base_key] = env_value
        logger.debug(f"Config '{base_key}' overridden from ${env_name}")
    return resolved


def policy_from_config(config: dict) -> ThresholdPolicy:
    """Build the threshold policy from the ``thresholds`` section."""
    return ThresholdPolicy.from_dict(config.get("thresholds"))


def storage_settings(config: dict) -> dict[str, Any]:
    """Storage options from the ``storage`` section, with defaults filled in.

    Returns:
        Dict with ``key_prefix`` (str) and ``state_path`` (Path or None).
    """
    section = config.get("storage") or {}
    state_path = section.get("state_path")
    return {
        "key_prefix": section.get("key_prefix", DEFAULT_KEY_PREFIX),
        "state_path": Path(state_path) if state_path else None,
    }


def store_from_config(config: dict) -> KeyValueStore:
    """Open the review state store named by the ``storage`` section.

    A ``state_path`` gives a JsonFileStore at that path, so counters survive
    restarts; without one the state lives in memory only.
    """
    state_path = storage_settings(config)["state_path"]
    if state_path is None:
        logger.warning("No storage.state_path configured; review state will not persist")
        return InMemoryStore()
    return JsonFileStore(state_path)
