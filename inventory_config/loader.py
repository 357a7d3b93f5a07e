"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads an optional YAML settings file, applies ``INVENTORY_*`` environment
overrides and parses the result into a frozen ``InventorySettings``.

Invariants enforced
-------------------
* Unknown keys in the YAML file raise ``ValueError``; typos never fall back
  to defaults silently.
* Every value is coerced to the field's type; a bad value raises
  ``ValueError`` naming the offending key.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective settings.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid value  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Mapping
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import InventorySettings

ENV_PREFIX = "INVENTORY_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})

_FIELD_TYPES: dict[str, str] = {f.name: str(f.type) for f in fields(InventorySettings)}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _coerce(key: str, value: Any) -> Any:
    field_type = _FIELD_TYPES[key]
    if value is None:
        if "None" in field_type:
            return None
        raise ValueError(f"{key}: must not be null")

    if field_type == "bool":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"{key}: expected a boolean, got {value!r}")

    if field_type == "int":
        if isinstance(value, bool):
            raise ValueError(f"{key}: expected an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{key}: expected an integer, got {value!r}") from exc

    text = str(value)
    if "None" in field_type and text == "":
        return None
    return text


def parse_settings(data: Mapping[str, Any]) -> InventorySettings:
    """Build settings from a flat mapping of field name -> raw value."""
    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ValueError(f"Unknown settings key(s): {', '.join(unknown)}")
    return InventorySettings(**{key: _coerce(key, value) for key, value in data.items()})


def env_overrides(env: Mapping[str, str]) -> dict[str, str]:
    """
    Collect overrides from the environment.

    ``INVENTORY_<FIELD>`` sets ``<field>``.  A bare ``DATABASE_URL`` is also
    honoured for ``database_url``, with ``INVENTORY_DATABASE_URL`` winning.
    """
    overrides: dict[str, str] = {}
    if env.get("DATABASE_URL"):
        overrides["database_url"] = env["DATABASE_URL"]
    for name in _FIELD_TYPES:
        key = f"{ENV_PREFIX}{name.upper()}"
        if key in env:
            overrides[name] = env[key]
    return overrides


def load_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> InventorySettings:
    """
    Effective settings: defaults, then the YAML file, then the environment.

    ``path`` defaults to ``$INVENTORY_CONFIG`` when set.
    """
    env = os.environ if env is None else env
    if path is None and env.get(f"{ENV_PREFIX}CONFIG"):
        path = env[f"{ENV_PREFIX}CONFIG"]

    data: dict[str, Any] = {}
    if path is not None:
        data.update(load_yaml_file(Path(path)))
    data.update(env_overrides(env))
    return parse_settings(data)


def compute_checksum(settings: InventorySettings) -> str:
    """SHA-256 of the canonical JSON serialization of the settings."""
    canonical = json.dumps(asdict(settings), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
