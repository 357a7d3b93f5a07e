"""
inventory_config -- single public entrypoint for service settings.

Responsibility:
    Provides the ONLY way for the API and batch layers to obtain settings,
    through ``get_settings()``.  YAML parsing and environment handling stay
    inside this package.

Architecture position:
    Configuration.  Sits above ``inventory_kernel`` and below
    ``inventory_api`` / ``inventory_batch``.  The kernel MUST NEVER import
    from ``inventory_config``; callers pass plain values (TTL, suffix,
    database URL) into kernel constructors.

Audit relevance:
    Every ``get_settings()`` call emits an ``INVENTORY_CONFIG_TRACE`` log
    entry with the settings checksum, so a running process can be tied back
    to the exact settings it used.  The database URL is never logged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from inventory_config.loader import compute_checksum, load_settings
from inventory_config.schema import InventorySettings

_logger = logging.getLogger("inventory_kernel.config")


def get_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> InventorySettings:
    """The public settings entrypoint (see ``load_settings`` for sources)."""
    settings = load_settings(path, env)
    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "checksum": compute_checksum(settings),
            "hold_ttl_hours": settings.hold_ttl_hours,
            "sweep_enabled": settings.sweep_enabled,
            "sweep_interval_seconds": settings.sweep_interval_seconds,
            "case_sku_suffix": settings.case_sku_suffix,
        },
    )
    return settings


__all__ = [
    "InventorySettings",
    "compute_checksum",
    "get_settings",
    "load_settings",
]
