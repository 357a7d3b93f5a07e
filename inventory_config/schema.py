"""
InventorySettings schema.

The runtime settings of the inventory service as one frozen dataclass.
YAML files and environment variables are parsed into it by the loader;
everything downstream receives the instance, never the raw sources.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

DEFAULT_DATABASE_URL = "sqlite:///./inventory.db"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class InventorySettings:
    """Validated runtime settings."""

    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    hold_ttl_hours: int = 24
    sweep_enabled: bool = True
    sweep_interval_seconds: int = 300
    sweep_batch_limit: int = 500
    case_sku_suffix: str = "-BX"
    default_org_id: str | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database_url: must not be empty")
        if self.hold_ttl_hours <= 0:
            raise ValueError(f"hold_ttl_hours: must be positive, got {self.hold_ttl_hours}")
        if self.sweep_interval_seconds <= 0:
            raise ValueError(
                f"sweep_interval_seconds: must be positive, got {self.sweep_interval_seconds}"
            )
        if self.sweep_batch_limit <= 0:
            raise ValueError(
                f"sweep_batch_limit: must be positive, got {self.sweep_batch_limit}"
            )
        if not self.case_sku_suffix:
            raise ValueError("case_sku_suffix: must not be empty")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level: unknown level {self.log_level!r}")

    @property
    def hold_ttl(self) -> timedelta:
        return timedelta(hours=self.hold_ttl_hours)

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())
