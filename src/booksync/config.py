"""
booksync configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

_TRUTHY = ("1", "true", "yes")


class StoreConfig(BaseModel):
    """Which ledger store backs the reconciler."""

    type: str = Field(default="memory", description="Store type: memory, sql, or a dotted class path")
    options: dict[str, Any] = Field(default_factory=dict)


class ReconcilerConfig(BaseModel):
    """Balance reconciliation behaviour."""

    fail_fast: bool = Field(
        default=False,
        description="Abort refresh_all_balances on the first failing account",
    )


class StatusConfig(BaseModel):
    """Document status classification guards."""

    reject_over_receipt: bool = Field(
        default=True,
        description="Raise ValidationError when a line receives more than was ordered",
    )
    warn_on_overpayment: bool = Field(default=True, description="Log payments above the document total")


class BookSyncConfig(BaseModel):
    """Root configuration for booksync."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    reconciler: ReconcilerConfig = Field(default_factory=ReconcilerConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)

    log_level: str = Field(default="WARNING")
    currency: str = Field(default="USD")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> BookSyncConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_db = os.environ.get("BOOKSYNC_DATABASE_URL")
        env_fail_fast = os.environ.get("BOOKSYNC_FAIL_FAST")
        env_level = os.environ.get("BOOKSYNC_LOG_LEVEL")

        if env_db:
            store = data.get("store", {})
            store["type"] = "sql"
            options = store.get("options", {})
            options["connection_string"] = env_db
            store["options"] = options
            data["store"] = store

        if env_fail_fast is not None:
            reconciler = data.get("reconciler", {})
            reconciler["fail_fast"] = env_fail_fast.lower() in _TRUTHY
            data["reconciler"] = reconciler

        if env_level:
            data["log_level"] = env_level

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
