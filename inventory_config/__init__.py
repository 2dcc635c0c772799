"""
inventory_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  The returned ``EngineConfig`` is passed
    explicitly to ``build_session_factory`` and ``InventoryEngine``; there
    is no process-wide settings object.

Architecture position:
    Configuration -- sits above ``inventory_kernel`` and below
    ``inventory_services``.  The kernel MUST NEVER import from
    ``inventory_config``; ``bridges`` translates configuration into kernel
    inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- schema validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``INVENTORY_CONFIG_TRACE`` log entry with the source path and checksum.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from inventory_config.loader import load_engine_config
from inventory_config.schema import (
    DatabaseConfig,
    EngineConfig,
    NumberingConfig,
    StockPolicyConfig,
    TransferPolicyConfig,
)

_logger = logging.getLogger("inventory_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

DATABASE_URL_ENV = "INVENTORY_DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """Load the engine configuration.

    Args:
        path: Configuration file.  Defaults to ``inventory_config/sets/default.yaml``.

    The ``INVENTORY_DATABASE_URL`` environment variable, when set,
    replaces ``database.url``.
    """
    source = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = load_engine_config(source)

    override = os.environ.get(DATABASE_URL_ENV)
    if override:
        config = dataclasses.replace(
            config,
            database=dataclasses.replace(config.database, url=override),
        )

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_path": str(source),
            "checksum": config.checksum,
            "database_url_overridden": bool(override),
            "transfer_policy_enforced": config.transfer_policy.enforce,
        },
    )
    return config


__all__ = [
    "DATABASE_URL_ENV",
    "DatabaseConfig",
    "EngineConfig",
    "NumberingConfig",
    "StockPolicyConfig",
    "TransferPolicyConfig",
    "get_active_config",
    "load_engine_config",
]
