"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads an engine configuration YAML file and parses it into the frozen
dataclasses of ``inventory_config.schema``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Unknown top-level sections are rejected rather than ignored.
* ``compute_checksum`` is deterministic for the same parsed document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types, unknown sections or unknown statuses -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    DatabaseConfig,
    EngineConfig,
    NumberingConfig,
    StockPolicyConfig,
    TransferPolicyConfig,
)

_SECTIONS = frozenset(
    {"database", "transfer_policy", "stock_policy", "numbering", "log_level"}
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of a parsed document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be a mapping")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    if "url" not in data:
        raise ValueError("database.url is required")
    return DatabaseConfig(
        url=data["url"],
        echo=data.get("echo", False),
        pool_pre_ping=data.get("pool_pre_ping", True),
        create_schema=data.get("create_schema", False),
    )


def parse_transfer_policy(data: dict[str, Any]) -> TransferPolicyConfig:
    allowed_raw = data.get("allowed") or {}
    if not isinstance(allowed_raw, dict):
        raise ValueError("transfer_policy.allowed must be a mapping")
    allowed: dict[str, tuple[str, ...]] = {}
    for source, targets in allowed_raw.items():
        if not isinstance(targets, list):
            raise ValueError(f"transfer_policy.allowed.{source} must be a list")
        allowed[str(source)] = tuple(str(t) for t in targets)
    return TransferPolicyConfig(
        enforce=data.get("enforce", False),
        allowed=allowed,
    )


def parse_stock_policy(data: dict[str, Any]) -> StockPolicyConfig:
    return StockPolicyConfig(
        allow_negative_stock=data.get("allow_negative_stock", True),
        allow_over_receipt=data.get("allow_over_receipt", True),
    )


def parse_numbering(data: dict[str, Any]) -> NumberingConfig:
    return NumberingConfig(
        transfer_prefix=data.get("transfer_prefix", "TRF"),
        purchase_order_prefix=data.get("purchase_order_prefix", "PO"),
    )


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """Build an ``EngineConfig`` from an already-parsed document."""
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

    log_level = data.get("log_level", "INFO")
    if not isinstance(log_level, str):
        raise ValueError("log_level must be a string")

    return EngineConfig(
        database=parse_database(_section(data, "database")),
        transfer_policy=parse_transfer_policy(_section(data, "transfer_policy")),
        stock_policy=parse_stock_policy(_section(data, "stock_policy")),
        numbering=parse_numbering(_section(data, "numbering")),
        log_level=log_level.upper(),
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path | str) -> EngineConfig:
    """Load and validate an engine configuration file."""
    return parse_engine_config(load_yaml_file(Path(path)))
