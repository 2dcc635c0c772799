"""
Configuration schema -- frozen dataclasses for engine configuration.

Hierarchy:
  EngineConfig            = everything an InventoryEngine needs
    DatabaseConfig        = where the store lives and how to connect
    TransferPolicyConfig  = allowed-successor table for bulk transfers
    StockPolicyConfig     = negative stock and over-receipt handling
    NumberingConfig       = document number prefixes

Every dataclass validates itself in ``__post_init__`` and raises
``ValueError`` with a message naming the offending field.
"""

from __future__ import annotations

from dataclasses import dataclass, field

_TRANSFER_STATUSES = frozenset(
    {"created", "in_transit", "delivered", "completed", "cancelled"}
)
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the store."""

    url: str
    echo: bool = False
    pool_pre_ping: bool = True
    create_schema: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url:
            raise ValueError("database.url must be a non-empty string")
        for name in ("echo", "pool_pre_ping", "create_schema"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"database.{name} must be a boolean")


@dataclass(frozen=True)
class TransferPolicyConfig:
    """
    Allowed transfer transitions.

    ``allowed`` maps a status to the statuses it may move to.  An empty
    table allows everything.  With ``enforce`` off, transitions outside
    the table are logged and carried out.
    """

    enforce: bool = False
    allowed: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.enforce, bool):
            raise ValueError("transfer_policy.enforce must be a boolean")
        for source, targets in self.allowed.items():
            unknown = {source, *targets} - _TRANSFER_STATUSES
            if unknown:
                raise ValueError(
                    f"transfer_policy.allowed references unknown status(es): "
                    f"{', '.join(sorted(unknown))}"
                )


@dataclass(frozen=True)
class StockPolicyConfig:
    """Permissive by default: stock may go negative and receipts may exceed orders."""

    allow_negative_stock: bool = True
    allow_over_receipt: bool = True

    def __post_init__(self) -> None:
        for name in ("allow_negative_stock", "allow_over_receipt"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"stock_policy.{name} must be a boolean")


@dataclass(frozen=True)
class NumberingConfig:
    transfer_prefix: str = "TRF"
    purchase_order_prefix: str = "PO"

    def __post_init__(self) -> None:
        for name in ("transfer_prefix", "purchase_order_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value or "-" in value:
                raise ValueError(
                    f"numbering.{name} must be a non-empty string without '-'"
                )


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration, passed explicitly to the engine."""

    database: DatabaseConfig
    transfer_policy: TransferPolicyConfig = field(default_factory=TransferPolicyConfig)
    stock_policy: StockPolicyConfig = field(default_factory=StockPolicyConfig)
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
    log_level: str = "INFO"
    checksum: str = ""

    def __post_init__(self) -> None:
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}, "
                f"got {self.log_level!r}"
            )
