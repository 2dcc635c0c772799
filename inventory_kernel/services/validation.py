"""
Request validation shared by the write services.

Every check here is pure: it runs before the service touches the store,
so a rejected request never opens a transaction.
"""

from typing import Any

from inventory_kernel.exceptions import InvalidQuantityError, MissingSelectionError


def require_selection(field: str, value: Any) -> None:
    if value is None:
        raise MissingSelectionError(field)


def require_positive(field: str, value: int) -> None:
    if value is None or value <= 0:
        raise InvalidQuantityError(field, value, "must be greater than zero")


def require_nonzero(field: str, value: int) -> None:
    if value is None or value == 0:
        raise InvalidQuantityError(field, value, "must not be zero")


def require_non_negative(field: str, value: int) -> None:
    if value is None or value < 0:
        raise InvalidQuantityError(field, value, "must not be negative")
