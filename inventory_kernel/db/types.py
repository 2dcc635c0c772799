"""
Module: inventory_kernel.db.types
Responsibility: Column type constants and the enum column helper.
    Centralizes column definitions so every model stores codes, names,
    notes and enumerations identically.
Architecture position: Kernel > DB.  May be imported by models/.
    MUST NOT import from models/ or services/.
"""

from enum import Enum

from sqlalchemy import Enum as SAEnum, Numeric, String

# Unit cost / unit price
MONEY = Numeric(38, 9)

# SKU, transfer numbers, PO numbers
SHORT_CODE = String(50)

# Item, location and supplier names
NAME = String(200)

# Free-text notes and descriptions
LONG_TEXT = String(4000)


def enum_column(enum_cls: type[Enum], length: int = 20) -> SAEnum:
    """
    Column type for a Python enum stored by *value*.

    Uses a non-native VARCHAR enum so the stored text is the lowercase
    enum value (``"in_transit"``), identical on SQLite and PostgreSQL.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
