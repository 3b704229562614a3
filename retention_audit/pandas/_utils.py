"""Shared utilities for pandas conversion operations."""

from decimal import Decimal
from enum import Enum
from typing import Any

from retention_audit.foundation.records import to_decimal


def decimal_to_float(value: Decimal) -> float:
    """Convert Decimal to float for pandas compatibility."""
    return float(value)


def to_cell(value: Any) -> Any:
    """Convert a report field into a DataFrame-friendly value.

    Decimals become floats, enums their values; None stays None so pandas
    renders it as a missing value.
    """
    if isinstance(value, Decimal):
        return decimal_to_float(value)
    if isinstance(value, Enum):
        return value.value
    return value


def parse_decimal(value: Any) -> Decimal:
    """Parse a CSV cell into Decimal without float rounding artefacts.

    Raises:
        ValueError: If the cell is empty, not numeric, or not finite
    """
    text = str(value).strip()
    if not text:
        raise ValueError("Empty numeric value")
    return to_decimal(text)
