"""Record definitions for the customers, orders and order items tables.

The three record types mirror the relational source tables one-to-one.
Every record is immutable once constructed; field-level constraints are
enforced on construction so downstream analyses never need to re-check
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class PaymentMethod(str, Enum):
    """Payment methods accepted on an order."""

    UPI = "UPI"
    CARD = "Card"
    WALLET = "Wallet"
    COD = "COD"


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric value to Decimal via ``str`` to avoid float artefacts.

    Raises:
        TypeError: If the value is not numeric
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float, str)):
        raise TypeError(f"Expected numeric value, got {type(value).__name__}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Numeric value must be finite, got {value!r}")
    return result


def to_date(value: Any) -> date:
    """Coerce datetimes and ISO-8601 strings to :class:`datetime.date`."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


@dataclass(frozen=True)
class Customer:
    """A customer row.

    Attributes
    ----------
    customer_id:
        Unique customer key.
    name:
        Display name.
    signup_date:
        Date the customer registered.
    city:
        Home city, used for geographic revenue splits.
    """

    customer_id: int
    name: str
    signup_date: date
    city: str

    def __post_init__(self) -> None:
        if not isinstance(self.signup_date, date):
            raise TypeError(
                f"signup_date must be a date (customer_id={self.customer_id})"
            )


@dataclass(frozen=True)
class Order:
    """An order row.

    ``order_amount`` is tracked independently of the order's line items and
    is not expected to equal the sum of ``price * quantity`` over them.
    """

    order_id: int
    customer_id: int
    order_date: date
    order_amount: Decimal
    payment_method: PaymentMethod

    def __post_init__(self) -> None:
        if not isinstance(self.order_date, date):
            raise TypeError(f"order_date must be a date (order_id={self.order_id})")
        object.__setattr__(self, "order_amount", to_decimal(self.order_amount))
        if self.order_amount < 0:
            raise ValueError(
                f"Order amount cannot be negative: {self.order_amount} (order_id={self.order_id})"
            )
        if not isinstance(self.payment_method, PaymentMethod):
            try:
                method = PaymentMethod(self.payment_method)
            except ValueError as exc:
                raise ValueError(
                    f"Unknown payment method: {self.payment_method!r} (order_id={self.order_id})"
                ) from exc
            object.__setattr__(self, "payment_method", method)


@dataclass(frozen=True)
class OrderItem:
    """A line item belonging to an order."""

    order_item_id: int
    order_id: int
    product_category: str
    quantity: int
    price: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_decimal(self.price))
        if self.quantity <= 0:
            raise ValueError(
                f"Quantity must be positive: {self.quantity} (order_item_id={self.order_item_id})"
            )
        if self.price < 0:
            raise ValueError(
                f"Price cannot be negative: {self.price} (order_item_id={self.order_item_id})"
            )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
