"""Tests for record validation."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from retention_audit.foundation.records import (
    Customer,
    Order,
    OrderItem,
    PaymentMethod,
    to_date,
    to_decimal,
)


class TestOrder:
    """Test Order construction and validation."""

    def test_payment_method_string_is_coerced(self):
        order = Order(1, 1, date(2023, 1, 1), Decimal("10"), "Wallet")
        assert order.payment_method is PaymentMethod.WALLET

    def test_amount_is_coerced_to_decimal(self):
        order = Order(1, 1, date(2023, 1, 1), 10.1, PaymentMethod.UPI)
        assert order.order_amount == Decimal("10.1")

    def test_negative_amount_raises_error(self):
        with pytest.raises(ValueError, match="Order amount cannot be negative"):
            Order(1, 1, date(2023, 1, 1), Decimal("-1"), PaymentMethod.UPI)

    @pytest.mark.parametrize("amount", ["Infinity", "-inf", Decimal("NaN"), Decimal("Infinity")])
    def test_non_finite_amount_raises_error(self, amount):
        with pytest.raises(ValueError, match="must be finite"):
            Order(1, 1, date(2023, 1, 1), amount, PaymentMethod.UPI)

    def test_non_numeric_amount_raises_error(self):
        with pytest.raises(ValueError, match="Invalid numeric value"):
            Order(1, 1, date(2023, 1, 1), "abc", PaymentMethod.UPI)

    def test_unknown_payment_method_raises_error(self):
        with pytest.raises(ValueError, match="Unknown payment method"):
            Order(1, 1, date(2023, 1, 1), Decimal("1"), "Cheque")

    def test_non_date_order_date_raises_error(self):
        with pytest.raises(TypeError, match="order_date must be a date"):
            Order(1, 1, "2023-01-01", Decimal("1"), PaymentMethod.UPI)

    def test_orders_are_immutable(self):
        order = Order(1, 1, date(2023, 1, 1), Decimal("1"), PaymentMethod.UPI)
        with pytest.raises(AttributeError):
            order.order_amount = Decimal("2")


class TestOrderItem:
    """Test OrderItem validation."""

    def test_line_total(self):
        item = OrderItem(1, 1, "Fashion", 3, Decimal("900"))
        assert item.line_total == Decimal("2700")

    def test_zero_quantity_raises_error(self):
        with pytest.raises(ValueError, match="Quantity must be positive"):
            OrderItem(1, 1, "Fashion", 0, Decimal("900"))

    def test_nan_price_raises_error(self):
        with pytest.raises(ValueError, match="must be finite"):
            OrderItem(1, 1, "Fashion", 1, Decimal("NaN"))

    def test_negative_price_raises_error(self):
        with pytest.raises(ValueError, match="Price cannot be negative"):
            OrderItem(1, 1, "Fashion", 1, Decimal("-0.01"))


def test_customer_requires_date_signup():
    with pytest.raises(TypeError, match="signup_date must be a date"):
        Customer(1, "Amit", "2023-01-10", "Delhi")


def test_conversion_helpers():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_date(datetime(2023, 5, 1, 10, 30)) == date(2023, 5, 1)
    assert to_date("2023-05-01T00:00:00") == date(2023, 5, 1)
    with pytest.raises(TypeError):
        to_decimal(True)
