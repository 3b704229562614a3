"""Shared fixtures for retention audit tests."""

from datetime import date
from decimal import Decimal

import pytest

from retention_audit.foundation.data_mart import RevenueDataMartBuilder
from retention_audit.foundation.ingestion import AuditSnapshot
from retention_audit.foundation.records import Customer, Order
from retention_audit.synthetic import sample_snapshot


def make_snapshot(order_rows, customer_ids=None, order_items=()):
    """Build a snapshot from ``(order_id, customer_id, order_date, amount)`` tuples."""
    ids = set(customer_ids or []) | {row[1] for row in order_rows}
    customers = [
        Customer(cid, f"Customer_{cid}", date(2023, 1, 1), "Delhi") for cid in sorted(ids)
    ]
    orders = [
        Order(order_id, customer_id, order_date, Decimal(str(amount)), "UPI")
        for order_id, customer_id, order_date, amount in order_rows
    ]
    return AuditSnapshot.from_records(customers, orders, order_items)


def make_mart(order_rows, customer_ids=None):
    return RevenueDataMartBuilder().build(make_snapshot(order_rows, customer_ids))


@pytest.fixture
def snapshot():
    return sample_snapshot()


@pytest.fixture
def mart(snapshot):
    return RevenueDataMartBuilder().build(snapshot)


@pytest.fixture
def empty_mart():
    return make_mart([])


@pytest.fixture
def two_customer_mart():
    """Customer 1 orders in Jan and Feb, customer 2 once in Jan."""
    return make_mart(
        [
            (1, 1, date(2023, 1, 10), 100),
            (2, 1, date(2023, 2, 10), 200),
            (3, 2, date(2023, 1, 20), 50),
        ]
    )
