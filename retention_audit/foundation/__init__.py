"""Foundational building blocks for the revenue and retention audit.

This package exposes the record definitions for the customers, orders and
order items tables, the ingestion layer that freezes them into an audit
snapshot, and the data mart of customer and month level aggregations that
every report builds on.
"""

from .data_mart import (
    CustomerOrderSummary,
    MonthlyBucket,
    MonthlyRevenue,
    RevenueDataMart,
    RevenueDataMartBuilder,
    month_start,
)
from .ingestion import (
    AuditSnapshot,
    DataSource,
    DuplicateKeyError,
    InMemorySource,
    ReferentialIntegrityError,
    load_snapshot,
)
from .records import Customer, Order, OrderItem, PaymentMethod

__all__ = [
    "AuditSnapshot",
    "Customer",
    "CustomerOrderSummary",
    "DataSource",
    "DuplicateKeyError",
    "InMemorySource",
    "MonthlyBucket",
    "MonthlyRevenue",
    "Order",
    "OrderItem",
    "PaymentMethod",
    "ReferentialIntegrityError",
    "RevenueDataMart",
    "RevenueDataMartBuilder",
    "load_snapshot",
    "month_start",
]
