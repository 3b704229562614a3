"""Ingestion of customers, orders and order items into an audit snapshot.

The snapshot is the single immutable input every downstream aggregation
and report reads from. Ingestion is eager: the three tables are loaded
once, keys and foreign keys are validated, and the result is frozen.

Quick Start
-----------
>>> from datetime import date
>>> from decimal import Decimal
>>> from retention_audit.foundation.records import Customer, Order
>>> from retention_audit.foundation.ingestion import InMemorySource, load_snapshot
>>> source = InMemorySource(
...     customers=[Customer(1, "Amit", date(2023, 1, 10), "Delhi")],
...     orders=[Order(101, 1, date(2023, 1, 15), Decimal("2500"), "UPI")],
... )
>>> snapshot = load_snapshot(source)
>>> len(snapshot.orders)
1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Protocol, Sequence

from retention_audit.foundation.records import Customer, Order, OrderItem

logger = logging.getLogger(__name__)


class ReferentialIntegrityError(ValueError):
    """A row references a parent key that does not exist."""

    def __init__(self, table: str, row_key: int, parent_table: str, parent_key: int):
        self.table = table
        self.row_key = row_key
        self.parent_table = parent_table
        self.parent_key = parent_key
        super().__init__(
            f"{table} row {row_key} references missing {parent_table} key {parent_key}"
        )


class DuplicateKeyError(ValueError):
    """A primary key appears more than once within a table."""

    def __init__(self, table: str, key: int):
        self.table = table
        self.key = key
        super().__init__(f"Duplicate key {key} in {table}")


class DataSource(Protocol):
    """Anything able to produce the three source tables."""

    def load_customers(self) -> Iterable[Customer]: ...

    def load_orders(self) -> Iterable[Order]: ...

    def load_order_items(self) -> Iterable[OrderItem]: ...


@dataclass(frozen=True)
class InMemorySource:
    """Data source backed by already-materialised record sequences."""

    customers: Sequence[Customer] = ()
    orders: Sequence[Order] = ()
    order_items: Sequence[OrderItem] = ()

    def load_customers(self) -> Iterable[Customer]:
        return self.customers

    def load_orders(self) -> Iterable[Order]:
        return self.orders

    def load_order_items(self) -> Iterable[OrderItem]:
        return self.order_items


@dataclass(frozen=True)
class AuditSnapshot:
    """Read-only snapshot of the three tables for a single report run.

    Attributes
    ----------
    customers:
        Customers ordered by ``customer_id``.
    orders:
        Orders ordered by ``(order_date, order_id)``.
    order_items:
        Order items ordered by ``order_item_id``.
    customers_by_id:
        Read-only lookup of customers by key, derived from ``customers``.

    Build snapshots with :meth:`from_records`, which validates keys and
    foreign keys; direct construction only derives the lookup.
    """

    customers: tuple[Customer, ...]
    orders: tuple[Order, ...]
    order_items: tuple[OrderItem, ...]
    customers_by_id: Mapping[int, Customer] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "customers_by_id",
            MappingProxyType({c.customer_id: c for c in self.customers}),
        )

    @classmethod
    def from_records(
        cls,
        customers: Iterable[Customer],
        orders: Iterable[Order],
        order_items: Iterable[OrderItem] = (),
    ) -> AuditSnapshot:
        """Validate the three tables and freeze them into a snapshot.

        Raises
        ------
        DuplicateKeyError
            If a primary key repeats within a table.
        ReferentialIntegrityError
            If an order references an unknown customer or an order item
            references an unknown order. Orphans are rejected, never dropped.
        """
        customer_index: dict[int, Customer] = {}
        for customer in customers:
            if customer.customer_id in customer_index:
                raise DuplicateKeyError("customers", customer.customer_id)
            customer_index[customer.customer_id] = customer

        order_ids: set[int] = set()
        order_rows: list[Order] = []
        for order in orders:
            if order.order_id in order_ids:
                raise DuplicateKeyError("orders", order.order_id)
            if order.customer_id not in customer_index:
                raise ReferentialIntegrityError(
                    "orders", order.order_id, "customers", order.customer_id
                )
            order_ids.add(order.order_id)
            order_rows.append(order)

        item_ids: set[int] = set()
        item_rows: list[OrderItem] = []
        for item in order_items:
            if item.order_item_id in item_ids:
                raise DuplicateKeyError("order_items", item.order_item_id)
            if item.order_id not in order_ids:
                raise ReferentialIntegrityError(
                    "order_items", item.order_item_id, "orders", item.order_id
                )
            item_ids.add(item.order_item_id)
            item_rows.append(item)

        ordered_customers = tuple(sorted(customer_index.values(), key=lambda c: c.customer_id))
        return cls(
            customers=ordered_customers,
            orders=tuple(sorted(order_rows, key=lambda o: (o.order_date, o.order_id))),
            order_items=tuple(sorted(item_rows, key=lambda i: i.order_item_id)),
        )

    @property
    def is_empty(self) -> bool:
        return not self.orders


def load_snapshot(source: DataSource) -> AuditSnapshot:
    """Eagerly load every table from ``source`` and build a snapshot.

    Integrity errors propagate to the caller and abort the run.
    """
    customers = list(source.load_customers())
    orders = list(source.load_orders())
    order_items = list(source.load_order_items())
    logger.info(
        f"Loaded {len(customers)} customers, {len(orders)} orders, "
        f"{len(order_items)} order items"
    )
    return AuditSnapshot.from_records(customers, orders, order_items)
