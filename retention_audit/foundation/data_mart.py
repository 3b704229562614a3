"""Customer and month level aggregations shared by every report."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Mapping

from retention_audit.foundation.ingestion import AuditSnapshot

MONEY_PRECISION = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def month_start(day: date) -> date:
    """Truncate a date to the first day of its calendar month."""
    return day.replace(day=1)


def previous_month(month: date) -> date:
    """Return the first day of the calendar month before ``month``."""
    if month.month == 1:
        return date(month.year - 1, 12, 1)
    return date(month.year, month.month - 1, 1)


@dataclass(frozen=True)
class CustomerOrderSummary:
    """Order history summary for a customer with at least one order.

    Attributes
    ----------
    customer_id:
        Customer key
    order_count:
        Number of orders placed
    lifetime_revenue:
        Sum of ``order_amount`` across all orders (unrounded)
    first_order_date:
        Date of the earliest order
    last_order_date:
        Date of the latest order
    avg_order_value:
        ``lifetime_revenue / order_count`` rounded to cents
    """

    customer_id: int
    order_count: int
    lifetime_revenue: Decimal
    first_order_date: date
    last_order_date: date
    avg_order_value: Decimal

    def __post_init__(self) -> None:
        if self.order_count <= 0:
            raise ValueError(
                f"Order count must be positive: {self.order_count} (customer_id={self.customer_id})"
            )
        if self.first_order_date > self.last_order_date:
            raise ValueError(
                f"first_order_date after last_order_date (customer_id={self.customer_id})"
            )

    @property
    def is_repeat(self) -> bool:
        return self.order_count > 1


@dataclass(frozen=True)
class MonthlyBucket:
    """Revenue of a single customer within a calendar month."""

    month: date
    customer_id: int
    revenue: Decimal
    order_count: int


@dataclass(frozen=True)
class MonthlyRevenue:
    """Revenue across all customers within a calendar month."""

    month: date
    revenue: Decimal
    order_count: int


@dataclass(frozen=True)
class RevenueDataMart:
    """Container for the aggregation layer outputs.

    Every mapping is a read-only view; the mart is built once per run and
    shared by all reports.
    """

    summary_by_customer: Mapping[int, CustomerOrderSummary]
    monthly_revenue: tuple[MonthlyRevenue, ...]
    customer_months: tuple[MonthlyBucket, ...]
    first_order_month: Mapping[int, date]
    order_dates_by_customer: Mapping[int, tuple[date, ...]]
    active_customers_by_month: Mapping[date, frozenset[int]] = field(repr=False)

    @property
    def total_revenue(self) -> Decimal:
        return sum(
            (s.lifetime_revenue for s in self.summary_by_customer.values()),
            Decimal("0"),
        )

    @property
    def total_orders(self) -> int:
        return sum(s.order_count for s in self.summary_by_customer.values())

    def as_dict(self) -> dict[str, list[dict[str, object]]]:
        """Return JSON-serialisable representation of the mart."""

        def serialise_summary(summary: CustomerOrderSummary) -> dict[str, object]:
            return {
                "customer_id": summary.customer_id,
                "order_count": summary.order_count,
                "lifetime_revenue": str(quantize_money(summary.lifetime_revenue)),
                "first_order_date": summary.first_order_date.isoformat(),
                "last_order_date": summary.last_order_date.isoformat(),
                "avg_order_value": str(summary.avg_order_value),
            }

        return {
            "customers": [
                serialise_summary(summary)
                for summary in self.summary_by_customer.values()
            ],
            "monthly_revenue": [
                {
                    "month": bucket.month.isoformat(),
                    "revenue": str(quantize_money(bucket.revenue)),
                    "order_count": bucket.order_count,
                }
                for bucket in self.monthly_revenue
            ],
        }


class RevenueDataMartBuilder:
    """Build reusable customer and month aggregations from a snapshot."""

    def build(self, snapshot: AuditSnapshot) -> RevenueDataMart:
        grouped: dict[int, dict[str, object]] = {}
        customer_month: dict[tuple[int, date], dict[str, object]] = {}

        for order in snapshot.orders:
            bucket = grouped.setdefault(
                order.customer_id,
                {
                    "order_count": 0,
                    "revenue": Decimal("0"),
                    "dates": [],
                },
            )
            bucket["order_count"] += 1
            bucket["revenue"] += order.order_amount
            bucket["dates"].append(order.order_date)

            key = (order.customer_id, month_start(order.order_date))
            monthly = customer_month.setdefault(
                key, {"revenue": Decimal("0"), "order_count": 0}
            )
            monthly["revenue"] += order.order_amount
            monthly["order_count"] += 1

        summaries: dict[int, CustomerOrderSummary] = {}
        order_dates: dict[int, tuple[date, ...]] = {}
        first_month: dict[int, date] = {}
        for customer_id in sorted(grouped):
            payload = grouped[customer_id]
            dates = tuple(sorted(payload["dates"]))
            revenue = payload["revenue"]
            count = payload["order_count"]
            summaries[customer_id] = CustomerOrderSummary(
                customer_id=customer_id,
                order_count=count,
                lifetime_revenue=revenue,
                first_order_date=dates[0],
                last_order_date=dates[-1],
                avg_order_value=quantize_money(revenue / count),
            )
            order_dates[customer_id] = dates
            first_month[customer_id] = month_start(dates[0])

        buckets = [
            MonthlyBucket(
                month=month,
                customer_id=customer_id,
                revenue=payload["revenue"],
                order_count=payload["order_count"],
            )
            for (customer_id, month), payload in customer_month.items()
        ]
        buckets.sort(key=lambda b: (b.customer_id, b.month))

        monthly_totals: dict[date, dict[str, object]] = {}
        active: dict[date, set[int]] = {}
        for bucket in buckets:
            totals = monthly_totals.setdefault(
                bucket.month, {"revenue": Decimal("0"), "order_count": 0}
            )
            totals["revenue"] += bucket.revenue
            totals["order_count"] += bucket.order_count
            active.setdefault(bucket.month, set()).add(bucket.customer_id)

        monthly_revenue = tuple(
            MonthlyRevenue(
                month=month,
                revenue=monthly_totals[month]["revenue"],
                order_count=monthly_totals[month]["order_count"],
            )
            for month in sorted(monthly_totals)
        )

        return RevenueDataMart(
            summary_by_customer=MappingProxyType(summaries),
            monthly_revenue=monthly_revenue,
            customer_months=tuple(buckets),
            first_order_month=MappingProxyType(first_month),
            order_dates_by_customer=MappingProxyType(order_dates),
            active_customers_by_month=MappingProxyType(
                {month: frozenset(ids) for month, ids in sorted(active.items())}
            ),
        )
