"""Repeat purchase, churn and retention quality reports.

These reports test whether revenue growth is held back by customers who
never come back:

- Who buys more than once, and how much of revenue do they bring?
- How long between purchases?
- How many customers churn after their first order?
- What share of each month's buyers also bought in the previous month?
- Does a strong first month predict retention and lifetime value?

Window-style calculations (previous order date, previous month revenue)
are done by sorting within each customer and scanning while holding the
previous row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from itertools import groupby

from retention_audit.analyses._utils import (
    round2,
    safe_average,
    safe_percentage,
)
from retention_audit.foundation.data_mart import (
    RevenueDataMart,
    previous_month,
    quantize_money,
)


class CustomerType(str, Enum):
    REPEAT = "repeat_customer"
    ONE_TIME = "one_time_customer"


class SpendSegment(str, Enum):
    """First-month spend buckets."""

    LOW = "low_spend"
    MID = "mid_spend"
    HIGH = "high_spend"


@dataclass(frozen=True)
class RepeatCustomer:
    customer_id: int
    order_count: int


@dataclass(frozen=True)
class CustomerTypeRevenue:
    customer_type: CustomerType
    customer_count: int
    total_revenue: Decimal


@dataclass(frozen=True)
class OrderGap:
    """Average days between consecutive orders of a repeat customer."""

    customer_id: int
    avg_days_between_orders: Decimal


@dataclass(frozen=True)
class EarlyChurn:
    """Customers who stopped after a single order.

    Attributes
    ----------
    churned_after_first_purchase:
        Customers with exactly one order
    total_customers:
        Customers with at least one order
    churn_rate_pct:
        Churned share of customers; None when there are no customers
    """

    churned_after_first_purchase: int
    total_customers: int
    churn_rate_pct: Decimal | None

    def __post_init__(self) -> None:
        if self.churned_after_first_purchase > self.total_customers:
            raise ValueError(
                f"Churned customers ({self.churned_after_first_purchase}) cannot exceed "
                f"total customers ({self.total_customers})"
            )


@dataclass(frozen=True)
class MonthlyRetention:
    """Share of a month's active customers who were active the month before."""

    month: date
    active_customers: int
    retained_customers: int
    retention_rate_pct: Decimal | None


@dataclass(frozen=True)
class SpendSegmentRetention:
    """Retention and value of customers grouped by first-month spend.

    Attributes
    ----------
    spend_segment:
        First-month spend bucket
    customer_count:
        Customers in the bucket
    retained_customers:
        Customers with any order after their first order date
    retention_rate_pct:
        ``retained_customers / customer_count * 100``
    avg_lifetime_value:
        Average lifetime revenue of customers in the bucket
    """

    spend_segment: SpendSegment
    customer_count: int
    retained_customers: int
    retention_rate_pct: Decimal | None
    avg_lifetime_value: Decimal | None


@dataclass(frozen=True)
class OrderCountFunnel:
    """Customer counts by number of orders placed."""

    one_order_customers: int
    two_order_customers: int
    three_plus_order_customers: int


@dataclass(frozen=True)
class IncreasingSpender:
    """A customer whose monthly spend rose at least once.

    Attributes
    ----------
    customer_id:
        Customer key
    increases:
        Number of active-month transitions with higher revenue
    largest_increase:
        Biggest month-to-month revenue increase
    """

    customer_id: int
    increases: int
    largest_increase: Decimal


def repeat_customers(mart: RevenueDataMart) -> list[RepeatCustomer]:
    """Customers with more than one order, most orders first."""
    repeaters = [s for s in mart.summary_by_customer.values() if s.is_repeat]
    repeaters.sort(key=lambda s: (-s.order_count, s.customer_id))
    return [RepeatCustomer(s.customer_id, s.order_count) for s in repeaters]


def repeat_vs_one_time_revenue(mart: RevenueDataMart) -> list[CustomerTypeRevenue]:
    """Split revenue between repeat and one-time customers.

    The two partitions are disjoint and cover every ordering customer, so
    their revenues sum to total revenue. Empty partitions are omitted.
    """
    partitions: dict[CustomerType, list[Decimal]] = {}
    for summary in mart.summary_by_customer.values():
        customer_type = CustomerType.REPEAT if summary.is_repeat else CustomerType.ONE_TIME
        partitions.setdefault(customer_type, []).append(summary.lifetime_revenue)

    return [
        CustomerTypeRevenue(
            customer_type=customer_type,
            customer_count=len(partitions[customer_type]),
            total_revenue=quantize_money(sum(partitions[customer_type], Decimal("0"))),
        )
        for customer_type in CustomerType
        if customer_type in partitions
    ]


def average_days_between_orders(mart: RevenueDataMart) -> list[OrderGap]:
    """Average gap in days between consecutive orders, per repeat customer.

    Single-order customers have no gap and are excluded rather than
    reported as zero. Sorted by shortest average gap first.
    """
    gaps: list[OrderGap] = []
    for customer_id, dates in mart.order_dates_by_customer.items():
        if len(dates) < 2:
            continue
        intervals = [
            Decimal((current - previous).days)
            for previous, current in zip(dates, dates[1:])
        ]
        gaps.append(OrderGap(customer_id, safe_average(intervals)))
    gaps.sort(key=lambda g: (g.avg_days_between_orders, g.customer_id))
    return gaps


def early_churn_rate(mart: RevenueDataMart) -> EarlyChurn:
    """Share of customers who placed exactly one order."""
    total = len(mart.summary_by_customer)
    churned = sum(1 for s in mart.summary_by_customer.values() if s.order_count == 1)
    return EarlyChurn(
        churned_after_first_purchase=churned,
        total_customers=total,
        churn_rate_pct=safe_percentage(churned, total),
    )


def monthly_retention_rate(mart: RevenueDataMart) -> list[MonthlyRetention]:
    """Month-on-month customer retention.

    A customer active in month M is retained when they were also active in
    the calendar month immediately before M. A gap month in the series
    therefore yields zero retained customers for the following month.
    """
    rows: list[MonthlyRetention] = []
    active_by_month = mart.active_customers_by_month
    for month in sorted(active_by_month):
        active = active_by_month[month]
        prior = active_by_month.get(previous_month(month), frozenset())
        retained = len(active & prior)
        rows.append(
            MonthlyRetention(
                month=month,
                active_customers=len(active),
                retained_customers=retained,
                retention_rate_pct=safe_percentage(retained, len(active)),
            )
        )
    return rows


def classify_first_month_spend(
    spend: Decimal,
    low_threshold: Decimal = Decimal("1000"),
    high_threshold: Decimal = Decimal("3000"),
) -> SpendSegment:
    """Bucket first-month spend; both thresholds belong to the mid segment.

    >>> classify_first_month_spend(Decimal("1000"))
    <SpendSegment.MID: 'mid_spend'>
    >>> classify_first_month_spend(Decimal("3000.01"))
    <SpendSegment.HIGH: 'high_spend'>
    """
    if spend < low_threshold:
        return SpendSegment.LOW
    if spend <= high_threshold:
        return SpendSegment.MID
    return SpendSegment.HIGH


def first_month_spend_retention(
    mart: RevenueDataMart,
    low_threshold: Decimal = Decimal("1000"),
    high_threshold: Decimal = Decimal("3000"),
) -> list[SpendSegmentRetention]:
    """Retention and lifetime value by first-month spend segment.

    First-month spend is the revenue of all orders in the calendar month of
    the customer's first order. A customer is retained when they ordered on
    any date strictly after their first order date; a second order on the
    same day does not count. Segments without customers are omitted.
    """
    first_month_spend: dict[int, Decimal] = {}
    for bucket in mart.customer_months:
        if mart.first_order_month[bucket.customer_id] == bucket.month:
            first_month_spend[bucket.customer_id] = bucket.revenue

    members: dict[SpendSegment, list[int]] = {}
    for customer_id, spend in first_month_spend.items():
        segment = classify_first_month_spend(spend, low_threshold, high_threshold)
        members.setdefault(segment, []).append(customer_id)

    rows: list[SpendSegmentRetention] = []
    for segment in SpendSegment:
        customer_ids = members.get(segment)
        if not customer_ids:
            continue
        retained = 0
        for customer_id in customer_ids:
            summary = mart.summary_by_customer[customer_id]
            if summary.last_order_date > summary.first_order_date:
                retained += 1
        rows.append(
            SpendSegmentRetention(
                spend_segment=segment,
                customer_count=len(customer_ids),
                retained_customers=retained,
                retention_rate_pct=safe_percentage(retained, len(customer_ids)),
                avg_lifetime_value=safe_average(
                    [mart.summary_by_customer[c].lifetime_revenue for c in customer_ids]
                ),
            )
        )
    return rows


def order_count_funnel(mart: RevenueDataMart) -> OrderCountFunnel:
    """Drop-off between first, second and later purchases."""
    counts = [s.order_count for s in mart.summary_by_customer.values()]
    return OrderCountFunnel(
        one_order_customers=sum(1 for c in counts if c == 1),
        two_order_customers=sum(1 for c in counts if c == 2),
        three_plus_order_customers=sum(1 for c in counts if c >= 3),
    )


def increasing_spend_customers(mart: RevenueDataMart) -> list[IncreasingSpender]:
    """Customers whose revenue rose from one active month to the next.

    Months are compared in order of the customer's own active months, so a
    gap month between two purchases is skipped rather than treated as zero.
    """
    spenders: list[IncreasingSpender] = []
    # customer_months is sorted by (customer_id, month)
    for customer_id, buckets in groupby(mart.customer_months, key=lambda b: b.customer_id):
        previous: Decimal | None = None
        increases = 0
        largest = Decimal("0")
        for bucket in buckets:
            if previous is not None and bucket.revenue > previous:
                increases += 1
                largest = max(largest, bucket.revenue - previous)
            previous = bucket.revenue
        if increases:
            spenders.append(
                IncreasingSpender(
                    customer_id=customer_id,
                    increases=increases,
                    largest_increase=round2(largest),
                )
            )
    return spenders

