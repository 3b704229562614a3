"""Revenue trend and revenue mix reports.

Answers the baseline questions of the audit:
- How much revenue, how many orders, and what average order value?
- How does revenue move month to month?
- Which customers, product categories and cities drive revenue?

Category revenue is computed from order items (``price * quantity``) while
every other report uses ``order_amount``; the two views are independent
and are not expected to reconcile.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from retention_audit.analyses._utils import round2, safe_percentage, safe_ratio
from retention_audit.foundation.data_mart import (
    MonthlyRevenue,
    RevenueDataMart,
    quantize_money,
)
from retention_audit.foundation.ingestion import AuditSnapshot
from retention_audit.foundation.records import OrderItem


@dataclass(frozen=True)
class RevenueOverview:
    """Headline revenue figures.

    Attributes
    ----------
    total_revenue:
        Sum of ``order_amount`` across all orders
    total_orders:
        Number of orders
    avg_order_value:
        ``total_revenue / total_orders``; None when there are no orders
    """

    total_revenue: Decimal
    total_orders: int
    avg_order_value: Decimal | None

    def __post_init__(self) -> None:
        if self.total_orders < 0:
            raise ValueError(f"Total orders cannot be negative: {self.total_orders}")
        if self.total_revenue < 0:
            raise ValueError(f"Total revenue cannot be negative: {self.total_revenue}")


@dataclass(frozen=True)
class MonthOverMonthGrowth:
    """Revenue of a month compared with the previous reported month."""

    month: date
    revenue: Decimal
    previous_month_revenue: Decimal | None
    growth_pct: Decimal | None


@dataclass(frozen=True)
class TopCustomer:
    customer_id: int
    name: str
    total_spent: Decimal


@dataclass(frozen=True)
class CategoryRevenue:
    product_category: str
    revenue: Decimal


@dataclass(frozen=True)
class CityRevenue:
    city: str
    revenue: Decimal
    revenue_pct: Decimal | None


def summarize_revenue(mart: RevenueDataMart) -> RevenueOverview:
    """Total revenue, order count and average order value.

    >>> from retention_audit.synthetic import sample_snapshot
    >>> from retention_audit.foundation.data_mart import RevenueDataMartBuilder
    >>> overview = summarize_revenue(RevenueDataMartBuilder().build(sample_snapshot()))
    >>> overview.total_orders, overview.total_revenue
    (12, Decimal('31600.00'))
    """
    total_revenue = mart.total_revenue
    total_orders = mart.total_orders
    aov = safe_ratio(total_revenue, total_orders)
    return RevenueOverview(
        total_revenue=quantize_money(total_revenue),
        total_orders=total_orders,
        avg_order_value=round2(aov) if aov is not None else None,
    )


def monthly_revenue_trend(mart: RevenueDataMart) -> list[MonthlyRevenue]:
    """Revenue per calendar month, oldest month first."""
    return [
        MonthlyRevenue(
            month=bucket.month,
            revenue=quantize_money(bucket.revenue),
            order_count=bucket.order_count,
        )
        for bucket in mart.monthly_revenue
    ]


def calculate_month_over_month_growth(
    mart: RevenueDataMart,
) -> list[MonthOverMonthGrowth]:
    """Month-over-month revenue growth.

    Growth compares each month with the previous *reported* month (the
    previous row once months are sorted), matching a ``lag`` window over
    the monthly series. The first month has no previous value and reports
    ``growth_pct=None``; so does any month whose previous revenue is zero.
    """
    rows: list[MonthOverMonthGrowth] = []
    previous: Decimal | None = None
    for bucket in mart.monthly_revenue:
        growth = None
        if previous is not None:
            growth = safe_percentage(bucket.revenue - previous, previous)
        rows.append(
            MonthOverMonthGrowth(
                month=bucket.month,
                revenue=quantize_money(bucket.revenue),
                previous_month_revenue=(
                    quantize_money(previous) if previous is not None else None
                ),
                growth_pct=growth,
            )
        )
        previous = bucket.revenue
    return rows


def top_customers_by_spend(
    snapshot: AuditSnapshot, mart: RevenueDataMart, limit: int = 10
) -> list[TopCustomer]:
    """Highest spending customers, ties broken by ascending customer_id."""
    ranked = sorted(
        mart.summary_by_customer.values(),
        key=lambda s: (-s.lifetime_revenue, s.customer_id),
    )
    return [
        TopCustomer(
            customer_id=summary.customer_id,
            name=snapshot.customers_by_id[summary.customer_id].name,
            total_spent=quantize_money(summary.lifetime_revenue),
        )
        for summary in ranked[:limit]
    ]


def category_revenue(order_items: Sequence[OrderItem]) -> list[CategoryRevenue]:
    """Line-item revenue per product category, largest first."""
    totals: dict[str, Decimal] = {}
    for item in order_items:
        totals[item.product_category] = (
            totals.get(item.product_category, Decimal("0")) + item.line_total
        )
    return [
        CategoryRevenue(product_category=category, revenue=quantize_money(revenue))
        for category, revenue in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


def city_revenue(snapshot: AuditSnapshot, mart: RevenueDataMart) -> list[CityRevenue]:
    """Revenue per customer city and its share of total revenue.

    Only cities with at least one ordering customer appear.
    """
    totals: dict[str, Decimal] = {}
    for summary in mart.summary_by_customer.values():
        city = snapshot.customers_by_id[summary.customer_id].city
        totals[city] = totals.get(city, Decimal("0")) + summary.lifetime_revenue

    grand_total = sum(totals.values(), Decimal("0"))
    return [
        CityRevenue(
            city=city,
            revenue=quantize_money(revenue),
            revenue_pct=safe_percentage(revenue, grand_total),
        )
        for city, revenue in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    ]
