"""Customer value reports: lifetime value, concentration, risk and ROI.

Lifetime value here is historical: the total ``order_amount`` a customer
has generated so far, not a model-based forecast.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from retention_audit.analyses._utils import round2, safe_average, safe_percentage
from retention_audit.foundation.data_mart import (
    CustomerOrderSummary,
    RevenueDataMart,
    quantize_money,
)

logger = logging.getLogger(__name__)

# Default number of top-ranked customers for the concentration check
DEFAULT_CONCENTRATION_TOP_N = 10

# Default share of the customer base assumed to become repeat customers
DEFAULT_RETENTION_UPLIFT_RATE = Decimal("0.05")

# Default inactivity after which a high-value customer counts as at risk
DEFAULT_INACTIVITY_DAYS = 60


@dataclass(frozen=True)
class CustomerLifetimeValue:
    customer_id: int
    total_orders: int
    avg_order_value: Decimal
    lifetime_value: Decimal


@dataclass(frozen=True)
class RetentionQuality:
    """Average lifetime revenue of retained versus one-time customers."""

    customer_type: str
    customer_count: int
    avg_lifetime_revenue: Decimal | None


@dataclass(frozen=True)
class RevenueConcentration:
    """Share of revenue held by the top-ranked customers.

    Attributes
    ----------
    top_n:
        Number of ranks considered
    top_revenue:
        Revenue of the top ``top_n`` customers
    total_revenue:
        Revenue across all customers
    top_revenue_pct:
        ``top_revenue / total_revenue * 100``; None when total revenue is zero
    """

    top_n: int
    top_revenue: Decimal
    total_revenue: Decimal
    top_revenue_pct: Decimal | None

    def __post_init__(self) -> None:
        """Validate concentration metrics."""
        if self.top_revenue > self.total_revenue:
            raise ValueError(
                f"Top revenue ({self.top_revenue}) cannot exceed total revenue ({self.total_revenue})"
            )
        if self.top_revenue_pct is not None and not 0 <= self.top_revenue_pct <= 100:
            raise ValueError(
                f"Top revenue percentage must be 0-100: {self.top_revenue_pct}"
            )


@dataclass(frozen=True)
class AtRiskCustomer:
    customer_id: int
    lifetime_revenue: Decimal
    last_order_date: date
    days_since_last_order: int


@dataclass(frozen=True)
class RetentionROI:
    """Projected revenue uplift from converting more customers into repeaters.

    Attributes
    ----------
    retained_customers:
        Customers with more than one order
    total_customers:
        Customers with at least one order
    current_retention_pct:
        ``retained_customers / total_customers * 100``
    avg_retained_clv:
        Average lifetime revenue of retained customers
    uplift_rate:
        Share of the customer base assumed to convert
    projected_revenue_uplift:
        ``total_customers * uplift_rate * avg_retained_clv``; None when no
        customer is retained yet (the average is undefined)
    """

    retained_customers: int
    total_customers: int
    current_retention_pct: Decimal | None
    avg_retained_clv: Decimal | None
    uplift_rate: Decimal
    projected_revenue_uplift: Decimal | None


def rank_by_lifetime_revenue(
    summaries: Sequence[CustomerOrderSummary],
) -> list[CustomerOrderSummary]:
    """Sort by lifetime revenue descending; ties by ascending customer_id."""
    return sorted(summaries, key=lambda s: (-s.lifetime_revenue, s.customer_id))


def customer_lifetime_value(mart: RevenueDataMart) -> list[CustomerLifetimeValue]:
    """Orders, average order value and lifetime value per customer."""
    return [
        CustomerLifetimeValue(
            customer_id=summary.customer_id,
            total_orders=summary.order_count,
            avg_order_value=summary.avg_order_value,
            lifetime_value=quantize_money(summary.lifetime_revenue),
        )
        for summary in rank_by_lifetime_revenue(list(mart.summary_by_customer.values()))
    ]


def retention_quality(mart: RevenueDataMart) -> list[RetentionQuality]:
    """Compare lifetime revenue of retained and one-time customers."""
    groups: dict[str, list[Decimal]] = {}
    for summary in mart.summary_by_customer.values():
        label = "retained_customers" if summary.is_repeat else "one_time_customers"
        groups.setdefault(label, []).append(summary.lifetime_revenue)

    return [
        RetentionQuality(
            customer_type=label,
            customer_count=len(groups[label]),
            avg_lifetime_revenue=safe_average(groups[label]),
        )
        for label in ("retained_customers", "one_time_customers")
        if label in groups
    ]


def calculate_revenue_concentration(
    mart: RevenueDataMart, top_n: int = DEFAULT_CONCENTRATION_TOP_N
) -> RevenueConcentration:
    """Revenue share of the ``top_n`` highest-value customers.

    Ranking is deterministic: ties on revenue are broken by ascending
    customer_id, so exactly ``top_n`` customers are counted. With ``top_n``
    or fewer customers the share is 100%.

    Examples
    --------
    >>> from retention_audit.synthetic import sample_snapshot
    >>> from retention_audit.foundation.data_mart import RevenueDataMartBuilder
    >>> mart = RevenueDataMartBuilder().build(sample_snapshot())
    >>> calculate_revenue_concentration(mart, top_n=1).top_revenue
    Decimal('9200.00')
    """
    if top_n <= 0:
        raise ValueError(f"top_n must be positive, got {top_n}")

    ranked = rank_by_lifetime_revenue(list(mart.summary_by_customer.values()))
    total = sum((s.lifetime_revenue for s in ranked), Decimal("0"))
    top = sum((s.lifetime_revenue for s in ranked[:top_n]), Decimal("0"))
    return RevenueConcentration(
        top_n=top_n,
        top_revenue=quantize_money(top),
        total_revenue=quantize_money(total),
        top_revenue_pct=safe_percentage(top, total),
    )


def high_value_customers_at_risk(
    mart: RevenueDataMart,
    as_of: date,
    inactivity_days: int = DEFAULT_INACTIVITY_DAYS,
) -> list[AtRiskCustomer]:
    """Above-average customers who have not ordered recently.

    Parameters
    ----------
    mart:
        Aggregated order data
    as_of:
        Reporting date used to measure inactivity. Passed in explicitly so
        results are reproducible.
    inactivity_days:
        Customers are at risk when more than this many days have passed
        since their last order.
    """
    summaries = list(mart.summary_by_customer.values())
    if not summaries:
        return []

    average = sum((s.lifetime_revenue for s in summaries), Decimal("0")) / len(summaries)
    at_risk: list[AtRiskCustomer] = []
    for summary in rank_by_lifetime_revenue(summaries):
        if summary.lifetime_revenue <= average:
            continue
        days_since = (as_of - summary.last_order_date).days
        if days_since > inactivity_days:
            at_risk.append(
                AtRiskCustomer(
                    customer_id=summary.customer_id,
                    lifetime_revenue=quantize_money(summary.lifetime_revenue),
                    last_order_date=summary.last_order_date,
                    days_since_last_order=days_since,
                )
            )
    if any(s.last_order_date > as_of for s in summaries):
        logger.warning(
            f"Orders dated after as_of={as_of.isoformat()} found; "
            "their customers are never flagged as at risk"
        )
    return at_risk


def project_retention_roi(
    mart: RevenueDataMart,
    uplift_rate: Decimal = DEFAULT_RETENTION_UPLIFT_RATE,
) -> RetentionROI:
    """Estimate the revenue gained by a retention improvement.

    ``projected_revenue_uplift = total_customers * uplift_rate *
    avg_retained_clv``, rounded to cents.
    """
    summaries = list(mart.summary_by_customer.values())
    retained = [s.lifetime_revenue for s in summaries if s.is_repeat]
    total_customers = len(summaries)

    avg_retained = (
        sum(retained, Decimal("0")) / len(retained) if retained else None
    )
    uplift = None
    if avg_retained is not None:
        uplift = round2(total_customers * uplift_rate * avg_retained)

    return RetentionROI(
        retained_customers=len(retained),
        total_customers=total_customers,
        current_retention_pct=safe_percentage(len(retained), total_customers),
        avg_retained_clv=round2(avg_retained) if avg_retained is not None else None,
        uplift_rate=uplift_rate,
        projected_revenue_uplift=uplift,
    )
