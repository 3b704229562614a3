"""Monthly acquisition cohorts and their retention matrix.

A cohort is the group of customers whose first order falls in the same
calendar month. The retention matrix counts, for each cohort, how many of
its members ordered in each later month.

Quick Start
-----------
>>> from retention_audit.synthetic import sample_snapshot
>>> from retention_audit.foundation.data_mart import RevenueDataMartBuilder
>>> mart = RevenueDataMartBuilder().build(sample_snapshot())
>>> matrix = cohort_retention_matrix(mart)
>>> (matrix[0].cohort_month.isoformat(), matrix[0].active_customers)
('2023-01-01', 2)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from retention_audit.analyses._utils import safe_percentage
from retention_audit.foundation.data_mart import RevenueDataMart


@dataclass(frozen=True)
class CohortCell:
    """One populated cell of the cohort retention matrix.

    Attributes
    ----------
    cohort_month:
        Month of the cohort members' first order.
    activity_month:
        Month in which activity is counted; never before ``cohort_month``.
    months_since_acquisition:
        Calendar months between cohort and activity month (0 = first month).
    active_customers:
        Distinct cohort members with an order in ``activity_month``.
    cohort_size:
        Number of customers in the cohort.
    retention_pct:
        ``active_customers / cohort_size * 100``.
    """

    cohort_month: date
    activity_month: date
    months_since_acquisition: int
    active_customers: int
    cohort_size: int
    retention_pct: Decimal | None

    def __post_init__(self) -> None:
        """Validate cohort cell constraints."""
        if self.activity_month < self.cohort_month:
            raise ValueError(
                f"activity_month {self.activity_month.isoformat()} precedes "
                f"cohort_month {self.cohort_month.isoformat()}"
            )
        if not 0 <= self.active_customers <= self.cohort_size:
            raise ValueError(
                f"active_customers must be between 0 and cohort_size "
                f"({self.cohort_size}), got {self.active_customers}"
            )


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def cohort_sizes(mart: RevenueDataMart) -> dict[date, int]:
    """Number of customers acquired in each cohort month."""
    sizes: dict[date, int] = {}
    for cohort_month in mart.first_order_month.values():
        sizes[cohort_month] = sizes.get(cohort_month, 0) + 1
    return dict(sorted(sizes.items()))


def cohort_retention_matrix(mart: RevenueDataMart) -> list[CohortCell]:
    """Build the sparse, triangular cohort × activity-month matrix.

    Only (cohort, month) pairs with at least one active customer are
    returned, ordered by cohort month then activity month.
    """
    active: dict[tuple[date, date], set[int]] = {}
    for bucket in mart.customer_months:
        cohort_month = mart.first_order_month[bucket.customer_id]
        active.setdefault((cohort_month, bucket.month), set()).add(bucket.customer_id)

    sizes = cohort_sizes(mart)
    return [
        CohortCell(
            cohort_month=cohort_month,
            activity_month=activity_month,
            months_since_acquisition=months_between(cohort_month, activity_month),
            active_customers=len(customers),
            cohort_size=sizes[cohort_month],
            retention_pct=safe_percentage(len(customers), sizes[cohort_month]),
        )
        for (cohort_month, activity_month), customers in sorted(active.items())
    ]
