"""Revenue, retention and customer value reports.

Each report is a pure function of the aggregated data mart (and, for a
few, the raw snapshot or a reporting date). Reports never mutate their
inputs and do not depend on each other, so they can run in any order or
concurrently.

1. Revenue - totals, monthly trend, growth and revenue mix
2. Retention - repeat behaviour, churn and monthly retention
3. Cohorts - monthly acquisition cohorts and their retention matrix
4. Value - lifetime value, concentration, at-risk customers and ROI
"""

from .cohorts import CohortCell, cohort_retention_matrix, cohort_sizes
from .retention import (
    CustomerType,
    EarlyChurn,
    MonthlyRetention,
    SpendSegment,
    SpendSegmentRetention,
    average_days_between_orders,
    early_churn_rate,
    first_month_spend_retention,
    increasing_spend_customers,
    monthly_retention_rate,
    order_count_funnel,
    repeat_customers,
    repeat_vs_one_time_revenue,
)
from .revenue import (
    MonthOverMonthGrowth,
    RevenueOverview,
    calculate_month_over_month_growth,
    category_revenue,
    city_revenue,
    monthly_revenue_trend,
    summarize_revenue,
    top_customers_by_spend,
)
from .value import (
    RetentionROI,
    RevenueConcentration,
    calculate_revenue_concentration,
    customer_lifetime_value,
    high_value_customers_at_risk,
    project_retention_roi,
    retention_quality,
)

__all__ = [
    # Revenue
    "MonthOverMonthGrowth",
    "RevenueOverview",
    "calculate_month_over_month_growth",
    "category_revenue",
    "city_revenue",
    "monthly_revenue_trend",
    "summarize_revenue",
    "top_customers_by_spend",
    # Retention
    "CustomerType",
    "EarlyChurn",
    "MonthlyRetention",
    "SpendSegment",
    "SpendSegmentRetention",
    "average_days_between_orders",
    "early_churn_rate",
    "first_month_spend_retention",
    "increasing_spend_customers",
    "monthly_retention_rate",
    "order_count_funnel",
    "repeat_customers",
    "repeat_vs_one_time_revenue",
    # Cohorts
    "CohortCell",
    "cohort_retention_matrix",
    "cohort_sizes",
    # Value
    "RetentionROI",
    "RevenueConcentration",
    "calculate_revenue_concentration",
    "customer_lifetime_value",
    "high_value_customers_at_risk",
    "project_retention_roi",
    "retention_quality",
]
