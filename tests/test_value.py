"""Tests for lifetime value, concentration, at-risk and ROI reports."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from retention_audit.analyses.value import (
    RevenueConcentration,
    calculate_revenue_concentration,
    customer_lifetime_value,
    high_value_customers_at_risk,
    project_retention_roi,
    retention_quality,
)
from tests.conftest import make_mart


class TestCustomerLifetimeValue:
    def test_ranking(self, mart):
        rows = customer_lifetime_value(mart)
        assert [(r.customer_id, r.lifetime_value) for r in rows] == [
            (1, Decimal("9200.00")),
            (2, Decimal("7100.00")),
            (4, Decimal("4000.00")),
            (7, Decimal("2900.00")),
            (5, Decimal("2700.00")),
            (8, Decimal("2600.00")),
            (6, Decimal("1600.00")),
            (3, Decimal("1500.00")),
        ]

    def test_average_order_value(self, mart):
        top = customer_lifetime_value(mart)[0]
        assert top.total_orders == 3
        assert top.avg_order_value == Decimal("3066.67")

    def test_empty(self, empty_mart):
        assert customer_lifetime_value(empty_mart) == []


def test_retention_quality(mart):
    rows = retention_quality(mart)
    assert [(r.customer_type, r.customer_count, r.avg_lifetime_revenue) for r in rows] == [
        ("retained_customers", 2, Decimal("8150.00")),
        ("one_time_customers", 6, Decimal("2550.00")),
    ]


class TestRevenueConcentration:
    def test_fewer_customers_than_top_n(self, mart):
        concentration = calculate_revenue_concentration(mart, top_n=10)
        assert concentration.top_revenue == Decimal("31600.00")
        assert concentration.top_revenue_pct == Decimal("100.00")

    @pytest.mark.parametrize(
        "top_n, top_revenue, pct",
        [
            (1, Decimal("9200.00"), Decimal("29.11")),
            (3, Decimal("20300.00"), Decimal("64.24")),
        ],
    )
    def test_top_n_share(self, mart, top_n, top_revenue, pct):
        concentration = calculate_revenue_concentration(mart, top_n=top_n)
        assert concentration.top_revenue == top_revenue
        assert concentration.top_revenue_pct == pct

    def test_ties_count_exactly_top_n(self):
        mart = make_mart(
            [
                (1, 1, date(2023, 1, 1), 100),
                (2, 2, date(2023, 1, 1), 100),
                (3, 3, date(2023, 1, 1), 100),
                (4, 4, date(2023, 1, 1), 100),
            ]
        )
        concentration = calculate_revenue_concentration(mart, top_n=2)
        assert concentration.top_revenue == Decimal("200.00")
        assert concentration.top_revenue_pct == Decimal("50.00")

    def test_empty_share_is_undefined(self, empty_mart):
        concentration = calculate_revenue_concentration(empty_mart)
        assert concentration.total_revenue == Decimal("0.00")
        assert concentration.top_revenue_pct is None

    def test_non_positive_top_n_raises_error(self, mart):
        with pytest.raises(ValueError, match="top_n must be positive"):
            calculate_revenue_concentration(mart, top_n=0)

    def test_top_exceeding_total_raises_error(self):
        with pytest.raises(ValueError, match="cannot exceed total revenue"):
            RevenueConcentration(1, Decimal("10"), Decimal("5"), None)


class TestHighValueCustomersAtRisk:
    def test_sample_at_risk(self, mart):
        rows = high_value_customers_at_risk(mart, as_of=date(2023, 6, 30))
        assert [(r.customer_id, r.days_since_last_order) for r in rows] == [
            (1, 89),
            (4, 130),
        ]
        assert rows[0].last_order_date == date(2023, 4, 2)
        assert rows[0].lifetime_revenue == Decimal("9200.00")

    def test_exactly_threshold_is_not_at_risk(self, mart):
        rows = high_value_customers_at_risk(mart, as_of=date(2023, 6, 30))
        # customer 2 last ordered exactly 60 days earlier
        assert 2 not in {r.customer_id for r in rows}

    def test_custom_inactivity(self, mart):
        rows = high_value_customers_at_risk(
            mart, as_of=date(2023, 6, 30), inactivity_days=100
        )
        assert [r.customer_id for r in rows] == [4]

    def test_average_customers_are_never_at_risk(self):
        mart = make_mart(
            [
                (1, 1, date(2023, 1, 1), 100),
                (2, 2, date(2023, 1, 1), 100),
            ]
        )
        assert high_value_customers_at_risk(mart, as_of=date(2024, 1, 1)) == []

    def test_future_orders_logged(self, mart, caplog):
        with caplog.at_level(logging.WARNING, logger="retention_audit.analyses.value"):
            rows = high_value_customers_at_risk(mart, as_of=date(2023, 3, 1))
        assert "Orders dated after as_of=2023-03-01" in caplog.text
        assert all(r.days_since_last_order > 60 for r in rows)

    def test_empty(self, empty_mart):
        assert high_value_customers_at_risk(empty_mart, as_of=date(2023, 1, 1)) == []


class TestRetentionROI:
    def test_sample_projection(self, mart):
        roi = project_retention_roi(mart)
        assert roi.retained_customers == 2
        assert roi.total_customers == 8
        assert roi.current_retention_pct == Decimal("25.00")
        assert roi.avg_retained_clv == Decimal("8150.00")
        assert roi.uplift_rate == Decimal("0.05")
        assert roi.projected_revenue_uplift == Decimal("3260.00")

    def test_custom_uplift_rate(self, mart):
        roi = project_retention_roi(mart, uplift_rate=Decimal("0.10"))
        assert roi.projected_revenue_uplift == Decimal("6520.00")

    def test_no_repeat_customers_leaves_uplift_undefined(self):
        mart = make_mart([(1, 1, date(2023, 1, 1), 100)])
        roi = project_retention_roi(mart)
        assert roi.retained_customers == 0
        assert roi.current_retention_pct == Decimal("0.00")
        assert roi.avg_retained_clv is None
        assert roi.projected_revenue_uplift is None

    def test_empty(self, empty_mart):
        roi = project_retention_roi(empty_mart)
        assert roi.total_customers == 0
        assert roi.current_retention_pct is None
