"""Tests for the report engine."""

import json
from datetime import date
from decimal import Decimal

import pytest

from retention_audit.config import AuditConfig
from retention_audit.engine import (
    REPORT_NAMES,
    REPORTS,
    AnalyticsEngine,
    ReportDefinition,
    row_as_dict,
)
from retention_audit.foundation.ingestion import (
    InMemorySource,
    ReferentialIntegrityError,
)
from retention_audit.synthetic import generate_snapshot, sample_source
from tests.conftest import make_snapshot

AS_OF = date(2023, 6, 30)

SUMMARY_REPORTS = {
    "revenue_overview",
    "early_churn_rate",
    "order_count_funnel",
    "retention_roi",
    "revenue_concentration",
}


def _fail(ctx):
    raise RuntimeError("boom")


class TestRegistry:
    def test_twenty_reports_with_unique_names(self):
        assert len(REPORTS) == 20
        assert len(set(REPORT_NAMES)) == 20

    def test_registry_order(self):
        assert REPORT_NAMES[0] == "revenue_overview"
        assert REPORT_NAMES[-1] == "revenue_concentration"


class TestRun:
    def test_all_reports_succeed_on_sample(self, snapshot):
        report = AnalyticsEngine().run(snapshot, as_of=AS_OF)
        assert list(report.results) == list(REPORT_NAMES)
        assert report.failed == []
        assert report.as_of == AS_OF

    def test_summary_reports_have_one_row(self, snapshot):
        report = AnalyticsEngine().run(snapshot, as_of=AS_OF)
        for name in SUMMARY_REPORTS:
            assert len(report[name].rows) == 1

    def test_sample_values_flow_through(self, snapshot):
        report = AnalyticsEngine().run(snapshot, as_of=AS_OF)
        assert report["revenue_overview"].rows[0].total_revenue == Decimal("31600.00")
        assert [r.customer_id for r in report["at_risk_customers"].rows] == [1, 4]
        assert len(report["top_customers"].rows) == 8

    def test_config_is_applied(self, snapshot):
        engine = AnalyticsEngine(
            config=AuditConfig(top_n_customers=2, concentration_top_n=1)
        )
        report = engine.run(snapshot, as_of=AS_OF)
        assert len(report["top_customers"].rows) == 2
        assert report["revenue_concentration"].rows[0].top_revenue_pct == Decimal("29.11")

    def test_selected_reports_in_given_order(self, snapshot):
        report = AnalyticsEngine().run(
            snapshot, as_of=AS_OF, reports=["city_revenue", "revenue_overview"]
        )
        assert list(report.results) == ["city_revenue", "revenue_overview"]

    def test_unknown_report_raises_before_running(self, snapshot):
        with pytest.raises(KeyError, match="Unknown report"):
            AnalyticsEngine().run(snapshot, as_of=AS_OF, reports=["no_such_report"])

    def test_empty_snapshot_produces_empty_or_zero_results(self):
        report = AnalyticsEngine().run(make_snapshot([]), as_of=AS_OF)
        assert report.failed == []
        for result in report:
            if result.name in SUMMARY_REPORTS:
                assert len(result.rows) == 1
            else:
                assert result.rows == ()
        assert report["revenue_overview"].rows[0].avg_order_value is None
        assert report["retention_roi"].rows[0].projected_revenue_uplift is None

    def test_results_are_deterministic(self, snapshot):
        engine = AnalyticsEngine()
        first = engine.run(snapshot, as_of=AS_OF).as_dict()
        second = engine.run(snapshot, as_of=AS_OF).as_dict()
        assert first == second


class TestFailureIsolation:
    def test_failing_report_does_not_stop_others(self, snapshot):
        definitions = REPORTS[:2] + (ReportDefinition("broken", "Broken", _fail),)
        report = AnalyticsEngine(reports=definitions).run(snapshot, as_of=AS_OF)
        assert report["broken"].error == "RuntimeError: boom"
        assert report["broken"].rows == ()
        assert not report["broken"].ok
        assert report["revenue_overview"].ok
        assert [r.name for r in report.failed] == ["broken"]

    def test_failure_recorded_in_dict(self, snapshot):
        definitions = (ReportDefinition("broken", "Broken", _fail),)
        payload = AnalyticsEngine(reports=definitions).run(snapshot, as_of=AS_OF).as_dict()
        assert payload["reports"]["broken"] == {
            "title": "Broken",
            "rows": [],
            "error": "RuntimeError: boom",
        }


class TestParallel:
    def test_parallel_matches_sequential(self, snapshot):
        engine = AnalyticsEngine()
        sequential = engine.run(snapshot, as_of=AS_OF)
        parallel = engine.run(snapshot, as_of=AS_OF, parallel=True, n_workers=4)
        assert list(parallel.results) == list(sequential.results)
        assert parallel.as_dict() == sequential.as_dict()

    def test_parallel_on_synthetic_data(self):
        snapshot = generate_snapshot(n_customers=40, n_orders=200, seed=7)
        engine = AnalyticsEngine()
        sequential = engine.run(snapshot, as_of=AS_OF)
        parallel = engine.run(snapshot, as_of=AS_OF, parallel=True, n_workers=3)
        assert parallel.as_dict() == sequential.as_dict()
        assert parallel.failed == []

    def test_parallel_isolates_failures(self, snapshot):
        definitions = REPORTS + (ReportDefinition("broken", "Broken", _fail),)
        report = AnalyticsEngine(reports=definitions).run(
            snapshot, as_of=AS_OF, parallel=True, n_workers=2
        )
        assert [r.name for r in report.failed] == ["broken"]
        assert len(report.results) == 21


class TestRunSource:
    def test_run_source(self):
        report = AnalyticsEngine().run_source(sample_source(), as_of=AS_OF)
        assert report["early_churn_rate"].rows[0].churn_rate_pct == Decimal("75.00")

    def test_integrity_errors_abort_run(self):
        source = sample_source()
        broken = InMemorySource(
            customers=source.customers[1:],
            orders=source.orders,
            order_items=source.order_items,
        )
        with pytest.raises(ReferentialIntegrityError):
            AnalyticsEngine().run_source(broken, as_of=AS_OF)


def test_as_dict_is_json_serialisable(snapshot):
    payload = AnalyticsEngine().run(snapshot, as_of=AS_OF).as_dict()
    decoded = json.loads(json.dumps(payload))
    assert decoded["as_of"] == "2023-06-30"
    growth = decoded["reports"]["month_over_month_growth"]["rows"]
    assert growth[0]["growth_pct"] is None
    assert growth[1]["growth_pct"] == "102.33"
    segments = decoded["reports"]["first_month_spend_retention"]["rows"]
    assert segments[0]["spend_segment"] == "mid_spend"


def test_row_as_dict(snapshot):
    report = AnalyticsEngine().run(snapshot, as_of=AS_OF, reports=["monthly_revenue"])
    assert row_as_dict(report["monthly_revenue"].rows[0]) == {
        "month": "2023-01-01",
        "revenue": "4300.00",
        "order_count": 2,
    }
