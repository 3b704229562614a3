"""Run every audit report against a single snapshot.

The engine ingests once, builds the data mart once, then evaluates each
report as an independent pure function of the snapshot, the mart and the
configuration. A failure in one report is captured on its result and does
not stop the others.

Quick Start
-----------
>>> from datetime import date
>>> from retention_audit.engine import AnalyticsEngine
>>> from retention_audit.synthetic import sample_snapshot
>>> report = AnalyticsEngine().run(sample_snapshot(), as_of=date(2023, 6, 30))
>>> report["early_churn_rate"].rows[0].churned_after_first_purchase
6
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from multiprocessing.pool import ThreadPool
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from retention_audit.analyses import cohorts, retention, revenue, value
from retention_audit.config import AuditConfig
from retention_audit.foundation.data_mart import RevenueDataMart, RevenueDataMartBuilder
from retention_audit.foundation.ingestion import AuditSnapshot, DataSource, load_snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportContext:
    """Immutable inputs shared by every report in a run."""

    snapshot: AuditSnapshot
    mart: RevenueDataMart
    config: AuditConfig
    as_of: date


@dataclass(frozen=True)
class ReportDefinition:
    name: str
    title: str
    compute: Callable[[ReportContext], Any]


@dataclass(frozen=True)
class ReportResult:
    """Output of a single report.

    Attributes
    ----------
    name:
        Registry key of the report
    title:
        Human-readable title
    rows:
        Uniformly shaped result rows. Summary reports produce one row.
    error:
        Description of the failure when the report raised, otherwise None
    """

    name: str
    title: str
    rows: tuple[Any, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


REPORTS: tuple[ReportDefinition, ...] = (
    ReportDefinition(
        "revenue_overview",
        "Revenue Overview",
        lambda ctx: revenue.summarize_revenue(ctx.mart),
    ),
    ReportDefinition(
        "monthly_revenue",
        "Monthly Revenue Trend",
        lambda ctx: revenue.monthly_revenue_trend(ctx.mart),
    ),
    ReportDefinition(
        "month_over_month_growth",
        "Month-over-Month Revenue Growth",
        lambda ctx: revenue.calculate_month_over_month_growth(ctx.mart),
    ),
    ReportDefinition(
        "top_customers",
        "Top Customers by Spend",
        lambda ctx: revenue.top_customers_by_spend(
            ctx.snapshot, ctx.mart, limit=ctx.config.top_n_customers
        ),
    ),
    ReportDefinition(
        "repeat_customers",
        "Repeat Customers",
        lambda ctx: retention.repeat_customers(ctx.mart),
    ),
    ReportDefinition(
        "repeat_vs_one_time_revenue",
        "Revenue from Repeat vs One-Time Customers",
        lambda ctx: retention.repeat_vs_one_time_revenue(ctx.mart),
    ),
    ReportDefinition(
        "avg_days_between_orders",
        "Average Days Between Orders",
        lambda ctx: retention.average_days_between_orders(ctx.mart),
    ),
    ReportDefinition(
        "early_churn_rate",
        "Early Churn Rate",
        lambda ctx: retention.early_churn_rate(ctx.mart),
    ),
    ReportDefinition(
        "monthly_retention",
        "Monthly Customer Retention Rate",
        lambda ctx: retention.monthly_retention_rate(ctx.mart),
    ),
    ReportDefinition(
        "first_month_spend_retention",
        "Retention by First-Month Spend",
        lambda ctx: retention.first_month_spend_retention(
            ctx.mart,
            low_threshold=ctx.config.low_spend_threshold,
            high_threshold=ctx.config.high_spend_threshold,
        ),
    ),
    ReportDefinition(
        "customer_lifetime_value",
        "Customer Lifetime Value",
        lambda ctx: value.customer_lifetime_value(ctx.mart),
    ),
    ReportDefinition(
        "retention_quality",
        "Retention Quality vs Revenue",
        lambda ctx: value.retention_quality(ctx.mart),
    ),
    ReportDefinition(
        "category_revenue",
        "Category Revenue Contribution",
        lambda ctx: revenue.category_revenue(ctx.snapshot.order_items),
    ),
    ReportDefinition(
        "city_revenue",
        "Revenue Contribution by City",
        lambda ctx: revenue.city_revenue(ctx.snapshot, ctx.mart),
    ),
    ReportDefinition(
        "order_count_funnel",
        "Customers by Order Count Stage",
        lambda ctx: retention.order_count_funnel(ctx.mart),
    ),
    ReportDefinition(
        "cohort_retention",
        "Cohort Retention (Monthly)",
        lambda ctx: cohorts.cohort_retention_matrix(ctx.mart),
    ),
    ReportDefinition(
        "increasing_spend",
        "Customers with Increasing Spend",
        lambda ctx: retention.increasing_spend_customers(ctx.mart),
    ),
    ReportDefinition(
        "retention_roi",
        "Incremental Revenue from Retention Improvement",
        lambda ctx: value.project_retention_roi(
            ctx.mart, uplift_rate=ctx.config.retention_uplift_rate
        ),
    ),
    ReportDefinition(
        "at_risk_customers",
        "High-Value Customers at Risk",
        lambda ctx: value.high_value_customers_at_risk(
            ctx.mart,
            as_of=ctx.as_of,
            inactivity_days=ctx.config.at_risk_inactivity_days,
        ),
    ),
    ReportDefinition(
        "revenue_concentration",
        "Revenue Concentration Risk",
        lambda ctx: value.calculate_revenue_concentration(
            ctx.mart, top_n=ctx.config.concentration_top_n
        ),
    ),
)

REPORT_NAMES: tuple[str, ...] = tuple(definition.name for definition in REPORTS)


def _serialise(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def row_as_dict(row: Any) -> dict[str, Any]:
    """Convert a report row dataclass into a JSON-serialisable dict."""
    return {
        f.name: _serialise(getattr(row, f.name)) for f in dataclasses.fields(row)
    }


@dataclass(frozen=True)
class AuditReport:
    """Results of every report evaluated in a run, in registry order."""

    as_of: date
    results: Mapping[str, ReportResult] = field(default_factory=dict)

    def __getitem__(self, name: str) -> ReportResult:
        return self.results[name]

    def __iter__(self):
        return iter(self.results.values())

    @property
    def failed(self) -> list[ReportResult]:
        return [result for result in self.results.values() if not result.ok]

    def as_dict(self) -> dict[str, Any]:
        """Return JSON-serialisable representation of the report."""
        payload: dict[str, Any] = {"as_of": self.as_of.isoformat(), "reports": {}}
        for result in self.results.values():
            entry: dict[str, Any] = {
                "title": result.title,
                "rows": [row_as_dict(row) for row in result.rows],
            }
            if result.error is not None:
                entry["error"] = result.error
            payload["reports"][result.name] = entry
        return payload


def _evaluate(definition: ReportDefinition, context: ReportContext) -> ReportResult:
    logger.debug(f"Running report {definition.name}")
    try:
        output = definition.compute(context)
    except Exception as exc:
        logger.exception(f"Report {definition.name} failed")
        return ReportResult(
            name=definition.name,
            title=definition.title,
            error=f"{type(exc).__name__}: {exc}",
        )
    rows = tuple(output) if isinstance(output, list) else (output,)
    logger.debug(f"Report {definition.name} produced {len(rows)} rows")
    return ReportResult(name=definition.name, title=definition.title, rows=rows)


class AnalyticsEngine:
    """Compute audit reports over an immutable snapshot.

    Parameters
    ----------
    config:
        Thresholds used by the reports. Defaults to :class:`AuditConfig`.
    reports:
        Report definitions to evaluate; defaults to the full registry.
    """

    def __init__(
        self,
        config: AuditConfig | None = None,
        reports: Sequence[ReportDefinition] = REPORTS,
    ) -> None:
        self.config = config or AuditConfig()
        self.reports = {definition.name: definition for definition in reports}

    def run(
        self,
        snapshot: AuditSnapshot,
        as_of: date,
        reports: Iterable[str] | None = None,
        parallel: bool = False,
        n_workers: Optional[int] = None,
    ) -> AuditReport:
        """Evaluate reports against ``snapshot``.

        Parameters
        ----------
        snapshot:
            Validated input tables.
        as_of:
            Reporting date used by recency based reports.
        reports:
            Names of the reports to run, in the order given. Defaults to all.
        parallel:
            Evaluate reports on a thread pool. Reports share the same frozen
            snapshot and mart, so no locking is involved.
        n_workers:
            Thread count for parallel evaluation. Defaults to CPU count.

        Raises
        ------
        KeyError
            If an unknown report name is requested. Raised before any report
            is evaluated.
        """
        selected = list(reports) if reports is not None else list(self.reports)
        unknown = [name for name in selected if name not in self.reports]
        if unknown:
            raise KeyError(
                f"Unknown report(s): {', '.join(unknown)}. "
                f"Available: {', '.join(self.reports)}"
            )

        # The mart is fully built before any report starts.
        mart = RevenueDataMartBuilder().build(snapshot)
        context = ReportContext(
            snapshot=snapshot, mart=mart, config=self.config, as_of=as_of
        )
        definitions = [self.reports[name] for name in selected]

        if parallel and len(definitions) > 1:
            workers = max(1, n_workers) if n_workers is not None else (os.cpu_count() or 1)
            with ThreadPool(processes=workers) as pool:
                results = pool.starmap(
                    _evaluate, [(definition, context) for definition in definitions]
                )
        else:
            results = [_evaluate(definition, context) for definition in definitions]

        report = AuditReport(
            as_of=as_of, results={result.name: result for result in results}
        )
        if report.failed:
            logger.warning(
                f"{len(report.failed)} of {len(results)} reports failed: "
                f"{', '.join(result.name for result in report.failed)}"
            )
        else:
            logger.info(f"Computed {len(results)} reports as of {as_of.isoformat()}")
        return report

    def run_source(self, source: DataSource, as_of: date, **kwargs: Any) -> AuditReport:
        """Ingest ``source`` eagerly, then run the reports.

        Ingestion errors (duplicate keys, referential integrity) propagate
        and abort the run.
        """
        return self.run(load_snapshot(source), as_of=as_of, **kwargs)
