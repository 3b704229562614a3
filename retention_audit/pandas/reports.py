"""Pandas DataFrame adapters for audit report results."""

import dataclasses
from typing import Any, Dict, Sequence

import pandas as pd  # type: ignore

from retention_audit.engine import AuditReport, ReportResult
from ._utils import to_cell


def rows_to_dataframe(rows: Sequence[Any]) -> pd.DataFrame:
    """Convert uniformly shaped report rows to a DataFrame.

    Args:
        rows: Sequence of report row dataclasses

    Returns:
        DataFrame with one column per dataclass field; empty DataFrame
        without columns when ``rows`` is empty

    Example:
        >>> from retention_audit.analyses import average_days_between_orders
        >>> from retention_audit.foundation import RevenueDataMartBuilder
        >>> from retention_audit.synthetic import sample_snapshot
        >>> mart = RevenueDataMartBuilder().build(sample_snapshot())
        >>> rows_to_dataframe(average_days_between_orders(mart))["customer_id"].tolist()
        [1, 2]
    """
    if not rows:
        return pd.DataFrame()
    columns = [f.name for f in dataclasses.fields(rows[0])]
    return pd.DataFrame(
        [{name: to_cell(getattr(row, name)) for name in columns} for row in rows],
        columns=columns,
    )


def report_to_dataframe(result: ReportResult) -> pd.DataFrame:
    """Convert a single report result to a DataFrame."""
    if not result.ok:
        raise ValueError(f"Report {result.name} failed: {result.error}")
    return rows_to_dataframe(result.rows)


def audit_to_dataframes(report: AuditReport) -> Dict[str, pd.DataFrame]:
    """Convert every successful report of an audit to a DataFrame.

    Failed reports are skipped; inspect ``report.failed`` for them.

    Example:
        >>> from datetime import date
        >>> from retention_audit.engine import AnalyticsEngine
        >>> from retention_audit.synthetic import sample_snapshot
        >>> report = AnalyticsEngine().run(sample_snapshot(), as_of=date(2023, 6, 30))
        >>> len(audit_to_dataframes(report)["monthly_revenue"])
        5
    """
    return {
        result.name: rows_to_dataframe(result.rows) for result in report if result.ok
    }
