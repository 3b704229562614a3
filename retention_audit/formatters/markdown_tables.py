"""Markdown table formatters for audit report results.

Formats report rows as plain markdown tables suitable for terminals,
notebooks and any markdown renderer.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from retention_audit.engine import AuditReport, ReportResult

MISSING_VALUE = "n/a"


def format_cell(value: Any, field_name: str = "") -> str:
    """Render a single report value.

    Key columns (names ending in ``_id``) are rendered without thousands
    separators.

    >>> format_cell(Decimal("12345.5"))
    '12,345.50'
    >>> format_cell(None)
    'n/a'
    >>> format_cell(1234, "customer_id")
    '1234'
    """
    if value is None:
        return MISSING_VALUE
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int) and not field_name.endswith("_id"):
        return f"{value:,}"
    return str(value)


def _header(name: str) -> str:
    label = name.replace("_pct", " %").replace("_", " ")
    return label[:1].upper() + label[1:]


def format_rows_table(rows: tuple[Any, ...] | list[Any]) -> str:
    """Format uniformly shaped rows as a markdown table."""
    if not rows:
        return "_No rows._\n"

    names = [f.name for f in dataclasses.fields(rows[0])]
    table = "| " + " | ".join(_header(name) for name in names) + " |\n"
    table += "|" + "|".join("---" for _ in names) + "|\n"
    for row in rows:
        cells = [format_cell(getattr(row, name), name) for name in names]
        table += "| " + " | ".join(cells) + " |\n"
    return table


def format_report_table(result: ReportResult) -> str:
    """Format one report result with a heading.

    Parameters
    ----------
    result:
        Report result from :class:`retention_audit.engine.AnalyticsEngine`

    Returns
    -------
    str:
        Markdown section; failed reports render their error instead of rows
    """
    section = f"## {result.title}\n\n"
    if not result.ok:
        return section + f"> **Report failed:** {result.error}\n"
    return section + format_rows_table(result.rows)


def format_audit_report(report: AuditReport) -> str:
    """Format every report of an audit run as one markdown document."""
    lines = [
        "# Customer Revenue & Retention Audit\n",
        f"**As of:** {report.as_of.isoformat()}\n",
    ]
    for result in report:
        lines.append(format_report_table(result))
    return "\n".join(lines)
