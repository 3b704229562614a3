"""Formatters for rendering audit results.

Available formatters:
- markdown_tables: Markdown tables for report rows and full audits
"""

from .markdown_tables import (
    format_audit_report,
    format_cell,
    format_report_table,
    format_rows_table,
)

__all__ = [
    "format_audit_report",
    "format_cell",
    "format_report_table",
    "format_rows_table",
]
