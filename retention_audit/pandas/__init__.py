"""Pandas DataFrame adapters for retention audit components."""

from .sources import (
    CsvDirectorySource,
    DataFrameSource,
    dataframe_to_customers,
    dataframe_to_order_items,
    dataframe_to_orders,
    snapshot_to_dataframes,
    write_csv_directory,
)
from .reports import (
    audit_to_dataframes,
    report_to_dataframe,
    rows_to_dataframe,
)

__all__ = [
    # Sources
    "CsvDirectorySource",
    "DataFrameSource",
    "dataframe_to_customers",
    "dataframe_to_order_items",
    "dataframe_to_orders",
    "snapshot_to_dataframes",
    "write_csv_directory",
    # Report adapters
    "audit_to_dataframes",
    "report_to_dataframe",
    "rows_to_dataframe",
]
