"""Pandas DataFrame and CSV backed data sources."""

from pathlib import Path
from typing import Dict, Iterable, List, Sequence

import pandas as pd  # type: ignore

from retention_audit.foundation.ingestion import AuditSnapshot
from retention_audit.foundation.records import Customer, Order, OrderItem, to_date
from ._utils import decimal_to_float, parse_decimal

CUSTOMER_COLUMNS = ["customer_id", "name", "signup_date", "city"]
ORDER_COLUMNS = [
    "order_id",
    "customer_id",
    "order_date",
    "order_amount",
    "payment_method",
]
ORDER_ITEM_COLUMNS = [
    "order_item_id",
    "order_id",
    "product_category",
    "quantity",
    "price",
]

CUSTOMERS_FILE = "customers.csv"
ORDERS_FILE = "orders.csv"
ORDER_ITEMS_FILE = "order_items.csv"


def _validate_columns(df: pd.DataFrame, required: Sequence[str], table: str) -> None:
    missing_cols = set(required) - set(df.columns)
    if missing_cols:
        raise ValueError(f"{table} DataFrame missing required columns: {sorted(missing_cols)}")

    if df.empty:
        return

    null_cols = df[list(required)].isnull().any()
    if null_cols.any():
        null_col_names = null_cols[null_cols].index.tolist()
        raise ValueError(
            f"Null/NaN values found in {table} columns: {null_col_names}"
        )


def dataframe_to_customers(customers_df: pd.DataFrame) -> List[Customer]:
    """Convert a customers DataFrame to Customer records.

    ``customer_name`` is accepted in place of ``name``.
    """
    if "name" not in customers_df.columns and "customer_name" in customers_df.columns:
        customers_df = customers_df.rename(columns={"customer_name": "name"})
    _validate_columns(customers_df, CUSTOMER_COLUMNS, "customers")
    return [
        Customer(
            customer_id=int(record["customer_id"]),
            name=str(record["name"]),
            signup_date=to_date(record["signup_date"]),
            city=str(record["city"]),
        )
        for record in customers_df.to_dict("records")
    ]


def dataframe_to_orders(orders_df: pd.DataFrame) -> List[Order]:
    _validate_columns(orders_df, ORDER_COLUMNS, "orders")
    return [
        Order(
            order_id=int(record["order_id"]),
            customer_id=int(record["customer_id"]),
            order_date=to_date(record["order_date"]),
            order_amount=parse_decimal(record["order_amount"]),
            payment_method=str(record["payment_method"]),
        )
        for record in orders_df.to_dict("records")
    ]


def dataframe_to_order_items(items_df: pd.DataFrame) -> List[OrderItem]:
    _validate_columns(items_df, ORDER_ITEM_COLUMNS, "order_items")
    return [
        OrderItem(
            order_item_id=int(record["order_item_id"]),
            order_id=int(record["order_id"]),
            product_category=str(record["product_category"]),
            quantity=int(record["quantity"]),
            price=parse_decimal(record["price"]),
        )
        for record in items_df.to_dict("records")
    ]


class DataFrameSource:
    """Data source reading the three tables from DataFrames.

    Example:
        >>> from retention_audit.foundation.ingestion import load_snapshot
        >>> from retention_audit.synthetic import sample_snapshot
        >>> frames = snapshot_to_dataframes(sample_snapshot())
        >>> source = DataFrameSource(
        ...     frames["customers.csv"], frames["orders.csv"], frames["order_items.csv"]
        ... )
        >>> len(load_snapshot(source).orders)
        12
    """

    def __init__(
        self,
        customers: pd.DataFrame,
        orders: pd.DataFrame,
        order_items: pd.DataFrame | None = None,
    ) -> None:
        self.customers = customers
        self.orders = orders
        self.order_items = (
            order_items
            if order_items is not None
            else pd.DataFrame(columns=ORDER_ITEM_COLUMNS)
        )

    def load_customers(self) -> Iterable[Customer]:
        return dataframe_to_customers(self.customers)

    def load_orders(self) -> Iterable[Order]:
        return dataframe_to_orders(self.orders)

    def load_order_items(self) -> Iterable[OrderItem]:
        return dataframe_to_order_items(self.order_items)


class CsvDirectorySource(DataFrameSource):
    """Data source reading ``customers.csv``, ``orders.csv`` and ``order_items.csv``.

    Numeric money columns are read as text so they convert to Decimal
    exactly. ``order_items.csv`` is optional.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Data directory not found: {self.directory}")

        items_path = self.directory / ORDER_ITEMS_FILE
        super().__init__(
            customers=self._read(CUSTOMERS_FILE),
            orders=self._read(ORDERS_FILE),
            order_items=self._read(ORDER_ITEMS_FILE) if items_path.exists() else None,
        )

    def _read(self, filename: str) -> pd.DataFrame:
        return pd.read_csv(self.directory / filename, dtype=str)


def snapshot_to_dataframes(snapshot: AuditSnapshot) -> Dict[str, pd.DataFrame]:
    """Convert a snapshot to one DataFrame per table, keyed by CSV filename."""
    customers = pd.DataFrame(
        [
            {
                "customer_id": c.customer_id,
                "customer_name": c.name,
                "signup_date": c.signup_date.isoformat(),
                "city": c.city,
            }
            for c in snapshot.customers
        ],
        columns=["customer_id", "customer_name", "signup_date", "city"],
    )
    orders = pd.DataFrame(
        [
            {
                "order_id": o.order_id,
                "customer_id": o.customer_id,
                "order_date": o.order_date.isoformat(),
                "order_amount": decimal_to_float(o.order_amount),
                "payment_method": o.payment_method.value,
            }
            for o in snapshot.orders
        ],
        columns=ORDER_COLUMNS,
    )
    items = pd.DataFrame(
        [
            {
                "order_item_id": i.order_item_id,
                "order_id": i.order_id,
                "product_category": i.product_category,
                "quantity": i.quantity,
                "price": decimal_to_float(i.price),
            }
            for i in snapshot.order_items
        ],
        columns=ORDER_ITEM_COLUMNS,
    )
    return {CUSTOMERS_FILE: customers, ORDERS_FILE: orders, ORDER_ITEMS_FILE: items}


def write_csv_directory(snapshot: AuditSnapshot, directory: str | Path) -> Path:
    """Write a snapshot as the three CSV files readable by CsvDirectorySource."""
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    for filename, df in snapshot_to_dataframes(snapshot).items():
        df.to_csv(target / filename, index=False)
    return target
