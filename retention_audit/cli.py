"""Command line entry points for the retention audit toolkit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path

from retention_audit.config import AuditConfig
from retention_audit.engine import REPORT_NAMES, AnalyticsEngine
from retention_audit.formatters import format_audit_report
from retention_audit.foundation.ingestion import load_snapshot
from retention_audit.pandas import CsvDirectorySource, write_csv_directory
from retention_audit.synthetic import generate_snapshot

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date {value!r}; expected YYYY-MM-DD"
        ) from exc


def _parse_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"Invalid number {value!r}") from exc


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def audit_report_cli(argv: list[str] | None = None) -> int:
    """Run the revenue and retention audit over a directory of CSV files.

    The directory must contain ``customers.csv`` and ``orders.csv`` and may
    contain ``order_items.csv``.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 when ingestion or any report failed)
    """
    parser = argparse.ArgumentParser(
        description="Generate the customer revenue and retention audit report"
    )
    parser.add_argument(
        "data_dir", type=Path, help="Directory with customers/orders/order_items CSV files"
    )
    parser.add_argument(
        "--as-of",
        type=_parse_date,
        help="Reporting date (YYYY-MM-DD). Defaults to the latest order date.",
    )
    parser.add_argument(
        "--report",
        dest="reports",
        action="append",
        choices=REPORT_NAMES,
        help="Report to compute; repeat for several (defaults to all).",
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=10,
        help="Customers listed in the top-spenders and concentration reports (default: 10)",
    )
    parser.add_argument(
        "--inactivity-days",
        type=int,
        default=60,
        help="Days without orders before a high-value customer is at risk (default: 60)",
    )
    parser.add_argument(
        "--uplift-rate",
        type=_parse_decimal,
        default=Decimal("0.05"),
        help="Retention uplift assumed by the ROI projection (default: 0.05 = 5%%)",
    )
    parser.add_argument(
        "--format",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format (default: markdown)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional output file; defaults to stdout.",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Compute reports concurrently.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        config = AuditConfig(
            top_n_customers=args.top_n,
            concentration_top_n=args.top_n,
            at_risk_inactivity_days=args.inactivity_days,
            retention_uplift_rate=args.uplift_rate,
        )
    except ValueError as exc:
        parser.error(str(exc))

    logger.info(f"Loading tables from {args.data_dir}")
    try:
        snapshot = load_snapshot(CsvDirectorySource(args.data_dir))
    except (OSError, ValueError, TypeError) as exc:
        logger.error(f"Ingestion failed: {exc}")
        return 1

    if args.as_of is not None:
        as_of = args.as_of
    elif snapshot.orders:
        as_of = max(order.order_date for order in snapshot.orders)
    else:
        as_of = date.today()
    logger.info(f"Reporting as of {as_of.isoformat()}")

    engine = AnalyticsEngine(config)
    report = engine.run(
        snapshot, as_of=as_of, reports=args.reports, parallel=args.parallel
    )

    if args.format == "json":
        content = json.dumps(report.as_dict(), indent=2)
    else:
        content = format_audit_report(report)

    if args.output:
        output_path = args.output
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as fh:
            fh.write(content)
        logger.info(f"Audit report exported to {output_path}")
    else:  # stdout fallback enables piping in shell usage.
        sys.stdout.write(content)
        print()

    return 1 if report.failed else 0


def generate_dataset_cli(argv: list[str] | None = None) -> int:
    """Write a seeded synthetic dataset as CSV files."""
    parser = argparse.ArgumentParser(
        description="Generate a synthetic customers/orders/order_items dataset"
    )
    parser.add_argument("output_dir", type=Path, help="Directory for the CSV files")
    parser.add_argument("--customers", type=int, default=100)
    parser.add_argument("--orders", type=int, default=700)
    parser.add_argument(
        "--start",
        type=_parse_date,
        default=date(2023, 1, 1),
        help="First day of the order window (default: 2023-01-01)",
    )
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    snapshot = generate_snapshot(
        args.customers, args.orders, args.start, seed=args.seed
    )
    target = write_csv_directory(snapshot, args.output_dir)
    logger.info(
        f"Wrote {len(snapshot.customers)} customers, {len(snapshot.orders)} orders, "
        f"{len(snapshot.order_items)} order items to {target}"
    )
    return 0


def main() -> None:
    raise SystemExit(audit_report_cli())


def generate_main() -> None:
    raise SystemExit(generate_dataset_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
