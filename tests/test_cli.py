"""Tests for the command line entry points."""

import json

import pandas as pd
import pytest

from retention_audit.cli import audit_report_cli, generate_dataset_cli
from retention_audit.pandas import write_csv_directory


@pytest.fixture
def data_dir(snapshot, tmp_path):
    return write_csv_directory(snapshot, tmp_path / "data")


def test_markdown_report_to_stdout(data_dir, capsys):
    exit_code = audit_report_cli([str(data_dir), "--as-of", "2023-06-30"])
    assert exit_code == 0
    out = capsys.readouterr().out
    assert out.startswith("# Customer Revenue & Retention Audit")
    assert "**As of:** 2023-06-30" in out


def test_json_report_to_file(data_dir, tmp_path):
    output = tmp_path / "out" / "audit.json"
    exit_code = audit_report_cli(
        [
            str(data_dir),
            "--as-of",
            "2023-06-30",
            "--format",
            "json",
            "--output",
            str(output),
            "--report",
            "revenue_overview",
            "--report",
            "at_risk_customers",
        ]
    )
    assert exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert list(payload["reports"]) == ["revenue_overview", "at_risk_customers"]
    assert payload["reports"]["revenue_overview"]["rows"][0]["total_revenue"] == "31600.00"
    at_risk = payload["reports"]["at_risk_customers"]["rows"]
    assert [row["customer_id"] for row in at_risk] == [1, 4]


def test_as_of_defaults_to_latest_order(data_dir, tmp_path):
    output = tmp_path / "audit.json"
    audit_report_cli([str(data_dir), "--format", "json", "--output", str(output)])
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["as_of"] == "2023-05-10"


def test_options_reach_config(data_dir, tmp_path):
    output = tmp_path / "audit.json"
    audit_report_cli(
        [
            str(data_dir),
            "--as-of",
            "2023-06-30",
            "--format",
            "json",
            "--output",
            str(output),
            "--top-n",
            "3",
            "--inactivity-days",
            "100",
            "--uplift-rate",
            "0.10",
            "--parallel",
        ]
    )
    reports = json.loads(output.read_text(encoding="utf-8"))["reports"]
    assert len(reports["top_customers"]["rows"]) == 3
    assert reports["revenue_concentration"]["rows"][0]["top_revenue_pct"] == "64.24"
    assert [r["customer_id"] for r in reports["at_risk_customers"]["rows"]] == [4]
    assert reports["retention_roi"]["rows"][0]["projected_revenue_uplift"] == "6520.00"


def test_missing_directory_fails(tmp_path):
    assert audit_report_cli([str(tmp_path / "missing")]) == 1


def test_orphan_order_fails(data_dir):
    orders = pd.read_csv(data_dir / "orders.csv", dtype=str)
    orders.loc[0, "customer_id"] = "99"
    orders.to_csv(data_dir / "orders.csv", index=False)
    assert audit_report_cli([str(data_dir)]) == 1


@pytest.mark.parametrize("amount", ["Infinity", "-Infinity", "NaN"])
def test_non_finite_amount_fails(data_dir, amount, caplog):
    orders = pd.read_csv(data_dir / "orders.csv", dtype=str)
    orders.loc[0, "order_amount"] = amount
    orders.to_csv(data_dir / "orders.csv", index=False)
    assert audit_report_cli([str(data_dir)]) == 1
    assert "Ingestion failed" in caplog.text


def test_invalid_top_n_is_usage_error(data_dir):
    with pytest.raises(SystemExit) as excinfo:
        audit_report_cli([str(data_dir), "--top-n", "0"])
    assert excinfo.value.code == 2


def test_unknown_report_is_usage_error(data_dir):
    with pytest.raises(SystemExit):
        audit_report_cli([str(data_dir), "--report", "nope"])


def test_generate_then_audit(tmp_path, capsys):
    target = tmp_path / "synthetic"
    assert generate_dataset_cli(
        [str(target), "--customers", "30", "--orders", "120", "--seed", "9"]
    ) == 0
    assert (target / "customers.csv").exists()
    assert len(pd.read_csv(target / "orders.csv")) == 120
    assert audit_report_cli([str(target), "--format", "json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["reports"]) == 20
