"""Tests for audit configuration validation."""

from decimal import Decimal

import pytest

from retention_audit.config import AuditConfig


def test_defaults():
    config = AuditConfig()
    assert config.top_n_customers == 10
    assert config.concentration_top_n == 10
    assert config.at_risk_inactivity_days == 60
    assert config.retention_uplift_rate == Decimal("0.05")
    assert config.low_spend_threshold == Decimal("1000")
    assert config.high_spend_threshold == Decimal("3000")


def test_numeric_values_coerced_to_decimal():
    config = AuditConfig(retention_uplift_rate=0.1, low_spend_threshold=500)
    assert config.retention_uplift_rate == Decimal("0.1")
    assert config.low_spend_threshold == Decimal("500")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"top_n_customers": 0}, "top_n_customers must be positive"),
        ({"concentration_top_n": -1}, "concentration_top_n must be positive"),
        ({"at_risk_inactivity_days": -1}, "at_risk_inactivity_days must be >= 0"),
        ({"retention_uplift_rate": Decimal("1.5")}, "retention_uplift_rate must be between"),
        (
            {"low_spend_threshold": Decimal("5000")},
            "low_spend_threshold .* cannot exceed",
        ),
    ],
)
def test_invalid_values_raise_error(kwargs, message):
    with pytest.raises(ValueError, match=message):
        AuditConfig(**kwargs)
