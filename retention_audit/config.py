"""Tunable thresholds shared by the audit reports."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AuditConfig:
    """Configuration for an audit run.

    Attributes
    ----------
    top_n_customers:
        Number of customers listed in the top-spenders report.
    concentration_top_n:
        Number of top-ranked customers whose revenue share is measured
        by the revenue concentration report.
    at_risk_inactivity_days:
        Customers whose last order is more than this many days before the
        reporting date are considered lapsing.
    retention_uplift_rate:
        Share of the customer base assumed to be converted into repeat
        customers by the retention ROI projection (0.05 = 5%).
    low_spend_threshold:
        First-month spend strictly below this value is ``low_spend``.
    high_spend_threshold:
        First-month spend strictly above this value is ``high_spend``.
        Values between the two thresholds (inclusive) are ``mid_spend``.
    """

    top_n_customers: int = 10
    concentration_top_n: int = 10
    at_risk_inactivity_days: int = 60
    retention_uplift_rate: Decimal = Decimal("0.05")
    low_spend_threshold: Decimal = Decimal("1000")
    high_spend_threshold: Decimal = Decimal("3000")

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.top_n_customers <= 0:
            raise ValueError(
                f"top_n_customers must be positive, got {self.top_n_customers}"
            )
        if self.concentration_top_n <= 0:
            raise ValueError(
                f"concentration_top_n must be positive, got {self.concentration_top_n}"
            )
        if self.at_risk_inactivity_days < 0:
            raise ValueError(
                f"at_risk_inactivity_days must be >= 0, got {self.at_risk_inactivity_days}"
            )
        for name in ("retention_uplift_rate", "low_spend_threshold", "high_spend_threshold"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, Decimal(str(value)))
        if not 0 <= self.retention_uplift_rate <= 1:
            raise ValueError(
                f"retention_uplift_rate must be between 0 and 1, got {self.retention_uplift_rate}"
            )
        if self.low_spend_threshold > self.high_spend_threshold:
            raise ValueError(
                f"low_spend_threshold ({self.low_spend_threshold}) cannot exceed "
                f"high_spend_threshold ({self.high_spend_threshold})"
            )
