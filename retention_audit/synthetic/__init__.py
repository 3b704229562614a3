"""Synthetic data generation for tests and demos.

This package produces behaviourally realistic but fake customers, orders
and order items so the audit pipeline can be exercised without production
data. Every random generator takes an explicit seed.
"""

from .generator import (
    SyntheticConfig,
    generate_customers,
    generate_order_items,
    generate_orders,
    generate_snapshot,
    sample_snapshot,
    sample_source,
)

__all__ = [
    "SyntheticConfig",
    "generate_customers",
    "generate_order_items",
    "generate_orders",
    "generate_snapshot",
    "sample_snapshot",
    "sample_source",
]
