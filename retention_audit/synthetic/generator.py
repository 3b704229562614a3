from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
import random
from typing import List, Optional, Sequence

from retention_audit.foundation.ingestion import AuditSnapshot, InMemorySource
from retention_audit.foundation.records import (
    Customer,
    Order,
    OrderItem,
    PaymentMethod,
)

DEFAULT_CITIES = ("Delhi", "Mumbai", "Bangalore", "Pune", "Hyderabad")

# Cumulative draw thresholds, checked in order; the last entry is the fallback.
PAYMENT_BIAS = (
    (0.45, PaymentMethod.UPI),
    (0.8, PaymentMethod.CARD),
    (0.95, PaymentMethod.WALLET),
)
CATEGORY_BIAS = (
    (0.4, "Electronics"),
    (0.7, "Fashion"),
    (0.85, "Home"),
    (0.95, "Beauty"),
)


@dataclass(frozen=True)
class SyntheticConfig:
    """Behavioural knobs for the order generator.

    Attributes
    ----------
    power_user_count:
        Number of lowest-id customers treated as heavy buyers.
    power_user_share:
        Probability that an order belongs to a power user.
    window_days:
        Orders are spread uniformly over this many days after ``start``.
    min_order_amount:
        Smallest order amount.
    order_amount_spread:
        Order amounts are drawn from ``[min, min + spread]``.
    seed:
        Optional RNG seed for reproducibility.
    """

    power_user_count: int = 20
    power_user_share: float = 0.6
    window_days: int = 180
    min_order_amount: float = 700.0
    order_amount_spread: float = 5000.0
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.power_user_count < 0:
            raise ValueError(f"power_user_count must be >= 0, got {self.power_user_count}")
        if not 0 <= self.power_user_share <= 1:
            raise ValueError(
                f"power_user_share must be between 0 and 1, got {self.power_user_share}"
            )
        if self.window_days < 0:
            raise ValueError(f"window_days must be >= 0, got {self.window_days}")
        if self.min_order_amount < 0 or self.order_amount_spread < 0:
            raise ValueError("Order amount bounds cannot be negative")


def _biased_choice(rng: random.Random, bias, fallback):
    # Each threshold gets a fresh draw, so later options are rarer than
    # the thresholds alone suggest.
    for threshold, option in bias:
        if rng.random() < threshold:
            return option
    return fallback


def generate_customers(
    n: int,
    start: date,
    *,
    cities: Sequence[str] = DEFAULT_CITIES,
    signup_spacing_days: int = 2,
) -> List[Customer]:
    """Generate ``n`` customers signing up every ``signup_spacing_days`` days."""

    if n <= 0:
        return []
    if not cities:
        raise ValueError("At least one city is required")
    return [
        Customer(
            customer_id=i,
            name=f"Customer_{i}",
            signup_date=start + timedelta(days=i * signup_spacing_days),
            city=cities[i % len(cities)],
        )
        for i in range(1, n + 1)
    ]


def generate_orders(
    customers: Sequence[Customer],
    n: int,
    start: date,
    *,
    config: Optional[SyntheticConfig] = None,
) -> List[Order]:
    """Generate ``n`` orders skewed towards a small group of power users.

    Orders are not constrained to follow a customer's signup date.
    """

    if n <= 0 or not customers:
        return []
    config = config or SyntheticConfig()
    rng = random.Random(config.seed)

    ids = sorted(c.customer_id for c in customers)
    power_users = ids[: config.power_user_count]
    others = ids[config.power_user_count :] or power_users

    orders: List[Order] = []
    for order_id in range(1, n + 1):
        if power_users and rng.random() < config.power_user_share:
            customer_id = rng.choice(power_users)
        else:
            customer_id = rng.choice(others)
        amount = config.min_order_amount + rng.random() * config.order_amount_spread
        orders.append(
            Order(
                order_id=order_id,
                customer_id=customer_id,
                order_date=start + timedelta(days=rng.randint(0, config.window_days)),
                order_amount=Decimal(str(round(amount, 2))),
                payment_method=_biased_choice(rng, PAYMENT_BIAS, PaymentMethod.COD),
            )
        )
    return orders


def generate_order_items(
    orders: Sequence[Order],
    *,
    seed: Optional[int] = None,
    max_items_per_order: int = 3,
) -> List[OrderItem]:
    """Generate 1..``max_items_per_order`` line items for every order.

    Item prices are sampled independently of ``order_amount``.
    """

    if max_items_per_order < 1:
        raise ValueError(
            f"max_items_per_order must be >= 1, got {max_items_per_order}"
        )
    rng = random.Random(seed)
    items: List[OrderItem] = []
    item_id = 1
    for order in orders:
        for _line in range(rng.randint(1, max_items_per_order)):
            items.append(
                OrderItem(
                    order_item_id=item_id,
                    order_id=order.order_id,
                    product_category=_biased_choice(rng, CATEGORY_BIAS, "Sports"),
                    quantity=rng.randint(1, 3),
                    price=Decimal(str(round(300 + rng.random() * 3000, 2))),
                )
            )
            item_id += 1
    return items


def generate_snapshot(
    n_customers: int = 100,
    n_orders: int = 700,
    start: date = date(2023, 1, 1),
    *,
    seed: Optional[int] = None,
) -> AuditSnapshot:
    """Generate a complete, referentially valid snapshot."""

    customers = generate_customers(n_customers, start)
    orders = generate_orders(
        customers, n_orders, start, config=SyntheticConfig(seed=seed)
    )
    items = generate_order_items(orders, seed=None if seed is None else seed + 1)
    return AuditSnapshot.from_records(customers, orders, items)


def sample_source() -> InMemorySource:
    """Small hand-written dataset: 8 customers, 12 orders, 12 order items."""

    customers = [
        Customer(1, "Amit", date(2023, 1, 10), "Delhi"),
        Customer(2, "Riya", date(2023, 1, 15), "Mumbai"),
        Customer(3, "Karan", date(2023, 2, 1), "Delhi"),
        Customer(4, "Sneha", date(2023, 2, 10), "Bangalore"),
        Customer(5, "Arjun", date(2023, 3, 5), "Mumbai"),
        Customer(6, "Neha", date(2023, 3, 12), "Delhi"),
        Customer(7, "Rahul", date(2023, 4, 1), "Pune"),
        Customer(8, "Ananya", date(2023, 4, 18), "Bangalore"),
    ]
    order_rows = [
        (101, 1, date(2023, 1, 15), "2500", "UPI"),
        (102, 2, date(2023, 1, 20), "1800", "Card"),
        (103, 1, date(2023, 2, 5), "3200", "UPI"),
        (104, 3, date(2023, 2, 10), "1500", "COD"),
        (105, 4, date(2023, 2, 20), "4000", "Card"),
        (106, 2, date(2023, 3, 1), "2200", "UPI"),
        (107, 5, date(2023, 3, 15), "2700", "Card"),
        (108, 1, date(2023, 4, 2), "3500", "UPI"),
        (109, 6, date(2023, 4, 10), "1600", "COD"),
        (110, 7, date(2023, 4, 20), "2900", "Card"),
        (111, 2, date(2023, 5, 1), "3100", "UPI"),
        (112, 8, date(2023, 5, 10), "2600", "Card"),
    ]
    orders = [
        Order(order_id, customer_id, order_date, Decimal(amount), PaymentMethod(method))
        for order_id, customer_id, order_date, amount, method in order_rows
    ]
    item_rows = [
        (1, 101, "Electronics", 1, "2500"),
        (2, 102, "Fashion", 2, "900"),
        (3, 103, "Electronics", 1, "3200"),
        (4, 104, "Home", 1, "1500"),
        (5, 105, "Electronics", 2, "2000"),
        (6, 106, "Beauty", 2, "1100"),
        (7, 107, "Fashion", 3, "900"),
        (8, 108, "Electronics", 1, "3500"),
        (9, 109, "Home", 1, "1600"),
        (10, 110, "Sports", 2, "1450"),
        (11, 111, "Electronics", 1, "3100"),
        (12, 112, "Fashion", 2, "1300"),
    ]
    items = [
        OrderItem(item_id, order_id, category, quantity, Decimal(price))
        for item_id, order_id, category, quantity, price in item_rows
    ]
    return InMemorySource(customers=customers, orders=orders, order_items=items)


def sample_snapshot() -> AuditSnapshot:
    source = sample_source()
    return AuditSnapshot.from_records(
        source.customers, source.orders, source.order_items
    )
