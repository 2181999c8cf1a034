"""
Analytics helpers for the dashboard: revenue, order mix, popular dishes,
session duration and bill arithmetic.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from heypaytm.schemas import Analytics, Order, PopularItem, SessionStats, TableSession

POPULAR_ITEMS_LIMIT = 5


def round_half_up(value: float) -> int:
    """Round halves up (non-negative amounts only)."""
    return int(math.floor(value + 0.5))


def order_total(items: Iterable) -> float:
    """Sum of price x quantity over line items."""
    return sum(item.price * item.quantity for item in items)


def compute_analytics(orders: Sequence[Order]) -> Analytics:
    """
    Aggregate revenue and item popularity over a list of orders.

    Popular items are ranked by summed quantity; equal counts keep the order
    in which each dish first appeared.
    """
    total_revenue = sum(order.total for order in orders)
    total_orders = len(orders)
    avg_order_value = round_half_up(total_revenue / total_orders) if total_orders > 0 else 0

    status_counts: dict[str, int] = {}
    for order in orders:
        status_counts[order.status.value] = status_counts.get(order.status.value, 0) + 1

    quantities: dict[str, int] = {}
    for order in orders:
        for item in order.items:
            quantities[item.item] = quantities.get(item.item, 0) + item.quantity

    # sorted() is stable, so ties stay in first-appearance order
    ranked = sorted(quantities.items(), key=lambda entry: entry[1], reverse=True)

    return Analytics(
        total_revenue=total_revenue,
        total_orders=total_orders,
        avg_order_value=avg_order_value,
        status_counts=status_counts,
        popular_items=[
            PopularItem(name=name, count=count)
            for name, count in ranked[:POPULAR_ITEMS_LIMIT]
        ],
    )


def format_duration(ms: float) -> str:
    minutes = int(ms // 60000)
    hours = minutes // 60
    remaining_minutes = minutes % 60

    if hours > 0:
        return f"{hours}h {remaining_minutes}m"
    return f"{minutes}m"


def session_stats(session: TableSession, now: Optional[datetime] = None) -> SessionStats:
    now = now or datetime.now(timezone.utc)
    elapsed_ms = max((now - session.start_time).total_seconds() * 1000, 0)
    return SessionStats(
        order_count=len(session.orders),
        total_amount=session.total_amount,
        duration=format_duration(elapsed_ms),
    )


def bill_amounts(subtotal: float, tax_rate: float) -> tuple[float, int, float]:
    """Subtotal, rounded tax and grand total as printed on the bill."""
    tax = round_half_up(subtotal * tax_rate)
    return subtotal, tax, subtotal + tax
