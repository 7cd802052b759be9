"""
Order totals: the single place where an order's derived money fields are
computed.

total = subtotal(live items) + service_charge - discount, floored at 0.
Cancelled items do not count towards the subtotal.
"""

from dataclasses import dataclass
from typing import Iterable, Protocol

from shared.config.constants import ItemStatus


class _PricedLine(Protocol):
    quantity: int
    unit_price_cents: int
    status: str


@dataclass(frozen=True)
class OrderTotals:
    subtotal_cents: int
    service_charge_cents: int
    discount_cents: int
    total_cents: int


def line_subtotal(quantity: int, unit_price_cents: int) -> int:
    return quantity * unit_price_cents


def compute_order_totals(
    items: Iterable[_PricedLine],
    service_charge_cents: int = 0,
    discount_cents: int = 0,
) -> OrderTotals:
    subtotal = sum(
        line_subtotal(item.quantity, item.unit_price_cents)
        for item in items
        if item.status != ItemStatus.CANCELLED
    )
    total = max(subtotal + service_charge_cents - discount_cents, 0)
    return OrderTotals(
        subtotal_cents=subtotal,
        service_charge_cents=service_charge_cents,
        discount_cents=discount_cents,
        total_cents=total,
    )


def apply_order_totals(order) -> OrderTotals:
    """Recompute from order.items and write the result onto the order."""
    totals = compute_order_totals(
        order.items,
        order.service_charge_cents or 0,
        order.discount_cents or 0,
    )
    order.subtotal_cents = totals.subtotal_cents
    order.total_cents = totals.total_cents
    return totals


def paid_total_cents(order) -> int:
    """Sum of the order's live (not reversed) payments."""
    return sum(payment.amount_cents for payment in order.payments)


def remaining_cents(order) -> int:
    """What is still owed. Negative when the order is overpaid."""
    return order.total_cents - paid_total_cents(order)
