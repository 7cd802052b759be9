"""
Outbox service for transactional event publishing.

Events are added to the same session as the order/payment change that
produced them, so they commit (or roll back) together. The outbox processor
publishes them to Redis afterwards.

Example:
    with transactional(db):
        order = orders.close_order(order_id)
        write_order_event(db, ORDER_CLOSED, order, actor=actor)
    # order and event are saved atomically
"""

import json
from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import Order, OrderItem, OutboxEvent, OutboxStatus, Payment, Table
from shared.utils.money import format_cents
from shared.config.logging import get_logger

logger = get_logger(__name__)


def write_outbox_event(
    db: Session,
    event_type: str,
    aggregate_type: str,
    aggregate_id: int,
    payload: dict[str, Any],
) -> OutboxEvent:
    """
    Queue an event in the outbox table.

    MUST be called inside the business operation's transaction. Does not
    flush or commit.
    """
    outbox_event = OutboxEvent(
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        payload=json.dumps(payload, default=str),
        status=OutboxStatus.PENDING,
        retry_count=0,
    )
    db.add(outbox_event)
    logger.debug(
        "Outbox event queued",
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
    )
    return outbox_event


# =============================================================================
# Entity snapshots (event payload bodies)
# =============================================================================


def order_snapshot(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "table_id": order.table_id,
        "kind": order.kind,
        "status": order.status,
        "customer_name": order.customer_name,
        "subtotal": format_cents(order.subtotal_cents),
        "service_charge": format_cents(order.service_charge_cents),
        "discount": format_cents(order.discount_cents),
        "total": format_cents(order.total_cents),
    }


def item_snapshot(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "order_id": item.order_id,
        "product_id": item.product_id,
        "product_name": item.product_name,
        "quantity": item.quantity,
        "note": item.note,
        "status": item.status,
    }


def payment_snapshot(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "order_id": payment.order_id,
        "method": payment.method,
        "amount": format_cents(payment.amount_cents),
    }


# =============================================================================
# Convenience writers
# =============================================================================


def write_order_event(
    db: Session,
    event_type: str,
    order: Order,
    actor: dict[str, Any] | None = None,
    **extra: Any,
) -> OutboxEvent:
    """Order-level event (created, ready, closed, cancelled, ...)."""
    entity = {"order": order_snapshot(order), **extra}
    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="order",
        aggregate_id=order.id,
        payload={
            "order_id": order.id,
            "table_id": order.table_id,
            "entity": entity,
            "actor": actor or {},
        },
    )


def write_item_event(
    db: Session,
    event_type: str,
    order: Order,
    item: OrderItem,
    actor: dict[str, Any] | None = None,
) -> OutboxEvent:
    """Item event for the kitchen display (added, updated, removed)."""
    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="order",
        aggregate_id=order.id,
        payload={
            "order_id": order.id,
            "table_id": order.table_id,
            "entity": {"item": item_snapshot(item), "order": order_snapshot(order)},
            "actor": actor or {},
        },
    )


def write_payment_event(
    db: Session,
    event_type: str,
    order: Order,
    payment: Payment,
    actor: dict[str, Any] | None = None,
    **extra: Any,
) -> OutboxEvent:
    """Payment recorded/reversed."""
    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="payment",
        aggregate_id=payment.id,
        payload={
            "order_id": order.id,
            "table_id": order.table_id,
            "entity": {"payment": payment_snapshot(payment), "order": order_snapshot(order), **extra},
            "actor": actor or {},
        },
    )


def write_table_event(
    db: Session,
    event_type: str,
    table: Table,
    actor: dict[str, Any] | None = None,
) -> OutboxEvent:
    """Table status change."""
    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="table",
        aggregate_id=table.id,
        payload={
            "order_id": None,
            "table_id": table.id,
            "entity": {"table": {"id": table.id, "number": table.number, "status": table.status}},
            "actor": actor or {},
        },
    )
