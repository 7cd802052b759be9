"""
Payment Domain Service.

Records partial payments against an order and reports the running
settlement position. Recording the final payment does not close the order:
closing stays an explicit operation so that "payment recorded" and "order
closed" remain separately auditable.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import Limits, OrderStatus, PaymentMethod
from shared.config.logging import billing_logger as logger
from shared.utils.dates import utc_day_end, utc_day_start
from rest_api.models import Order, Payment
from rest_api.services.domain.errors import (
    InvalidAmountError,
    InvalidMethodError,
    OrderAlreadyClosedError,
    OrderNotPayableError,
    OverpaymentRejectedError,
    PaymentNotFoundError,
)
from rest_api.services.domain.order_service import OrderService
from rest_api.services.domain.order_totals import paid_total_cents


@dataclass
class SettlementEnvelope:
    """Result of record_payment: the payment plus the order's new position."""

    payment: Payment
    order_total_cents: int
    paid_cents: int
    remaining_cents: int
    complete: bool


class PaymentService:
    """
    Domain service for payments.
    """

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderService(db)

    def record_payment(
        self,
        order_id: int,
        method: str,
        amount_cents: int,
        change_cents: int = 0,
        note: str | None = None,
        registered_by_id: int | None = None,
    ) -> SettlementEnvelope:
        """
        Record one payment.

        The order row is locked before the remaining balance is computed, so
        two cashiers paying the same order cannot both pass the check.
        Amounts above remaining + 1 cent raise OverpaymentRejectedError
        carrying the remaining balance.
        """
        if amount_cents is None or amount_cents <= 0:
            raise InvalidAmountError(amount_cents)
        if method not in PaymentMethod.ALL:
            raise InvalidMethodError(method, PaymentMethod.ALL)
        if change_cents is None or change_cents < 0:
            change_cents = 0

        order = self._orders.lock_order(order_id)
        if order.status in OrderStatus.TERMINAL:
            raise OrderNotPayableError(order.id, order.status)

        remaining = order.total_cents - paid_total_cents(order)
        if amount_cents > remaining + Limits.PAYMENT_TOLERANCE_CENTS:
            raise OverpaymentRejectedError(order.id, max(remaining, 0))

        payment = Payment(
            method=method,
            amount_cents=amount_cents,
            change_cents=change_cents,
            note=note,
            registered_by_id=registered_by_id,
        )
        order.payments.append(payment)
        self._db.flush()

        paid = paid_total_cents(order)
        new_remaining = order.total_cents - paid
        logger.info(
            "Payment recorded",
            payment_id=payment.id,
            order_id=order.id,
            method=method,
            amount_cents=amount_cents,
            remaining_cents=new_remaining,
        )
        return SettlementEnvelope(
            payment=payment,
            order_total_cents=order.total_cents,
            paid_cents=paid,
            remaining_cents=max(new_remaining, 0),
            complete=new_remaining <= 0,
        )

    def reverse_payment(self, payment_id: int) -> Payment:
        """
        Delete a payment. Payments of a PAID order are immutable history.
        """
        order_id = self._db.scalar(
            select(Payment.order_id).where(Payment.id == payment_id)
        )
        if order_id is None:
            raise PaymentNotFoundError(payment_id)

        order = self._orders.lock_order(order_id)
        if order.status == OrderStatus.PAID:
            raise OrderAlreadyClosedError(order.id)

        payment = next((p for p in order.payments if p.id == payment_id), None)
        if payment is None:
            raise PaymentNotFoundError(payment_id)

        order.payments.remove(payment)
        self._db.flush()

        logger.info(
            "Payment reversed",
            payment_id=payment_id,
            order_id=order.id,
            amount_cents=payment.amount_cents,
        )
        return payment

    def daily_summary(self, day: date) -> dict[str, Any]:
        """
        Payments of one (UTC) day grouped by method, plus the number of
        distinct orders and the grand total.
        """
        window = (
            Payment.created_at >= utc_day_start(day),
            Payment.created_at < utc_day_end(day),
        )

        rows = self._db.execute(
            select(
                Payment.method,
                func.count(Payment.id),
                func.coalesce(func.sum(Payment.amount_cents), 0),
            )
            .where(*window)
            .group_by(Payment.method)
            .order_by(Payment.method)
        ).all()

        order_count = self._db.scalar(
            select(func.count(func.distinct(Payment.order_id))).where(*window)
        ) or 0

        by_method = [
            {"method": method, "count": count, "total_cents": int(total)}
            for method, count, total in rows
        ]
        return {
            "date": day.isoformat(),
            "by_method": by_method,
            "order_count": order_count,
            "total_cents": sum(entry["total_cents"] for entry in by_method),
        }

    def list_payments(
        self,
        order_id: int | None = None,
        method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        offset: int = 0,
        limit: int = Limits.PAYMENT_PAGE_SIZE,
    ) -> tuple[list[Payment], int]:
        """
        Payments matching the filters, newest first, and the total count.

        Dates are inclusive UTC days. The order (and its table) is loaded
        with each payment.
        """
        if method is not None and method not in PaymentMethod.ALL:
            raise InvalidMethodError(method, PaymentMethod.ALL)

        conditions = []
        if order_id is not None:
            conditions.append(Payment.order_id == order_id)
        if method is not None:
            conditions.append(Payment.method == method)
        if date_from is not None:
            conditions.append(Payment.created_at >= utc_day_start(date_from))
        if date_to is not None:
            conditions.append(Payment.created_at < utc_day_end(date_to))

        total = self._db.scalar(
            select(func.count(Payment.id)).where(*conditions)
        ) or 0
        payments = self._db.execute(
            select(Payment)
            .where(*conditions)
            .options(selectinload(Payment.order).selectinload(Order.table))
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        return list(payments), total
