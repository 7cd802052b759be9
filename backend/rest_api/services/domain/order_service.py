"""
Order Domain Service.

Owns the order aggregate: creation, the item sub-ledger, derived totals and
status transitions.

    OPEN --(first item)--> IN_PRODUCTION --(all items done)--> READY
    any active --(close, payments >= total)--> PAID
    any active --(cancel)--> CANCELLED

Methods never commit. They lock the order row first, mutate, flush, and
leave commit/rollback to the caller's transaction (see SettlementService).
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import (
    ITEM_TRANSITIONS,
    ItemStatus,
    Limits,
    OrderKind,
    OrderStatus,
    TableStatus,
)
from shared.config.logging import get_logger
from shared.utils.dates import utc_day_end, utc_day_start
from rest_api.models import Order, OrderItem, Table
from rest_api.services.domain.errors import (
    AlreadyPaidError,
    DuplicateOpenOrderError,
    IncompletePaymentError,
    InvalidAmountError,
    InvalidQuantityError,
    InvalidStatusError,
    InvalidTransitionError,
    ItemNotFoundError,
    OrderNotFoundError,
    OrderNotPayableError,
    OverpaymentRejectedError,
    TableOccupiedError,
)
from rest_api.services.domain.order_totals import (
    apply_order_totals,
    line_subtotal,
    paid_total_cents,
    remaining_cents,
)
from rest_api.services.domain.stock_ledger import StockLedger
from rest_api.services.domain.table_service import TableService

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ItemStatusResult:
    item: OrderItem
    order: Order
    order_ready: bool


@dataclass
class TransferResult:
    order: Order
    source_table_id: int | None
    destination_table_id: int


class OrderService:
    """
    Domain service for the order aggregate and its items.
    """

    def __init__(self, db: Session):
        self._db = db
        self._stock = StockLedger(db)
        self._tables = TableService(db)

    # =========================================================================
    # Loading
    # =========================================================================

    def get_order(self, order_id: int) -> Order:
        """Read an order with items and payments. No lock."""
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items), selectinload(Order.payments))
        )
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def lock_order(self, order_id: int) -> Order:
        """Load the order row under a write lock, refreshing any cached copy."""
        order = self._db.get(
            Order, order_id, with_for_update=True, populate_existing=True
        )
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    @staticmethod
    def _ensure_active(order: Order) -> None:
        if order.status in OrderStatus.TERMINAL:
            raise OrderNotPayableError(order.id, order.status)

    @staticmethod
    def _find_item(order: Order, item_id: int) -> OrderItem:
        for item in order.items:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(item_id, order.id)

    @staticmethod
    def _refresh_readiness(order: Order) -> bool:
        """Move an active order to READY once every item is done."""
        if order.status in (*OrderStatus.TERMINAL, OrderStatus.READY) or not order.items:
            return False
        if all(item.status in ItemStatus.DONE for item in order.items):
            order.status = OrderStatus.READY
            return True
        return False

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(
        self,
        table_id: int | None = None,
        kind: str | None = None,
        customer_name: str | None = None,
        note: str | None = None,
        waiter_id: int | None = None,
    ) -> Order:
        """
        Open a new order.

        A table may hold only one active order: a second one raises
        DuplicateOpenOrderError carrying the existing order id. The table is
        locked for the check and flipped to OCCUPIED in the same transaction.
        """
        if kind is None:
            kind = OrderKind.TABLE if table_id is not None else OrderKind.COUNTER
        if kind not in OrderKind.ALL:
            raise InvalidStatusError(kind, OrderKind.ALL)

        table: Table | None = None
        if table_id is not None:
            table = self._tables.lock_table(table_id)
            existing_id = self._tables.active_order_id(table_id)
            if existing_id is not None:
                raise DuplicateOpenOrderError(existing_id, table_id)

        order = Order(
            table_id=table_id,
            kind=kind,
            customer_name=customer_name,
            note=note,
            status=OrderStatus.OPEN,
            subtotal_cents=0,
            service_charge_cents=0,
            discount_cents=0,
            total_cents=0,
            waiter_id=waiter_id,
            opened_at=_utcnow(),
        )
        self._db.add(order)
        if table is not None:
            self._tables.occupy(table)
        self._db.flush()

        logger.info(
            "Order created",
            order_id=order.id,
            table_id=table_id,
            kind=kind,
            waiter_id=waiter_id,
        )
        return order

    # =========================================================================
    # Items
    # =========================================================================

    def add_item(
        self,
        order_id: int,
        product_id: int,
        quantity: int,
        note: str | None = None,
    ) -> OrderItem:
        """
        Add a product line, reserving its stock.

        All-or-nothing: on InsufficientStockError nothing is written. A new
        item puts OPEN and READY orders (back) into production.
        """
        if not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantityError(quantity)

        order = self.lock_order(order_id)
        self._ensure_active(order)

        product = self._stock.reserve(product_id, quantity)

        item = OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price_cents=product.price_cents,
            subtotal_cents=line_subtotal(quantity, product.price_cents),
            note=note,
            status=ItemStatus.PENDING,
        )
        order.items.append(item)
        apply_order_totals(order)

        if order.status in (OrderStatus.OPEN, OrderStatus.READY):
            order.status = OrderStatus.IN_PRODUCTION

        self._db.flush()
        logger.info(
            "Item added",
            order_id=order.id,
            item_id=item.id,
            product_id=product.id,
            quantity=quantity,
            total_cents=order.total_cents,
        )
        return item

    def update_item_status(self, order_id: int, item_id: int, status: str) -> ItemStatusResult:
        """
        Kitchen/floor status change for one item.

        Cancelling an item credits its stock back and drops it from the
        totals. Setting an item to its current status is a no-op.
        """
        if status not in ItemStatus.ALL:
            raise InvalidStatusError(status, ItemStatus.ALL)

        order = self.lock_order(order_id)
        item = self._find_item(order, item_id)

        if item.status == status:
            return ItemStatusResult(item=item, order=order, order_ready=False)

        if order.status == OrderStatus.CANCELLED:
            raise OrderNotPayableError(order.id, order.status)
        if status == ItemStatus.CANCELLED and order.status == OrderStatus.PAID:
            # Settled totals are history
            raise OrderNotPayableError(order.id, order.status)
        if status not in ITEM_TRANSITIONS[item.status]:
            raise InvalidTransitionError(item.status, status)

        previous = item.status
        item.status = status
        if status == ItemStatus.CANCELLED:
            self._stock.release(item.product_id, item.quantity)
            apply_order_totals(order)

        order_ready = self._refresh_readiness(order)
        self._db.flush()

        logger.info(
            "Item status updated",
            order_id=order.id,
            item_id=item.id,
            previous=previous,
            status=status,
            order_ready=order_ready,
        )
        return ItemStatusResult(item=item, order=order, order_ready=order_ready)

    def remove_item(self, order_id: int, item_id: int) -> OrderItem:
        """
        Hard-delete an item line.

        Stock is credited back unless the item was already cancelled (its
        stock was returned at cancellation).
        """
        order = self.lock_order(order_id)
        self._ensure_active(order)
        item = self._find_item(order, item_id)

        if item.status != ItemStatus.CANCELLED:
            self._stock.release(item.product_id, item.quantity)

        order.items.remove(item)
        apply_order_totals(order)
        self._refresh_readiness(order)
        self._db.flush()

        logger.info(
            "Item removed",
            order_id=order.id,
            item_id=item_id,
            quantity=item.quantity,
            total_cents=order.total_cents,
        )
        return item

    def set_charges(
        self,
        order_id: int,
        service_charge_cents: int | None = None,
        discount_cents: int | None = None,
    ) -> Order:
        """Set service charge and/or discount and recompute the total."""
        for value in (service_charge_cents, discount_cents):
            if value is not None and value < 0:
                raise InvalidAmountError(value, "Charges cannot be negative")

        order = self.lock_order(order_id)
        self._ensure_active(order)

        if service_charge_cents is not None:
            order.service_charge_cents = service_charge_cents
        if discount_cents is not None:
            order.discount_cents = discount_cents
        apply_order_totals(order)

        if remaining_cents(order) < 0:
            raise OverpaymentRejectedError(order.id, remaining_cents(order))

        self._db.flush()
        logger.info(
            "Order charges set",
            order_id=order.id,
            service_charge_cents=order.service_charge_cents,
            discount_cents=order.discount_cents,
            total_cents=order.total_cents,
        )
        return order

    # =========================================================================
    # Terminal transitions
    # =========================================================================

    def close_order(self, order_id: int) -> Order:
        """Settle the order. Requires payments covering the total."""
        order = self.lock_order(order_id)
        self._ensure_active(order)

        remaining = remaining_cents(order)
        if remaining > 0:
            raise IncompletePaymentError(order.id, remaining)

        order.status = OrderStatus.PAID
        order.closed_at = _utcnow()
        self._tables.free(order.table_id)
        self._db.flush()

        logger.info(
            "Order closed",
            order_id=order.id,
            table_id=order.table_id,
            total_cents=order.total_cents,
            paid_cents=paid_total_cents(order),
        )
        return order

    def cancel_order(self, order_id: int, reason: str | None, cancelled_by: str) -> Order:
        """
        Cancel an unpaid order.

        Authorization is the caller's precondition. Every item that is not
        already cancelled gets its stock back; the audit line is appended to
        the order note.
        """
        order = self.lock_order(order_id)
        if order.status == OrderStatus.PAID:
            raise AlreadyPaidError(order.id)
        self._ensure_active(order)

        for item in order.items:
            if item.status != ItemStatus.CANCELLED:
                self._stock.release(item.product_id, item.quantity)

        audit = f"CANCELLED by {cancelled_by}: {reason or 'no reason given'}"
        order.note = f"{order.note} | {audit}" if order.note else audit
        order.status = OrderStatus.CANCELLED
        order.closed_at = _utcnow()
        self._tables.free(order.table_id)
        self._db.flush()

        logger.info(
            "Order cancelled",
            order_id=order.id,
            table_id=order.table_id,
            cancelled_by=cancelled_by,
        )
        return order

    def transfer_order(self, order_id: int, destination_table_id: int) -> TransferResult:
        """
        Move an active order to a FREE table.

        Source is freed and destination occupied in the same transaction.
        A counter order moved onto a table becomes a TABLE order.
        """
        order = self.lock_order(order_id)
        self._ensure_active(order)

        destination = self._tables.lock_table(destination_table_id)
        if destination.id == order.table_id:
            raise TableOccupiedError(destination.id, destination.status)
        if destination.status != TableStatus.FREE:
            raise TableOccupiedError(destination.id, destination.status)
        if self._tables.active_order_id(destination.id) is not None:
            raise TableOccupiedError(destination.id, TableStatus.OCCUPIED)

        source_table_id = order.table_id
        self._tables.free(source_table_id)
        self._tables.occupy(destination)
        order.table_id = destination.id
        order.kind = OrderKind.TABLE
        self._db.flush()

        logger.info(
            "Order transferred",
            order_id=order.id,
            source_table_id=source_table_id,
            destination_table_id=destination.id,
        )
        return TransferResult(
            order=order,
            source_table_id=source_table_id,
            destination_table_id=destination.id,
        )

    # =========================================================================
    # Listing
    # =========================================================================

    def list_orders(
        self,
        status: str | None = None,
        table_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        offset: int = 0,
        limit: int = Limits.DEFAULT_PAGE_SIZE,
    ) -> tuple[list[Order], int]:
        """
        Orders matching the filters, newest first, and the total count.

        Dates filter on opened_at and are inclusive UTC days.
        """
        if status is not None and status not in OrderStatus.ALL:
            raise InvalidStatusError(status, OrderStatus.ALL)

        conditions = []
        if status is not None:
            conditions.append(Order.status == status)
        if table_id is not None:
            conditions.append(Order.table_id == table_id)
        if date_from is not None:
            conditions.append(Order.opened_at >= utc_day_start(date_from))
        if date_to is not None:
            conditions.append(Order.opened_at < utc_day_end(date_to))

        total = self._db.scalar(select(func.count(Order.id)).where(*conditions)) or 0
        orders = self._db.execute(
            select(Order)
            .where(*conditions)
            .options(
                selectinload(Order.items),
                selectinload(Order.payments),
                selectinload(Order.table),
            )
            .order_by(Order.opened_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        return list(orders), total

    # =========================================================================
    # Kitchen queue
    # =========================================================================

    def kitchen_queue(self) -> list[dict[str, Any]]:
        """
        Items the kitchen still has to work on, oldest first.

        Only PENDING/PREPARING items of OPEN/IN_PRODUCTION orders.
        """
        rows = self._db.execute(
            select(OrderItem, Order, Table.number)
            .join(Order, OrderItem.order_id == Order.id)
            .outerjoin(Table, Order.table_id == Table.id)
            .where(
                OrderItem.status.in_(ItemStatus.KITCHEN_QUEUE),
                Order.status.in_(OrderStatus.KITCHEN_VISIBLE),
            )
            .order_by(OrderItem.created_at.asc(), OrderItem.id.asc())
        ).all()

        now = _utcnow()
        queue = []
        for item, order, table_number in rows:
            created_at = item.created_at
            if created_at is not None and created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            wait_minutes = (
                int((now - created_at).total_seconds() // 60) if created_at else 0
            )
            queue.append(
                {
                    "item_id": item.id,
                    "order_id": order.id,
                    "table_number": table_number,
                    "kind": order.kind,
                    "customer_name": order.customer_name,
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "note": item.note,
                    "status": item.status,
                    "created_at": item.created_at,
                    "wait_minutes": max(wait_minutes, 0),
                }
            )
        return queue
