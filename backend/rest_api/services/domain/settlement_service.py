"""
Settlement Coordinator.

Entry point for every order, payment and table operation. Each mutating
method is exactly one transaction:

    1. open the unit of work (transactional)
    2. run the domain service (which locks the rows it decides on)
    3. queue the outbox events in the same session
    4. commit; on any exception everything above is rolled back
    5. invalidate the read caches the change affects

Cache invalidation happens after commit and never fails the operation.
"""

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from shared.config.settings import settings
from shared.config.logging import get_logger
from shared.infrastructure.cache import (
    SUMMARY_CACHE_PREFIX,
    TABLES_CACHE_KEY,
    ReadCache,
    summary_cache_key,
)
from shared.infrastructure.db import transactional
from shared.infrastructure.events import (
    ITEM_ADDED,
    ITEM_REMOVED,
    ITEM_UPDATED,
    ORDER_CANCELLED,
    ORDER_CLOSED,
    ORDER_CREATED,
    ORDER_READY,
    ORDER_TRANSFERRED,
    ORDER_UPDATED,
    PAYMENT_RECORDED,
    PAYMENT_REVERSED,
    TABLE_UPDATED,
)
from shared.config.constants import ItemStatus, Limits
from rest_api.models import Order, OrderItem, Payment, Product, Table
from rest_api.services.domain.authorization import SupervisorVerifier
from rest_api.services.domain.order_service import ItemStatusResult, OrderService
from rest_api.services.domain.payment_service import PaymentService, SettlementEnvelope
from rest_api.services.domain.stock_ledger import StockLedger
from rest_api.services.domain.table_service import TableService
from rest_api.services.events.outbox_service import (
    write_item_event,
    write_order_event,
    write_payment_event,
    write_table_event,
)

logger = get_logger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


class SettlementService:
    """
    Sequences the order aggregate, stock ledger, payment ledger and table
    sync under one transaction per operation.
    """

    def __init__(
        self,
        db: Session,
        cache: ReadCache | None = None,
        verifier: SupervisorVerifier | None = None,
    ):
        self._db = db
        self._cache = cache
        self._verifier = verifier or SupervisorVerifier(db)
        self._orders = OrderService(db)
        self._payments = PaymentService(db)
        self._tables = TableService(db)
        self._stock = StockLedger(db)

    # =========================================================================
    # Cache
    # =========================================================================

    def _invalidate(self, *keys: str) -> None:
        """Drop cached read models after a commit. Failures are only logged."""
        if self._cache is None or not keys:
            return
        if not self._cache.invalidate(*keys):
            logger.warning("Read cache left stale after commit", keys=list(keys))

    def _invalidate_summaries(self) -> None:
        """Drop every cached daily summary; a reversal may touch any past day."""
        if self._cache is not None:
            self._cache.invalidate_pattern(f"{SUMMARY_CACHE_PREFIX}*")

    # =========================================================================
    # Order aggregate
    # =========================================================================

    def create_order(
        self,
        table_id: int | None = None,
        kind: str | None = None,
        customer_name: str | None = None,
        note: str | None = None,
        waiter_id: int | None = None,
        actor: dict[str, Any] | None = None,
    ) -> Order:
        with transactional(self._db):
            order = self._orders.create_order(
                table_id=table_id,
                kind=kind,
                customer_name=customer_name,
                note=note,
                waiter_id=waiter_id,
            )
            write_order_event(self._db, ORDER_CREATED, order, actor=actor)
            if order.table is not None:
                write_table_event(self._db, TABLE_UPDATED, order.table, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return order

    def add_item(
        self,
        order_id: int,
        product_id: int,
        quantity: int,
        note: str | None = None,
        actor: dict[str, Any] | None = None,
    ) -> OrderItem:
        with transactional(self._db):
            item = self._orders.add_item(order_id, product_id, quantity, note)
            order = item.order
            write_item_event(self._db, ITEM_ADDED, order, item, actor=actor)
            write_order_event(self._db, ORDER_UPDATED, order, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return item

    def update_item_status(
        self,
        order_id: int,
        item_id: int,
        status: str,
        actor: dict[str, Any] | None = None,
    ) -> ItemStatusResult:
        with transactional(self._db):
            result = self._orders.update_item_status(order_id, item_id, status)
            write_item_event(self._db, ITEM_UPDATED, result.order, result.item, actor=actor)
            if status == ItemStatus.CANCELLED:
                write_order_event(self._db, ORDER_UPDATED, result.order, actor=actor)
            if result.order_ready:
                write_order_event(self._db, ORDER_READY, result.order, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return result

    def remove_item(
        self,
        order_id: int,
        item_id: int,
        actor: dict[str, Any] | None = None,
    ) -> OrderItem:
        with transactional(self._db):
            item = self._orders.remove_item(order_id, item_id)
            order = self._db.get(Order, order_id)
            write_item_event(self._db, ITEM_REMOVED, order, item, actor=actor)
            write_order_event(self._db, ORDER_UPDATED, order, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return item

    def set_charges(
        self,
        order_id: int,
        service_charge_cents: int | None = None,
        discount_cents: int | None = None,
        actor: dict[str, Any] | None = None,
    ) -> Order:
        with transactional(self._db):
            order = self._orders.set_charges(order_id, service_charge_cents, discount_cents)
            write_order_event(self._db, ORDER_UPDATED, order, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return order

    def close_order(self, order_id: int, actor: dict[str, Any] | None = None) -> Order:
        with transactional(self._db):
            order = self._orders.close_order(order_id)
            write_order_event(self._db, ORDER_CLOSED, order, actor=actor)
            if order.table is not None:
                write_table_event(self._db, TABLE_UPDATED, order.table, actor=actor)

        self._invalidate(TABLES_CACHE_KEY, summary_cache_key(_today()))
        return order

    def cancel_order(
        self,
        order_id: int,
        reason: str | None,
        actor_id: int,
        password: str | None,
    ) -> Order:
        """
        Cancel an order on behalf of a supervisor.

        The supervisor's role and re-entered password are verified before
        the transaction opens; a Forbidden rejection leaves nothing behind.
        """
        supervisor = self._verifier.verify(actor_id, password)
        actor = {"user_id": supervisor.id, "role": supervisor.role}

        with transactional(self._db):
            order = self._orders.cancel_order(order_id, reason, supervisor.name)
            write_order_event(self._db, ORDER_CANCELLED, order, actor=actor, reason=reason)
            if order.table is not None:
                write_table_event(self._db, TABLE_UPDATED, order.table, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return order

    def transfer_order(
        self,
        order_id: int,
        destination_table_id: int,
        actor: dict[str, Any] | None = None,
    ) -> Order:
        with transactional(self._db):
            result = self._orders.transfer_order(order_id, destination_table_id)
            write_order_event(
                self._db,
                ORDER_TRANSFERRED,
                result.order,
                actor=actor,
                source_table_id=result.source_table_id,
                destination_table_id=result.destination_table_id,
            )
            for table_id in (result.source_table_id, result.destination_table_id):
                if table_id is not None:
                    table = self._db.get(Table, table_id)
                    write_table_event(self._db, TABLE_UPDATED, table, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return result.order

    def get_order(self, order_id: int) -> Order:
        return self._orders.get_order(order_id)

    def kitchen_queue(self) -> list[dict[str, Any]]:
        return self._orders.kitchen_queue()

    def list_orders(
        self,
        status: str | None = None,
        table_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        offset: int = 0,
        limit: int = Limits.DEFAULT_PAGE_SIZE,
    ) -> tuple[list[Order], int]:
        return self._orders.list_orders(
            status=status,
            table_id=table_id,
            date_from=date_from,
            date_to=date_to,
            offset=offset,
            limit=limit,
        )

    # =========================================================================
    # Payment ledger
    # =========================================================================

    def record_payment(
        self,
        order_id: int,
        method: str,
        amount_cents: int,
        change_cents: int = 0,
        note: str | None = None,
        actor: dict[str, Any] | None = None,
    ) -> SettlementEnvelope:
        registered_by = int(actor["user_id"]) if actor and actor.get("user_id") else None
        with transactional(self._db):
            envelope = self._payments.record_payment(
                order_id,
                method,
                amount_cents,
                change_cents=change_cents,
                note=note,
                registered_by_id=registered_by,
            )
            write_payment_event(
                self._db,
                PAYMENT_RECORDED,
                envelope.payment.order,
                envelope.payment,
                actor=actor,
                complete=envelope.complete,
            )

        self._invalidate(TABLES_CACHE_KEY, summary_cache_key(_today()))
        return envelope

    def reverse_payment(self, payment_id: int, actor: dict[str, Any] | None = None) -> Payment:
        with transactional(self._db):
            payment = self._payments.reverse_payment(payment_id)
            order = self._db.get(Order, payment.order_id)
            write_payment_event(self._db, PAYMENT_REVERSED, order, payment, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        self._invalidate_summaries()
        return payment

    def daily_summary(self, day: date | None = None) -> dict[str, Any]:
        """Per-method payment totals for a day, read through the cache."""
        day = day or _today()
        key = summary_cache_key(day)
        if self._cache is not None:
            cached = self._cache.get_json(key)
            if cached is not None:
                return cached

        summary = self._payments.daily_summary(day)
        if self._cache is not None:
            self._cache.set_json(key, summary, settings.summary_cache_ttl)
        return summary

    def list_payments(
        self,
        order_id: int | None = None,
        method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        offset: int = 0,
        limit: int = Limits.PAYMENT_PAGE_SIZE,
    ) -> tuple[list[Payment], int]:
        return self._payments.list_payments(
            order_id=order_id,
            method=method,
            date_from=date_from,
            date_to=date_to,
            offset=offset,
            limit=limit,
        )

    # =========================================================================
    # Tables
    # =========================================================================

    def set_table_status(
        self,
        table_id: int,
        status: str,
        actor: dict[str, Any] | None = None,
    ) -> Table:
        with transactional(self._db):
            table = self._tables.set_status(table_id, status)
            write_table_event(self._db, TABLE_UPDATED, table, actor=actor)

        self._invalidate(TABLES_CACHE_KEY)
        return table

    def list_tables(self) -> list[dict[str, Any]]:
        """Table map with active orders, read through the cache."""
        if self._cache is not None:
            cached = self._cache.get_json(TABLES_CACHE_KEY)
            if cached is not None:
                return cached

        tables = self._tables.list_tables()
        if self._cache is not None:
            self._cache.set_json(TABLES_CACHE_KEY, tables, settings.tables_cache_ttl)
        return tables

    def get_table(self, table_id: int) -> tuple[Table, Order | None]:
        return self._tables.get_table(table_id)

    # =========================================================================
    # Stock administration
    # =========================================================================

    def enable_stock_tracking(
        self,
        product_id: int,
        quantity: int = 0,
        minimum: int | None = None,
    ) -> Product:
        with transactional(self._db):
            return self._stock.enable_tracking(product_id, quantity, minimum)

    def disable_stock_tracking(self, product_id: int) -> Product:
        with transactional(self._db):
            return self._stock.disable_tracking(product_id)

    def adjust_stock(
        self,
        product_id: int,
        quantity: int | None = None,
        minimum: int | None = None,
    ) -> Product:
        with transactional(self._db):
            return self._stock.adjust(product_id, quantity, minimum)

    def list_stock(self, low_only: bool = False, search: str | None = None) -> list[Product]:
        return self._stock.list_tracked(low_only=low_only, search=search)

    def stock_alerts(self) -> list[Product]:
        return self._stock.low_stock_alerts()
