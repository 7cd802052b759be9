"""
Tests for the order aggregate through SettlementService.

Each call is one committed transaction, so state is checked the way the
next request would see it.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rest_api.models import Order, Product, Table
from rest_api.services.domain import (
    DuplicateOpenOrderError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStatusError,
    InvalidTransitionError,
    ItemNotFoundError,
    OrderNotFoundError,
    OrderNotPayableError,
    ProductNotFoundError,
    TableNotFoundError,
    TableOccupiedError,
)
from tests.conftest import SUPERVISOR_PASSWORD


def _reload(db_session, model, id):
    db_session.expire_all()
    return db_session.get(model, id)


class TestCreateOrder:

    def test_table_order_occupies_table(self, db_session, service, seed, actor):
        order = service.create_order(table_id=1, waiter_id=4, actor=actor)

        assert order.status == "OPEN"
        assert order.kind == "TABLE"
        assert order.total_cents == 0
        assert _reload(db_session, Table, 1).status == "OCCUPIED"

    def test_counter_order_without_table(self, db_session, service, seed):
        order = service.create_order(customer_name="Ana")

        assert order.kind == "COUNTER"
        assert order.table_id is None

    def test_second_order_on_same_table_is_rejected(self, db_session, service, seed):
        first = service.create_order(table_id=1)

        with pytest.raises(DuplicateOpenOrderError) as exc_info:
            service.create_order(table_id=1)

        assert exc_info.value.existing_order_id == first.id
        assert exc_info.value.payload["pedido_id"] == first.id
        assert db_session.query(Order).count() == 1

    def test_unknown_table(self, service, seed):
        with pytest.raises(TableNotFoundError):
            service.create_order(table_id=99)

    def test_table_is_reusable_after_close(self, service, seed):
        first = service.create_order(table_id=1)
        service.close_order(first.id)

        second = service.create_order(table_id=1)
        assert second.id != first.id


class TestAddItem:

    def test_first_item_moves_order_to_production(self, db_session, service, seed):
        order = service.create_order(table_id=1)

        item = service.add_item(order.id, 1, 2, note="sem cebola")

        order = _reload(db_session, Order, order.id)
        assert order.status == "IN_PRODUCTION"
        assert item.product_name == "Burger"
        assert item.unit_price_cents == 2500
        assert item.subtotal_cents == 5000
        assert order.subtotal_cents == 5000
        assert order.total_cents == 5000
        assert _reload(db_session, Product, 1).stock_quantity == 8

    def test_price_is_snapshotted(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        item = service.add_item(order.id, 2, 1)

        product = db_session.get(Product, 2)
        product.price_cents = 900
        db_session.commit()

        assert _reload(db_session, Order, order.id).items[0].unit_price_cents == 500
        assert item.unit_price_cents == 500

    def test_insufficient_stock_writes_nothing(self, db_session, service, seed):
        order = service.create_order(table_id=1)

        with pytest.raises(InsufficientStockError):
            service.add_item(order.id, 3, 2)

        order = _reload(db_session, Order, order.id)
        assert order.items == []
        assert order.status == "OPEN"
        assert _reload(db_session, Product, 3).stock_quantity == 1

    def test_rejects_bad_quantity_and_unknown_product(self, service, seed):
        order = service.create_order(table_id=1)

        with pytest.raises(InvalidQuantityError):
            service.add_item(order.id, 1, 0)
        with pytest.raises(ProductNotFoundError):
            service.add_item(order.id, 999, 1)
        with pytest.raises(ProductNotFoundError):
            service.add_item(order.id, 4, 1)

    def test_unknown_order(self, service, seed):
        with pytest.raises(OrderNotFoundError):
            service.add_item(12345, 1, 1)

    def test_ready_order_goes_back_to_production(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        item = service.add_item(order.id, 2, 1)
        service.update_item_status(order.id, item.id, "READY")

        service.add_item(order.id, 2, 1)

        assert _reload(db_session, Order, order.id).status == "IN_PRODUCTION"

    def test_terminal_order_rejects_items(self, service, seed, seed_users):
        order = service.create_order(table_id=1)
        service.cancel_order(order.id, "cliente desistiu", seed_users["MANAGER"].id, SUPERVISOR_PASSWORD)

        with pytest.raises(OrderNotPayableError):
            service.add_item(order.id, 2, 1)


class TestItemStatus:

    def test_all_items_done_makes_order_ready(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        burger = service.add_item(order.id, 1, 1)
        soda = service.add_item(order.id, 2, 1)

        first = service.update_item_status(order.id, burger.id, "PREPARING")
        assert first.order_ready is False

        service.update_item_status(order.id, burger.id, "READY")
        result = service.update_item_status(order.id, soda.id, "DELIVERED")

        assert result.order_ready is True
        assert _reload(db_session, Order, order.id).status == "READY"

    def test_cancelling_item_restores_stock_and_totals(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        burger = service.add_item(order.id, 1, 3)
        service.add_item(order.id, 2, 1)

        service.update_item_status(order.id, burger.id, "CANCELLED")

        order = _reload(db_session, Order, order.id)
        assert order.total_cents == 500
        assert _reload(db_session, Product, 1).stock_quantity == 10

    def test_pending_item_can_be_marked_ready(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        item = service.add_item(order.id, 2, 1)

        result = service.update_item_status(order.id, item.id, "READY")

        assert result.item.status == "READY"
        assert result.order_ready is True

    def test_same_status_is_a_no_op(self, service, seed):
        order = service.create_order(table_id=1)
        item = service.add_item(order.id, 2, 1)

        result = service.update_item_status(order.id, item.id, "PENDING")

        assert result.item.status == "PENDING"
        assert result.order_ready is False

    def test_illegal_transitions(self, service, seed):
        order = service.create_order(table_id=1)
        item = service.add_item(order.id, 2, 1)
        service.update_item_status(order.id, item.id, "DELIVERED")

        with pytest.raises(InvalidTransitionError) as exc_info:
            service.update_item_status(order.id, item.id, "PREPARING")
        assert exc_info.value.payload["status_atual"] == "DELIVERED"

    def test_unknown_status_and_item(self, service, seed):
        order = service.create_order(table_id=1)
        item = service.add_item(order.id, 2, 1)

        with pytest.raises(InvalidStatusError):
            service.update_item_status(order.id, item.id, "BURNT")
        with pytest.raises(ItemNotFoundError):
            service.update_item_status(order.id, 999, "READY")


class TestRemoveItem:

    def test_remove_restores_stock_and_totals(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        burger = service.add_item(order.id, 1, 2)
        service.add_item(order.id, 2, 2)

        removed = service.remove_item(order.id, burger.id)

        order = _reload(db_session, Order, order.id)
        assert removed.id == burger.id
        assert [i.product_id for i in order.items] == [2]
        assert order.total_cents == 1000
        assert _reload(db_session, Product, 1).stock_quantity == 10

    def test_removing_cancelled_item_does_not_credit_twice(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        burger = service.add_item(order.id, 1, 2)
        service.update_item_status(order.id, burger.id, "CANCELLED")

        service.remove_item(order.id, burger.id)

        assert _reload(db_session, Product, 1).stock_quantity == 10

    def test_removing_last_pending_item_can_make_order_ready(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        done = service.add_item(order.id, 2, 1)
        pending = service.add_item(order.id, 2, 1)
        service.update_item_status(order.id, done.id, "DELIVERED")

        service.remove_item(order.id, pending.id)

        assert _reload(db_session, Order, order.id).status == "READY"

    def test_unknown_item(self, service, seed):
        order = service.create_order(table_id=1)
        with pytest.raises(ItemNotFoundError):
            service.remove_item(order.id, 999)


class TestTransfer:

    def test_moves_order_and_swaps_table_status(self, db_session, service, seed):
        order = service.create_order(table_id=1)

        moved = service.transfer_order(order.id, 2)

        assert moved.table_id == 2
        assert _reload(db_session, Table, 1).status == "FREE"
        assert _reload(db_session, Table, 2).status == "OCCUPIED"

    def test_counter_order_becomes_table_order(self, service, seed):
        order = service.create_order()

        moved = service.transfer_order(order.id, 3)

        assert moved.kind == "TABLE"
        assert moved.table_id == 3

    def test_destination_must_be_free(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        service.create_order(table_id=2)
        service.set_table_status(3, "RESERVED")

        with pytest.raises(TableOccupiedError):
            service.transfer_order(order.id, 2)
        with pytest.raises(TableOccupiedError):
            service.transfer_order(order.id, 3)
        with pytest.raises(TableOccupiedError):
            service.transfer_order(order.id, 1)
        assert _reload(db_session, Order, order.id).table_id == 1


class TestKitchenQueue:

    def test_lists_pending_work_only(self, service, seed):
        order = service.create_order(table_id=1)
        burger = service.add_item(order.id, 1, 1)
        soda = service.add_item(order.id, 2, 2)
        service.update_item_status(order.id, soda.id, "READY")

        queue = service.kitchen_queue()

        assert [row["item_id"] for row in queue] == [burger.id]
        assert queue[0]["table_number"] == "1"
        assert queue[0]["wait_minutes"] >= 0

    def test_cancelled_orders_leave_the_queue(self, service, seed, seed_users):
        order = service.create_order(table_id=1)
        service.add_item(order.id, 1, 1)
        service.cancel_order(order.id, None, seed_users["MANAGER"].id, SUPERVISOR_PASSWORD)

        assert service.kitchen_queue() == []


class TestListOrders:

    def test_filters_by_status_and_table(self, service, seed, seed_users):
        first = service.create_order(table_id=1)
        second = service.create_order(table_id=2)
        service.add_item(second.id, 2, 1)
        cancelled = service.create_order(table_id=3)
        service.cancel_order(cancelled.id, None, seed_users["MANAGER"].id, SUPERVISOR_PASSWORD)

        orders, total = service.list_orders(status="OPEN")
        assert [o.id for o in orders] == [first.id]
        assert total == 1

        orders, total = service.list_orders(table_id=2)
        assert [o.id for o in orders] == [second.id]

        orders, total = service.list_orders()
        assert [o.id for o in orders] == [cancelled.id, second.id, first.id]
        assert total == 3

    def test_pages(self, service, seed):
        ids = [service.create_order(table_id=t).id for t in (1, 2, 3)]

        orders, total = service.list_orders(offset=2, limit=2)

        assert total == 3
        assert [o.id for o in orders] == [ids[0]]

    def test_date_range_is_inclusive_utc_days(self, service, seed):
        order = service.create_order(table_id=1)
        today = datetime.now(timezone.utc).date()

        orders, _ = service.list_orders(date_from=today, date_to=today)
        assert [o.id for o in orders] == [order.id]

        orders, total = service.list_orders(date_from=today + timedelta(days=1))
        assert orders == [] and total == 0

    def test_unknown_status(self, service, seed):
        with pytest.raises(InvalidStatusError):
            service.list_orders(status="ABERTO")
