"""
Table Occupancy Sync.

Table status mirrors the order lifecycle. Order-driven transitions (occupy on
create, free on close/cancel, free+occupy on transfer) are called by the
order service inside the same transaction as the order change, never as a
follow-up step. The only direct write is the administrative toggle.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import OrderStatus, TableStatus
from shared.config.logging import get_logger
from rest_api.models import Order, Table
from rest_api.services.domain.errors import InvalidStatusError, TableNotFoundError

logger = get_logger(__name__)


class TableService:
    """Domain service for table status."""

    def __init__(self, db: Session):
        self._db = db

    def lock_table(self, table_id: int) -> Table:
        table = self._db.get(
            Table, table_id, with_for_update=True, populate_existing=True
        )
        if table is None:
            raise TableNotFoundError(table_id)
        return table

    def occupy(self, table: Table) -> None:
        table.status = TableStatus.OCCUPIED

    def free(self, table_id: int | None) -> Table | None:
        """Mark a table FREE. Counter orders (no table) are ignored."""
        if table_id is None:
            return None
        table = self._db.get(
            Table, table_id, with_for_update=True, populate_existing=True
        )
        if table is not None:
            table.status = TableStatus.FREE
        return table

    def active_order_id(self, table_id: int) -> int | None:
        """Id of the table's non-terminal order, if any."""
        return self._db.scalar(
            select(Order.id)
            .where(
                Order.table_id == table_id,
                Order.status.in_(OrderStatus.ACTIVE),
            )
            .order_by(Order.id.desc())
            .limit(1)
        )

    def get_table(self, table_id: int) -> tuple[Table, Order | None]:
        """A table and its active order (items and payments loaded), if any."""
        table = self._db.get(Table, table_id)
        if table is None:
            raise TableNotFoundError(table_id)

        order = self._db.scalar(
            select(Order)
            .where(
                Order.table_id == table_id,
                Order.status.in_(OrderStatus.ACTIVE),
            )
            .options(selectinload(Order.items), selectinload(Order.payments))
            .order_by(Order.id.desc())
            .limit(1)
        )
        return table, order

    def set_status(self, table_id: int, status: str) -> Table:
        """Administrative toggle FREE/OCCUPIED/RESERVED."""
        if status not in TableStatus.ALL:
            raise InvalidStatusError(status, TableStatus.ALL)
        table = self.lock_table(table_id)
        previous = table.status
        table.status = status
        self._db.flush()
        logger.info(
            "Table status set",
            table_id=table_id,
            previous=previous,
            status=status,
        )
        return table

    def list_tables(self) -> list[dict[str, Any]]:
        """
        All tables with their active order (id, total, opened_at).

        Read only, no locks taken.
        """
        tables = self._db.execute(select(Table).order_by(Table.number)).scalars().all()

        active_orders = {
            order.table_id: order
            for order in self._db.execute(
                select(Order).where(
                    Order.table_id.is_not(None),
                    Order.status.in_(OrderStatus.ACTIVE),
                )
            ).scalars()
        }

        result = []
        for table in tables:
            order = active_orders.get(table.id)
            result.append(
                {
                    "id": table.id,
                    "number": table.number,
                    "capacity": table.capacity,
                    "area": table.area.name if table.area else None,
                    "status": table.status,
                    "order_id": order.id if order else None,
                    "order_total_cents": order.total_cents if order else None,
                    "order_opened_at": order.opened_at if order else None,
                }
            )
        return result
