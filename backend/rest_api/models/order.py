"""
Order Models: Order, OrderItem.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigId, Base, TimestampMixin

if TYPE_CHECKING:
    from .billing import Payment
    from .catalog import Product
    from .table import Table
    from .user import User


class Order(TimestampMixin, Base):
    """
    A customer's running tab, bound to a table or to the counter.

    subtotal/total are derived from the live items and must only be written
    through compute_order_totals(); they are never authoritative on their own.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    table_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("restaurant_table.id", ondelete="SET NULL"), index=True
    )
    kind: Mapped[str] = mapped_column(Text, default="TABLE", nullable=False)  # TABLE, COUNTER
    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    note: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Text, default="OPEN", nullable=False, index=True
    )  # OPEN, IN_PRODUCTION, READY, PAID, CANCELLED

    subtotal_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    service_charge_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    waiter_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("app_user.id", ondelete="SET NULL"), index=True
    )
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    table: Mapped[Optional["Table"]] = relationship(back_populates="orders")
    waiter: Mapped[Optional["User"]] = relationship()
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    __table_args__ = (
        CheckConstraint("total_cents >= 0", name="chk_order_total_non_negative"),
        CheckConstraint("service_charge_cents >= 0", name="chk_order_service_non_negative"),
        CheckConstraint("discount_cents >= 0", name="chk_order_discount_non_negative"),
        # Active order lookup per table (create/transfer duplicate checks)
        Index("ix_order_table_status", "table_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, table_id={self.table_id}, status={self.status}, total={self.total_cents})>"


class OrderItem(TimestampMixin, Base):
    """
    One product line within an order.

    product_name and unit_price_cents are snapshots taken when the item is
    added. product_id is nulled if the product is later deleted; the line
    keeps its history.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("product.id", ondelete="SET NULL"), index=True
    )
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Text, default="PENDING", nullable=False, index=True
    )  # PENDING, PREPARING, READY, DELIVERED, CANCELLED

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped[Optional["Product"]] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_qty_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_item_price_non_negative"),
        # Kitchen queue ordering
        Index("ix_order_item_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, qty={self.quantity}, status={self.status})>"
