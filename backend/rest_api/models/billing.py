"""
Billing Models: Payment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigId, Base, TimestampMixin

if TYPE_CHECKING:
    from .order import Order
    from .user import User


class Payment(TimestampMixin, Base):
    """
    A payment towards an order.

    Several payments may be recorded against one order (split bills). A
    payment can only be deleted (reversed) while its order is not yet PAID.
    """

    __tablename__ = "payment"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    method: Mapped[str] = mapped_column(Text, nullable=False)  # CASH, PIX, CREDIT, DEBIT, VOUCHER
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    # Change given back for CASH payments
    change_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    registered_by_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("app_user.id", ondelete="SET NULL"), index=True
    )

    order: Mapped["Order"] = relationship(back_populates="payments")
    registered_by: Mapped[Optional["User"]] = relationship()

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="chk_payment_amount_positive"),
        CheckConstraint("change_cents >= 0", name="chk_payment_change_non_negative"),
        # Daily summary grouping
        Index("ix_payment_method_created", "method", "created_at"),
    )
    # created_at is read back for the daily summary invalidation
    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, order_id={self.order_id}, method={self.method}, amount={self.amount_cents})>"
