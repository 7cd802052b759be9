"""
Outbox model for transactional event publishing.

Events are written in the same transaction as the order/payment change that
produced them, then published to Redis by a background worker. A crash or a
Redis outage after commit delays notifications but never loses them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import BigId, Base


class OutboxStatus(str, Enum):
    """Status of an outbox event."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"  # claimed by a worker
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"          # gave up after max retries


class OutboxEvent(Base):
    """
    Outbox event for guaranteed delivery.

    Every state change of an order, item, payment or table writes one row
    here (ORDER_CREATED, ITEM_ADDED, PAYMENT_RECORDED, TABLE_UPDATED, ...).
    """
    __tablename__ = "outbox_event"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)

    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Routing: "order", "payment", "table"
    aggregate_type: Mapped[str] = mapped_column(String(50), nullable=False)
    aggregate_id: Mapped[int] = mapped_column(BigId, nullable=False)

    # JSON serialized
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[OutboxStatus] = mapped_column(
        SQLEnum(OutboxStatus, name="outbox_status"),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True,
    )

    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_outbox_event_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OutboxEvent(id={self.id}, type={self.event_type}, status={self.status.value})>"
