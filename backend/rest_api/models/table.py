"""
Floor Models: Area, Table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigId, Base, TimestampMixin

if TYPE_CHECKING:
    from .order import Order


class Area(TimestampMixin, Base):
    """A dining area ("Salão", "Varanda") grouping tables."""

    __tablename__ = "area"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    tables: Mapped[list["Table"]] = relationship(back_populates="area")


class Table(TimestampMixin, Base):
    """
    Physical table.

    status mirrors the order lifecycle: OCCUPIED while a non-terminal order
    points at it, FREE after close/cancel/transfer. RESERVED is only set by
    the administrative toggle.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)  # "7", "BAL"
    capacity: Mapped[int] = mapped_column(Integer, default=4)
    area_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("area.id", ondelete="SET NULL"), index=True
    )
    status: Mapped[str] = mapped_column(Text, default="FREE", nullable=False, index=True)  # FREE, OCCUPIED, RESERVED

    area: Mapped[Optional["Area"]] = relationship(back_populates="tables")
    orders: Mapped[list["Order"]] = relationship(back_populates="table")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_table_capacity_positive"),
        Index("ix_table_area_status", "area_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, number='{self.number}', status={self.status})>"
