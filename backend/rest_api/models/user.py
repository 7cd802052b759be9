"""
User Model: staff accounts (admin, manager, cashier, waiter, kitchen).
"""

from __future__ import annotations

from sqlalchemy import Boolean, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BigId, Base, TimestampMixin


class User(TimestampMixin, Base):
    """
    A staff member.

    The password column stores a bcrypt hash. It is re-checked when a
    supervisor cancels an order.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)  # ADMIN, MANAGER, CASHIER, WAITER, KITCHEN
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_user_role_active", "role", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
