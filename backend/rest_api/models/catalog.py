"""
Catalog Models: Category, Product.

Only the fields the order engine consumes live here: price, name and the
optional stock counters. Stock is tri-state per product:
- stock_quantity IS NULL -> untracked, never blocks an order
- stock_quantity >= 0    -> tracked, gates item creation
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigId, Base, TimestampMixin


class Category(TimestampMixin, Base):
    """Product category shown on the menu."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    products: Mapped[list["Product"]] = relationship(back_populates="category")


class Product(TimestampMixin, Base):
    """
    A sellable product.

    price_cents is copied into each OrderItem when it is added, so later
    price edits never change historical orders.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(BigId, primary_key=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        BigId, ForeignKey("category.id", ondelete="SET NULL"), index=True
    )
    code: Mapped[Optional[str]] = mapped_column(Text, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # NULL = stock not tracked for this product
    stock_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    stock_minimum: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    category: Mapped[Optional["Category"]] = relationship(back_populates="products")

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_product_price_non_negative"),
        CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0",
            name="chk_product_stock_non_negative",
        ),
        Index("ix_product_stock_tracked", "stock_quantity"),
    )

    @property
    def tracks_stock(self) -> bool:
        return self.stock_quantity is not None

    @property
    def is_low_stock(self) -> bool:
        """True when tracked and at or below the configured minimum."""
        if self.stock_quantity is None:
            return False
        return self.stock_quantity <= (self.stock_minimum or 0)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock_quantity})>"
