"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and TimestampMixin
- user: User
- catalog: Category, Product (with optional stock counters)
- table: Area, Table
- order: Order, OrderItem
- billing: Payment
- outbox: OutboxEvent (transactional outbox)
"""

# Base classes
from .base import Base, BigId, TimestampMixin

# Staff
from .user import User

# Catalog and stock
from .catalog import Category, Product

# Floor
from .table import Area, Table

# Orders
from .order import Order, OrderItem

# Billing
from .billing import Payment

# Outbox
from .outbox import OutboxEvent, OutboxStatus


__all__ = [
    # Base
    "Base",
    "BigId",
    "TimestampMixin",
    # Staff
    "User",
    # Catalog
    "Category",
    "Product",
    # Floor
    "Area",
    "Table",
    # Orders
    "Order",
    "OrderItem",
    # Billing
    "Payment",
    # Outbox
    "OutboxEvent",
    "OutboxStatus",
]
