"""
Centralized constants for the backend application.
Avoids magic strings for roles, statuses and payment methods.

Usage:
    from shared.config.constants import OrderStatus, SUPERVISOR_ROLES

    if order.status in OrderStatus.ACTIVE:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    ADMIN: Final[str] = "ADMIN"
    MANAGER: Final[str] = "MANAGER"
    CASHIER: Final[str] = "CASHIER"
    WAITER: Final[str] = "WAITER"
    KITCHEN: Final[str] = "KITCHEN"

    ALL: Final[list[str]] = [ADMIN, MANAGER, CASHIER, WAITER, KITCHEN]


# Role groups for common access patterns
SUPERVISOR_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER})
FLOOR_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER, Roles.CASHIER, Roles.WAITER})
KITCHEN_ACCESS_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER, Roles.KITCHEN, Roles.WAITER})
CASHIER_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER, Roles.CASHIER})


# =============================================================================
# Entity Status Constants
# =============================================================================


class OrderStatus:
    """Order lifecycle status constants."""

    OPEN: Final[str] = "OPEN"
    IN_PRODUCTION: Final[str] = "IN_PRODUCTION"
    READY: Final[str] = "READY"
    PAID: Final[str] = "PAID"
    CANCELLED: Final[str] = "CANCELLED"

    # Status groups
    ACTIVE: Final[tuple[str, ...]] = (OPEN, IN_PRODUCTION, READY)
    TERMINAL: Final[tuple[str, ...]] = (PAID, CANCELLED)
    KITCHEN_VISIBLE: Final[tuple[str, ...]] = (OPEN, IN_PRODUCTION)
    ALL: Final[tuple[str, ...]] = (OPEN, IN_PRODUCTION, READY, PAID, CANCELLED)


class OrderKind:
    """Where the order is served."""

    TABLE: Final[str] = "TABLE"
    COUNTER: Final[str] = "COUNTER"

    ALL: Final[tuple[str, ...]] = (TABLE, COUNTER)


class ItemStatus:
    """Order item (kitchen) status constants."""

    PENDING: Final[str] = "PENDING"
    PREPARING: Final[str] = "PREPARING"
    READY: Final[str] = "READY"
    DELIVERED: Final[str] = "DELIVERED"
    CANCELLED: Final[str] = "CANCELLED"

    ALL: Final[tuple[str, ...]] = (PENDING, PREPARING, READY, DELIVERED, CANCELLED)
    # Items the kitchen no longer has to work on
    DONE: Final[tuple[str, ...]] = (READY, DELIVERED, CANCELLED)
    KITCHEN_QUEUE: Final[tuple[str, ...]] = (PENDING, PREPARING)


# Allowed item status transitions (current -> next)
ITEM_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    ItemStatus.PENDING: frozenset(
        {ItemStatus.PREPARING, ItemStatus.READY, ItemStatus.DELIVERED, ItemStatus.CANCELLED}
    ),
    ItemStatus.PREPARING: frozenset({ItemStatus.READY, ItemStatus.DELIVERED, ItemStatus.CANCELLED}),
    ItemStatus.READY: frozenset({ItemStatus.DELIVERED, ItemStatus.CANCELLED}),
    ItemStatus.DELIVERED: frozenset(),
    ItemStatus.CANCELLED: frozenset(),
}


class TableStatus:
    """Table status constants."""

    FREE: Final[str] = "FREE"
    OCCUPIED: Final[str] = "OCCUPIED"
    RESERVED: Final[str] = "RESERVED"

    ALL: Final[tuple[str, ...]] = (FREE, OCCUPIED, RESERVED)


class PaymentMethod:
    """Accepted payment methods."""

    CASH: Final[str] = "CASH"
    PIX: Final[str] = "PIX"
    CREDIT: Final[str] = "CREDIT"
    DEBIT: Final[str] = "DEBIT"
    VOUCHER: Final[str] = "VOUCHER"

    ALL: Final[tuple[str, ...]] = (CASH, PIX, CREDIT, DEBIT, VOUCHER)


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Validation limits."""

    # Rounding tolerance accepted when a payment settles the remaining balance
    PAYMENT_TOLERANCE_CENTS: Final[int] = 1

    MAX_ITEM_QUANTITY: Final[int] = 999
    MAX_NOTE_LENGTH: Final[int] = 500
    MAX_CANCEL_REASON_LENGTH: Final[int] = 200
    MAX_PASSWORD_LENGTH: Final[int] = 128

    # Listing pages
    DEFAULT_PAGE_SIZE: Final[int] = 20
    PAYMENT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100
