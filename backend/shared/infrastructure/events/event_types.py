"""
Event Type Constants.

Every state change of the order lifecycle emits one of these through the
transactional outbox. Kitchen displays and cashier screens subscribe to
them over Redis pub/sub.
"""

from shared.config.settings import settings

# =============================================================================
# Order lifecycle events
# Flow: OPEN -> IN_PRODUCTION -> READY -> PAID (or CANCELLED)
# =============================================================================

ORDER_CREATED = "ORDER_CREATED"
ORDER_UPDATED = "ORDER_UPDATED"          # totals or charges changed
ORDER_READY = "ORDER_READY"              # every item done
ORDER_CLOSED = "ORDER_CLOSED"            # settled (PAID)
ORDER_CANCELLED = "ORDER_CANCELLED"
ORDER_TRANSFERRED = "ORDER_TRANSFERRED"

# =============================================================================
# Item events (kitchen display)
# =============================================================================

ITEM_ADDED = "ITEM_ADDED"
ITEM_UPDATED = "ITEM_UPDATED"
ITEM_REMOVED = "ITEM_REMOVED"

# =============================================================================
# Payment events
# =============================================================================

PAYMENT_RECORDED = "PAYMENT_RECORDED"
PAYMENT_REVERSED = "PAYMENT_REVERSED"

# =============================================================================
# Table events
# =============================================================================

TABLE_UPDATED = "TABLE_UPDATED"

ALL_EVENT_TYPES = frozenset({
    ORDER_CREATED,
    ORDER_UPDATED,
    ORDER_READY,
    ORDER_CLOSED,
    ORDER_CANCELLED,
    ORDER_TRANSFERRED,
    ITEM_ADDED,
    ITEM_UPDATED,
    ITEM_REMOVED,
    PAYMENT_RECORDED,
    PAYMENT_REVERSED,
    TABLE_UPDATED,
})

# Events the kitchen display also receives on its own channel
KITCHEN_EVENTS = frozenset({
    ITEM_ADDED,
    ITEM_UPDATED,
    ITEM_REMOVED,
    ORDER_READY,
    ORDER_CANCELLED,
    ORDER_TRANSFERRED,
})

# Maximum serialized size of one event
MAX_EVENT_SIZE = settings.max_event_size
