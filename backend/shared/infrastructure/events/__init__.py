"""
Event System for real-time notifications via Redis pub/sub.

- circuit_breaker.py: circuit breaker for publishing
- event_types.py: event type constants
- event_schema.py: Event dataclass with validation
- channels.py: channel naming and routing
- redis_pool.py: async/sync connection pools
- publisher.py: publish with retry
"""

from .circuit_breaker import (
    CircuitState,
    EventCircuitBreaker,
    get_event_circuit_breaker,
    calculate_retry_delay_with_jitter,
)
from .event_types import (
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
    ALL_EVENT_TYPES,
    KITCHEN_EVENTS,
    MAX_EVENT_SIZE,
)
from .event_schema import Event
from .channels import (
    CHANNEL_BROADCAST,
    CHANNEL_KITCHEN,
    channel_table,
    channels_for_event,
)
from .redis_pool import (
    get_redis_pool,
    get_redis_sync_client,
    close_redis_pool,
    close_redis_sync_client,
)
from .publisher import CircuitOpenError, publish_event, publish_to_subscribers

__all__ = [
    # Circuit breaker
    "CircuitState",
    "EventCircuitBreaker",
    "get_event_circuit_breaker",
    "calculate_retry_delay_with_jitter",
    # Event types
    "ORDER_CREATED",
    "ORDER_UPDATED",
    "ORDER_READY",
    "ORDER_CLOSED",
    "ORDER_CANCELLED",
    "ORDER_TRANSFERRED",
    "ITEM_ADDED",
    "ITEM_UPDATED",
    "ITEM_REMOVED",
    "PAYMENT_RECORDED",
    "PAYMENT_REVERSED",
    "TABLE_UPDATED",
    "ALL_EVENT_TYPES",
    "KITCHEN_EVENTS",
    "MAX_EVENT_SIZE",
    # Schema
    "Event",
    # Channels
    "CHANNEL_BROADCAST",
    "CHANNEL_KITCHEN",
    "channel_table",
    "channels_for_event",
    # Redis
    "get_redis_pool",
    "get_redis_sync_client",
    "close_redis_pool",
    "close_redis_sync_client",
    # Publishing
    "CircuitOpenError",
    "publish_event",
    "publish_to_subscribers",
]
