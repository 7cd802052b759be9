"""
Event publishing with retry, size check and circuit breaker.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis_async

from shared.config.settings import settings
from shared.config.logging import get_logger
from .channels import channels_for_event
from .circuit_breaker import calculate_retry_delay_with_jitter, get_event_circuit_breaker
from .event_schema import Event
from .event_types import MAX_EVENT_SIZE

logger = get_logger(__name__)


class CircuitOpenError(RuntimeError):
    """Publishing skipped because the breaker is open."""


def _validate_event_size(event_json: str, event_type: str) -> None:
    size = len(event_json.encode("utf-8"))
    if size > MAX_EVENT_SIZE:
        raise ValueError(
            f"Event {event_type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes"
        )


async def publish_event(
    redis_client: redis_async.Redis,
    channel: str,
    event: Event,
) -> int:
    """
    Publish an event to one Redis channel.

    Retries with exponential backoff. Returns the number of subscribers
    that received the message.

    Raises:
        ValueError: event too large.
        CircuitOpenError: breaker open, nothing attempted.
        Exception: the last Redis error once retries are exhausted.
    """
    event_json = event.to_json()
    _validate_event_size(event_json, event.type)

    circuit_breaker = get_event_circuit_breaker()
    if not circuit_breaker.can_execute():
        logger.warning(
            "Event publish skipped - circuit breaker open",
            channel=channel,
            event_type=event.type,
        )
        raise CircuitOpenError(f"circuit open, {event.type} not published")

    last_error: Exception | None = None
    for attempt in range(settings.redis_publish_max_retries):
        try:
            result = await redis_client.publish(channel, event_json)
            circuit_breaker.record_success()
            return result
        except Exception as e:
            last_error = e
            if attempt < settings.redis_publish_max_retries - 1:
                delay = calculate_retry_delay_with_jitter(
                    attempt, settings.redis_publish_retry_delay
                )
                logger.warning(
                    "Redis publish failed, retrying",
                    channel=channel,
                    event_type=event.type,
                    attempt=attempt + 1,
                    delay_seconds=round(delay, 2),
                    error=str(e),
                )
                await asyncio.sleep(delay)

    logger.error(
        "Redis publish failed after all retries",
        channel=channel,
        event_type=event.type,
        error=str(last_error),
    )
    circuit_breaker.record_failure()
    raise last_error  # type: ignore[misc]


async def publish_to_subscribers(redis_client: redis_async.Redis, event: Event) -> int:
    """Publish an event to every channel its type routes to."""
    delivered = 0
    for channel in channels_for_event(event.type, event.table_id):
        delivered += await publish_event(redis_client, channel, event)
    return delivered
