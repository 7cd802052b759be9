"""
Circuit breaker for Redis event publishing.

When Redis is down, publishing fails fast instead of waiting for a socket
timeout on every outbox event. The outbox keeps the events PENDING and they
are retried once the breaker lets calls through again.

    CLOSED --(threshold consecutive failures)--> OPEN
    OPEN --(recovery timeout elapsed)--> HALF_OPEN
    HALF_OPEN --(success)--> CLOSED, --(failure)--> OPEN
"""

from __future__ import annotations

import random
import threading
import time
from enum import Enum

from shared.config.settings import settings
from shared.config.logging import get_logger

logger = get_logger(__name__)

MAX_RETRY_DELAY = 10.0


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class EventCircuitBreaker:
    """Thread-safe; one instance is shared by every publisher in the process."""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        half_open_max_calls: int = 3,
        name: str = "redis-publish",
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_max_calls = half_open_max_calls

        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._half_open_calls = 0
        self._rejected = 0
        self._mutex = threading.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def _trip(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = time.monotonic()
        logger.error(
            "Circuit breaker OPEN",
            breaker=self.name,
            failures=self._failures,
            threshold=self.failure_threshold,
        )

    def _reject(self) -> bool:
        self._rejected += 1
        return False

    def can_execute(self) -> bool:
        with self._mutex:
            if self._state is CircuitState.CLOSED:
                return True

            if self._state is CircuitState.OPEN:
                if time.monotonic() - self._opened_at < self.recovery_timeout:
                    return self._reject()
                self._state = CircuitState.HALF_OPEN
                self._half_open_calls = 0
                logger.info("Circuit breaker HALF_OPEN", breaker=self.name)

            if self._half_open_calls >= self.half_open_max_calls:
                return self._reject()
            self._half_open_calls += 1
            return True

    def record_failure(self) -> None:
        with self._mutex:
            self._failures += 1
            if self._state is CircuitState.HALF_OPEN:
                self._trip()
            elif self._state is CircuitState.CLOSED and self._failures >= self.failure_threshold:
                self._trip()

    def record_success(self) -> None:
        with self._mutex:
            if self._state is CircuitState.HALF_OPEN:
                logger.info("Circuit breaker recovered", breaker=self.name)
            self._state = CircuitState.CLOSED
            self._failures = 0

    def get_stats(self) -> dict:
        with self._mutex:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failures,
                "rejected_count": self._rejected,
            }


_breaker: EventCircuitBreaker | None = None
_breaker_lock = threading.Lock()


def get_event_circuit_breaker() -> EventCircuitBreaker:
    global _breaker
    if _breaker is None:
        with _breaker_lock:
            if _breaker is None:
                # Open only after a full publish (all retries) has failed twice more
                _breaker = EventCircuitBreaker(
                    failure_threshold=settings.redis_publish_max_retries + 2,
                )
    return _breaker


def calculate_retry_delay_with_jitter(attempt: int, base_delay: float = 0.5) -> float:
    """Random delay between base_delay and base_delay * 2**attempt (capped)."""
    ceiling = min(base_delay * 2 ** attempt, MAX_RETRY_DELAY)
    return random.uniform(base_delay, ceiling)
