"""Circuit breaker shared by the completion providers.

After failure_threshold consecutive failures the circuit opens and calls are
refused. Once recovery_timeout has elapsed one probe call is let through
(half-open); success closes the circuit, failure opens it again.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum

from pbnj.core.logging import LLMLogger, get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject all requests
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker configuration."""

    failure_threshold: int
    recovery_timeout: float


class CircuitBreaker:
    """Async-safe circuit breaker.

    When a provider logger is given, transitions are reported through it as
    well as through the module logger.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig,
        name: str = "default",
        provider_logger: LLMLogger | None = None,
    ) -> None:
        self._config = config
        self._name = name
        self._provider_logger = provider_logger
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def is_closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    @property
    def is_half_open(self) -> bool:
        return self._state == CircuitState.HALF_OPEN

    def _recovery_due(self) -> bool:
        if self._last_failure_time is None:
            return False
        elapsed = time.monotonic() - self._last_failure_time
        return elapsed >= self._config.recovery_timeout

    def _transition(self, new_state: CircuitState) -> None:
        previous_state = self._state
        self._state = new_state
        logger.info(
            "Circuit breaker state change",
            extra={
                "circuit_name": self._name,
                "previous_state": previous_state.value,
                "new_state": new_state.value,
                "failure_count": self._failure_count,
            },
        )
        if new_state == CircuitState.OPEN:
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "circuit_name": self._name,
                    "failure_count": self._failure_count,
                    "recovery_timeout": self._config.recovery_timeout,
                },
            )
        if self._provider_logger is None:
            return
        self._provider_logger.logger.warning(
            f"{self._provider_logger.label} circuit breaker state changed",
            extra={
                "previous_state": previous_state.value,
                "new_state": new_state.value,
                "failure_count": self._failure_count,
            },
        )

    async def can_execute(self) -> bool:
        """Check if operation can be executed based on circuit state."""
        async with self._lock:
            if self._state == CircuitState.CLOSED:
                return True

            if self._state == CircuitState.OPEN:
                if self._recovery_due():
                    self._transition(CircuitState.HALF_OPEN)
                    return True
                return False

            # HALF_OPEN: let the probe through
            return True

    async def record_success(self) -> None:
        """Record successful operation."""
        async with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._last_failure_time = None
                self._transition(CircuitState.CLOSED)

    async def record_failure(self) -> None:
        """Record failed operation."""
        async with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.monotonic()

            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self._config.failure_threshold
            ):
                self._transition(CircuitState.OPEN)
