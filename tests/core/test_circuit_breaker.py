"""Tests for the provider CircuitBreaker.

Tests the circuit breaker pattern implementation:
- Initial state is CLOSED (normal operation)
- Opens after failure_threshold failures
- Transitions to HALF_OPEN after recovery_timeout
- Closes on success in HALF_OPEN state
- Reopens on failure in HALF_OPEN state
- Transitions are reported through the provider logger
"""

import logging
from unittest.mock import patch

import pytest

from pbnj.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitState
from pbnj.core.logging import openai_logger


def make_breaker(threshold: int = 3, recovery: float = 30.0, **kwargs) -> CircuitBreaker:  # type: ignore[no-untyped-def]
    return CircuitBreaker(
        CircuitBreakerConfig(failure_threshold=threshold, recovery_timeout=recovery),
        name="test",
        **kwargs,
    )


class TestCircuitBreakerInitialState:
    def test_initial_state_is_closed(self) -> None:
        cb = make_breaker()

        assert cb.state == CircuitState.CLOSED
        assert cb.is_closed is True
        assert cb.is_open is False
        assert cb.is_half_open is False
        assert cb.failure_count == 0

    def test_name_property(self) -> None:
        cb = CircuitBreaker(
            CircuitBreakerConfig(failure_threshold=3, recovery_timeout=30.0),
            name="openai",
        )

        assert cb.name == "openai"


class TestCircuitBreakerOpensAfterThreshold:
    async def test_opens_after_reaching_threshold(self) -> None:
        cb = make_breaker(threshold=3)

        await cb.record_failure()
        await cb.record_failure()
        assert cb.is_closed is True

        await cb.record_failure()
        assert cb.is_open is True
        assert cb.state == CircuitState.OPEN

    async def test_success_resets_failure_count(self) -> None:
        cb = make_breaker(threshold=3)

        await cb.record_failure()
        await cb.record_failure()
        assert cb.failure_count == 2

        await cb.record_success()
        assert cb.failure_count == 0
        assert cb.is_closed is True

    async def test_cannot_execute_when_open_before_timeout(self) -> None:
        cb = make_breaker(threshold=2, recovery=60.0)

        await cb.record_failure()
        await cb.record_failure()

        assert await cb.can_execute() is False


class TestCircuitBreakerRecovery:
    async def test_transitions_to_half_open_after_timeout(self) -> None:
        cb = make_breaker(threshold=2, recovery=30.0)
        await cb.record_failure()
        await cb.record_failure()
        assert cb.is_open is True

        with patch("time.monotonic") as mock_time:
            cb._last_failure_time = 1000.0
            mock_time.return_value = 1031.0

            assert await cb.can_execute() is True
            assert cb.is_half_open is True

    async def test_closes_on_success_in_half_open(self) -> None:
        cb = make_breaker(threshold=2)
        cb._state = CircuitState.HALF_OPEN
        cb._failure_count = 2
        cb._last_failure_time = 1000.0

        await cb.record_success()

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0
        assert cb._last_failure_time is None

    async def test_reopens_on_failure_in_half_open(self) -> None:
        cb = make_breaker(threshold=5)
        cb._state = CircuitState.HALF_OPEN

        await cb.record_failure()

        assert cb.is_open is True

    async def test_half_open_lets_probe_through(self) -> None:
        cb = make_breaker()
        cb._state = CircuitState.HALF_OPEN

        assert await cb.can_execute() is True


class TestCircuitBreakerLogging:
    async def test_open_transition_logged_through_provider_logger(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        cb = make_breaker(threshold=1, provider_logger=openai_logger)

        with caplog.at_level(logging.WARNING):
            await cb.record_failure()

        messages = [record.getMessage() for record in caplog.records]
        assert "Circuit breaker opened" in messages
        assert "OpenAI circuit breaker state changed" in messages
