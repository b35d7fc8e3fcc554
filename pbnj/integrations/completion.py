"""Chat completion provider interface.

Both LLM vendors are reached through one async HTTP loop:
- Circuit breaker for fault tolerance
- Retry with exponential backoff on 5xx, timeouts and transport errors
- 429 honours Retry-After when it is 60 seconds or less
- 401/403 and other 4xx fail fast
- Request/response bodies at DEBUG, token usage at INFO

Subclasses only describe the wire format: endpoint, headers, request body,
and how to read text and usage out of a response.

Failures are returned as CompletionResult(success=False) rather than raised.
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from pbnj.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from pbnj.core.logging import LLMLogger, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a chat conversation."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class CompletionResult:
    """Result of a completion request."""

    success: bool
    text: str | None = None
    stop_reason: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    error: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0
    request_id: str | None = None


class CompletionError(Exception):
    """Base exception for completion provider errors."""

    pass


class ProviderNotConfiguredError(CompletionError):
    """Raised when an engine routes to a provider without credentials."""

    pass


@dataclass
class ProviderConfig:
    """Connection and retry settings for one provider."""

    api_key: str | None
    model: str
    timeout: float
    max_retries: int
    retry_delay: float
    max_tokens: int
    failure_threshold: int
    recovery_timeout: float


class CompletionProvider:
    """Base class for chat completion providers.

    Subclasses set ``name``, ``base_url`` and ``endpoint`` and implement
    ``_headers``, ``_build_body`` and ``_parse_response``.
    """

    name = "provider"
    base_url = ""
    endpoint = ""
    request_id_header = "x-request-id"

    def __init__(
        self,
        config: ProviderConfig,
        provider_logger: LLMLogger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._api_key = config.api_key
        self._model = config.model
        self._timeout = config.timeout
        self._max_retries = max(1, config.max_retries)
        self._retry_delay = config.retry_delay
        self._max_tokens = config.max_tokens
        self._log = provider_logger
        self._transport = transport
        self._circuit_breaker = CircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=config.failure_threshold,
                recovery_timeout=config.recovery_timeout,
            ),
            name=self.name,
            provider_logger=provider_logger,
        )
        self._client: httpx.AsyncClient | None = None
        self._available = bool(self._api_key)

        logger.info(
            f"{type(self).__name__} instantiated",
            extra={
                "provider": self.name,
                "available": self._available,
                "model": self._model,
            },
        )

    @property
    def available(self) -> bool:
        """Check if the provider has credentials."""
        return self._available

    @property
    def model(self) -> str:
        return self._model

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def _headers(self) -> dict[str, str]:
        raise NotImplementedError

    def _build_body(
        self,
        messages: list[ChatMessage],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def _parse_response(
        self, data: dict[str, Any]
    ) -> tuple[str, str | None, int | None, int | None]:
        """Return (text, stop_reason, input_tokens, output_tokens)."""
        raise NotImplementedError

    def _error_message(self, body: Any) -> str:
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                return str(error.get("message", error))
            if error:
                return str(error)
        return str(body) if body else "Client error"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers: dict[str, str] = {
                "Content-Type": "application/json",
                "Accept": "application/json",
                **self._headers(),
            }
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info(f"{type(self).__name__} closed")

    async def _backoff(self, attempt: int, reason: str, **extra: Any) -> None:
        delay = self._retry_delay * (2**attempt)
        logger.warning(
            f"{self.name} request attempt {attempt + 1} {reason}, retrying in {delay}s",
            extra={
                "attempt": attempt + 1,
                "max_retries": self._max_retries,
                "delay_seconds": delay,
                **extra,
            },
        )
        await asyncio.sleep(delay)

    async def complete(
        self,
        messages: list[ChatMessage],
        max_tokens: int | None = None,
        temperature: float = 0.7,
        model: str | None = None,
    ) -> CompletionResult:
        """Send a chat completion request.

        Args:
            messages: Conversation turns in order.
            max_tokens: Maximum response tokens (overrides default).
            temperature: Sampling temperature.
            model: Model override for this call.

        Returns:
            CompletionResult with response text and metadata.
        """
        model = model or self._model

        if not self._available:
            return CompletionResult(
                success=False,
                error=f"{self.name} not configured (missing API key)",
            )

        if not await self._circuit_breaker.can_execute():
            self._log.graceful_fallback("complete", "Circuit breaker open")
            return CompletionResult(success=False, error="Circuit breaker is open")

        start_time = time.monotonic()
        client = await self._get_client()
        last_error: str | None = None
        request_id: str | None = None
        request_body = self._build_body(
            messages, model, max_tokens or self._max_tokens, temperature
        )
        prompt_length = sum(len(message.content) for message in messages)

        for attempt in range(self._max_retries):
            attempt_start = time.monotonic()

            try:
                self._log.api_call_start(
                    model, prompt_length, retry_attempt=attempt, request_id=request_id
                )
                self._log.request_body(model, [m.to_dict() for m in messages])

                response = await client.post(self.endpoint, json=request_body)
                duration_ms = (time.monotonic() - attempt_start) * 1000
                request_id = response.headers.get(self.request_id_header)

                if response.status_code == 429:
                    retry_after_str = response.headers.get("retry-after")
                    try:
                        retry_after = float(retry_after_str) if retry_after_str else None
                    except ValueError:
                        retry_after = None
                    self._log.rate_limit(model, retry_after=retry_after, request_id=request_id)
                    await self._circuit_breaker.record_failure()

                    if (
                        attempt < self._max_retries - 1
                        and retry_after
                        and retry_after <= 60
                    ):
                        await asyncio.sleep(retry_after)
                        continue

                    return CompletionResult(
                        success=False,
                        error="Rate limit exceeded",
                        status_code=429,
                        request_id=request_id,
                        duration_ms=duration_ms,
                    )

                if response.status_code in (401, 403):
                    self._log.auth_failure(response.status_code)
                    self._log.api_call_error(
                        model,
                        duration_ms,
                        response.status_code,
                        "Authentication failed",
                        "AuthError",
                        retry_attempt=attempt,
                        request_id=request_id,
                    )
                    await self._circuit_breaker.record_failure()
                    return CompletionResult(
                        success=False,
                        error=f"Authentication failed ({response.status_code})",
                        status_code=response.status_code,
                        request_id=request_id,
                        duration_ms=duration_ms,
                    )

                if response.status_code >= 500:
                    error_msg = f"Server error ({response.status_code})"
                    self._log.api_call_error(
                        model,
                        duration_ms,
                        response.status_code,
                        error_msg,
                        "ServerError",
                        retry_attempt=attempt,
                        request_id=request_id,
                    )
                    await self._circuit_breaker.record_failure()

                    if attempt < self._max_retries - 1:
                        await self._backoff(
                            attempt,
                            "failed",
                            status_code=response.status_code,
                            request_id=request_id,
                        )
                        continue

                    return CompletionResult(
                        success=False,
                        error=error_msg,
                        status_code=response.status_code,
                        request_id=request_id,
                        duration_ms=duration_ms,
                    )

                if response.status_code >= 400:
                    # Client error - don't retry
                    try:
                        error_body = response.json() if response.content else None
                    except ValueError:
                        error_body = response.text
                    error_msg = self._error_message(error_body)
                    self._log.api_call_error(
                        model,
                        duration_ms,
                        response.status_code,
                        error_msg,
                        "ClientError",
                        retry_attempt=attempt,
                        request_id=request_id,
                    )
                    return CompletionResult(
                        success=False,
                        error=f"Client error ({response.status_code}): {error_msg}",
                        status_code=response.status_code,
                        request_id=request_id,
                        duration_ms=duration_ms,
                    )

                try:
                    text, stop_reason, input_tokens, output_tokens = self._parse_response(
                        response.json()
                    )
                except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
                    self._log.api_call_error(
                        model,
                        duration_ms,
                        response.status_code,
                        f"Malformed response: {e}",
                        "ParseError",
                        retry_attempt=attempt,
                        request_id=request_id,
                    )
                    await self._circuit_breaker.record_failure()
                    return CompletionResult(
                        success=False,
                        error="Malformed response from provider",
                        status_code=response.status_code,
                        request_id=request_id,
                        duration_ms=duration_ms,
                    )

                total_duration_ms = (time.monotonic() - start_time) * 1000
                self._log.api_call_success(
                    model,
                    duration_ms,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    request_id=request_id,
                )
                self._log.response_body(model, text, duration_ms, stop_reason=stop_reason)
                if input_tokens and output_tokens:
                    self._log.token_usage(model, input_tokens, output_tokens)

                await self._circuit_breaker.record_success()

                return CompletionResult(
                    success=True,
                    text=text,
                    stop_reason=stop_reason,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    request_id=request_id,
                    duration_ms=total_duration_ms,
                )

            except httpx.TimeoutException:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                self._log.timeout(model, self._timeout)
                self._log.api_call_error(
                    model,
                    duration_ms,
                    None,
                    "Request timed out",
                    "TimeoutError",
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()

                if attempt < self._max_retries - 1:
                    await self._backoff(attempt, "timed out")
                    continue

                last_error = f"Request timed out after {self._timeout}s"

            except httpx.RequestError as e:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                self._log.api_call_error(
                    model,
                    duration_ms,
                    None,
                    str(e),
                    type(e).__name__,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()

                if attempt < self._max_retries - 1:
                    await self._backoff(attempt, "failed", error=str(e))
                    continue

                last_error = f"Request failed: {e}"

        total_duration_ms = (time.monotonic() - start_time) * 1000
        return CompletionResult(
            success=False,
            error=last_error or "Request failed after retries",
            request_id=request_id,
            duration_ms=total_duration_ms,
        )
