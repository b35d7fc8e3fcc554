"""Claude/Anthropic messages provider.

POSTs to /v1/messages on api.anthropic.com with the x-api-key and
anthropic-version headers. The Messages API takes the system prompt as a
top-level field and expects user and assistant turns to alternate, so
system turns are lifted out and consecutive same-role turns are joined.
"""

from typing import Any

import httpx

from pbnj.core.config import Settings
from pbnj.core.logging import claude_logger
from pbnj.integrations.completion import ChatMessage, CompletionProvider, ProviderConfig

ANTHROPIC_API_URL = "https://api.anthropic.com"
ANTHROPIC_API_VERSION = "2023-06-01"


def to_anthropic_messages(
    messages: list[ChatMessage],
) -> tuple[str | None, list[dict[str, str]]]:
    """Split chat turns into (system prompt, alternating messages)."""
    system_parts = [m.content for m in messages if m.role == "system"]
    merged: list[dict[str, str]] = []
    for message in messages:
        if message.role == "system":
            continue
        if merged and merged[-1]["role"] == message.role:
            merged[-1]["content"] += "\n\n" + message.content
        else:
            merged.append({"role": message.role, "content": message.content})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, merged


class AnthropicCompletionProvider(CompletionProvider):
    """Async client for the Claude Messages API."""

    name = "claude"
    base_url = ANTHROPIC_API_URL
    endpoint = "/v1/messages"
    request_id_header = "request-id"

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, claude_logger, transport=transport)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "AnthropicCompletionProvider":
        return cls(
            ProviderConfig(
                api_key=settings.anthropic_api_key,
                model=settings.claude_model,
                timeout=settings.claude_timeout,
                max_retries=settings.claude_max_retries,
                retry_delay=settings.claude_retry_delay,
                max_tokens=settings.claude_max_tokens,
                failure_threshold=settings.claude_circuit_failure_threshold,
                recovery_timeout=settings.claude_circuit_recovery_timeout,
            ),
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"anthropic-version": ANTHROPIC_API_VERSION}
        if self._api_key:
            headers["x-api-key"] = self._api_key
        return headers

    def _build_body(
        self,
        messages: list[ChatMessage],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        system, turns = to_anthropic_messages(messages)
        body: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": turns,
        }
        if system:
            body["system"] = system
        return body

    def _parse_response(
        self, data: dict[str, Any]
    ) -> tuple[str, str | None, int | None, int | None]:
        content = data.get("content") or []
        text = "".join(
            block.get("text", "") for block in content if block.get("type", "text") == "text"
        )
        usage = data.get("usage") or {}
        return (
            text,
            data.get("stop_reason"),
            usage.get("input_tokens"),
            usage.get("output_tokens"),
        )
