"""OpenAI chat completions provider.

POSTs to /v1/chat/completions on api.openai.com with bearer auth and reads
choices[0].message.content plus prompt/completion token usage.
"""

from typing import Any

import httpx

from pbnj.core.config import Settings
from pbnj.core.logging import openai_logger
from pbnj.integrations.completion import ChatMessage, CompletionProvider, ProviderConfig

OPENAI_API_URL = "https://api.openai.com"


class OpenAICompletionProvider(CompletionProvider):
    """Async client for the OpenAI chat completions API."""

    name = "openai"
    base_url = OPENAI_API_URL
    endpoint = "/v1/chat/completions"
    request_id_header = "x-request-id"

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, openai_logger, transport=transport)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "OpenAICompletionProvider":
        return cls(
            ProviderConfig(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                timeout=settings.openai_timeout,
                max_retries=settings.openai_max_retries,
                retry_delay=settings.openai_retry_delay,
                max_tokens=settings.openai_max_tokens,
                failure_threshold=settings.openai_circuit_failure_threshold,
                recovery_timeout=settings.openai_circuit_recovery_timeout,
            ),
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_body(
        self,
        messages: list[ChatMessage],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [message.to_dict() for message in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    def _parse_response(
        self, data: dict[str, Any]
    ) -> tuple[str, str | None, int | None, int | None]:
        choice = data["choices"][0]
        text = choice["message"]["content"] or ""
        usage = data.get("usage") or {}
        return (
            text,
            choice.get("finish_reason"),
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
        )
