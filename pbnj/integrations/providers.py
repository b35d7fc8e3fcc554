"""Engine routing across the completion providers.

CompletionProviders is built by the application lifespan, kept on
``app.state.providers`` and closed on shutdown.
"""

from dataclasses import dataclass

import httpx

from pbnj.core.config import Settings
from pbnj.core.logging import get_logger
from pbnj.integrations.claude import AnthropicCompletionProvider
from pbnj.integrations.completion import (
    ChatMessage,
    CompletionProvider,
    CompletionResult,
    ProviderNotConfiguredError,
)
from pbnj.integrations.openai import OpenAICompletionProvider

logger = get_logger(__name__)

ANTHROPIC_ENGINE_PREFIX = "claude-"


@dataclass
class BoundProvider:
    """A provider pinned to one engine name."""

    provider: CompletionProvider
    engine: str

    async def complete(
        self,
        messages: list[ChatMessage],
        max_tokens: int | None = None,
        temperature: float = 0.7,
    ) -> CompletionResult:
        return await self.provider.complete(
            messages, max_tokens=max_tokens, temperature=temperature, model=self.engine
        )


class CompletionProviders:
    """Owns one OpenAI and one Anthropic provider."""

    def __init__(
        self,
        settings: Settings,
        openai: CompletionProvider | None = None,
        anthropic: CompletionProvider | None = None,
    ) -> None:
        self._settings = settings
        self._openai = openai
        self._anthropic = anthropic

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "CompletionProviders":
        return cls(
            settings,
            openai=OpenAICompletionProvider.from_settings(settings, transport=transport),
            anthropic=AnthropicCompletionProvider.from_settings(
                settings, transport=transport
            ),
        )

    @property
    def openai(self) -> CompletionProvider:
        if self._openai is None:
            raise RuntimeError("Providers not initialized. Call init() first.")
        return self._openai

    @property
    def anthropic(self) -> CompletionProvider:
        if self._anthropic is None:
            raise RuntimeError("Providers not initialized. Call init() first.")
        return self._anthropic

    def init(self) -> None:
        """Create any provider that was not injected."""
        if self._openai is None:
            self._openai = OpenAICompletionProvider.from_settings(self._settings)
        if self._anthropic is None:
            self._anthropic = AnthropicCompletionProvider.from_settings(self._settings)
        logger.info(
            "Completion providers initialized",
            extra={
                "openai_available": self._openai.available,
                "anthropic_available": self._anthropic.available,
                "default_engine": self._settings.default_engine,
            },
        )

    async def close(self) -> None:
        for provider in (self._openai, self._anthropic):
            if provider is not None:
                await provider.close()

    def provider_for(self, engine: str) -> CompletionProvider:
        """Return the provider an engine name routes to."""
        if engine.startswith(ANTHROPIC_ENGINE_PREFIX):
            return self.anthropic
        return self.openai

    def for_engine(self, engine: str | None = None) -> BoundProvider:
        """Route an engine name to its provider.

        Raises:
            ProviderNotConfiguredError: If the routed provider has no API key.
        """
        engine = engine or self._settings.default_engine
        provider = self.provider_for(engine)
        if not provider.available:
            raise ProviderNotConfiguredError(
                f"No API key configured for engine '{engine}' ({provider.name})"
            )
        return BoundProvider(provider=provider, engine=engine)

    def status(self) -> dict[str, dict[str, object]]:
        """Availability and circuit state per provider, for health checks."""
        return {
            provider.name: {
                "available": provider.available,
                "model": provider.model,
                "circuit_state": provider.circuit_breaker.state.value,
            }
            for provider in (self.openai, self.anthropic)
        }
