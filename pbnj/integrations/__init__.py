"""Outbound HTTP clients: completion providers and WordPress."""

from pbnj.integrations.claude import AnthropicCompletionProvider
from pbnj.integrations.completion import (
    ChatMessage,
    CompletionError,
    CompletionProvider,
    CompletionResult,
    ProviderNotConfiguredError,
)
from pbnj.integrations.openai import OpenAICompletionProvider
from pbnj.integrations.providers import BoundProvider, CompletionProviders
from pbnj.integrations.wordpress import WordPressClient

__all__ = [
    "AnthropicCompletionProvider",
    "BoundProvider",
    "ChatMessage",
    "CompletionError",
    "CompletionProvider",
    "CompletionProviders",
    "CompletionResult",
    "OpenAICompletionProvider",
    "ProviderNotConfiguredError",
    "WordPressClient",
]
