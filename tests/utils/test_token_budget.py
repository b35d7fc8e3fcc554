"""Tests for the word-based prompt trimmer."""

import pytest

from pbnj.integrations.completion import ChatMessage
from pbnj.utils.token_budget import count_tokens, trim_messages


def words(n: int, word: str = "word") -> str:
    return " ".join(f"{word}{i}" for i in range(n))


class TestCountTokens:
    def test_empty(self) -> None:
        assert count_tokens("") == 0

    def test_plain_words(self) -> None:
        assert count_tokens("one two  three\nfour") == 4

    def test_markup_is_ignored(self) -> None:
        assert count_tokens('<p>Hello <a href="https://x.com/a b">brave world</a></p>') == 3


class TestTrimMessages:
    def test_messages_that_fit_are_unchanged(self) -> None:
        messages = [
            ChatMessage(role="system", content=words(5)),
            ChatMessage(role="user", content=words(5)),
        ]

        result = trim_messages(messages, 10)

        assert result == messages
        assert result is not messages

    def test_proportional_truncation_keeps_leading_words(self) -> None:
        messages = [
            ChatMessage(role="system", content=words(10, "s")),
            ChatMessage(role="user", content=words(30, "u")),
        ]

        result = trim_messages(messages, 20)

        assert [m.role for m in result] == ["system", "user"]
        assert result[0].content == words(5, "s")
        assert result[1].content == words(15, "u")
        assert sum(count_tokens(m.content) for m in result) <= 20

    def test_tiny_message_can_be_emptied(self) -> None:
        messages = [
            ChatMessage(role="system", content="hi"),
            ChatMessage(role="user", content=words(99)),
        ]

        result = trim_messages(messages, 10)

        assert result[0] == ChatMessage(role="system", content="")
        assert count_tokens(result[1].content) == 9

    def test_non_positive_budget_rejected(self) -> None:
        with pytest.raises(ValueError):
            trim_messages([ChatMessage(role="user", content="x")], 0)
