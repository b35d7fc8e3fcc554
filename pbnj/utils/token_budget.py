"""Word-based token budget for chat prompts.

A "token" here is one whitespace-separated word of the visible text, which is
what the prompts were sized against. Markup is ignored when counting.
"""

from bs4 import BeautifulSoup

from pbnj.integrations.completion import ChatMessage


def count_tokens(text: str) -> int:
    """Count the words of text with any HTML markup removed."""
    if not text:
        return 0
    if "<" not in text:
        return len(text.split())
    visible = BeautifulSoup(text, "html.parser").get_text(" ")
    return len(visible.split())


def _leading_words(text: str, limit: int) -> str:
    if limit <= 0:
        return ""
    words = text.split()
    kept = words[:limit]
    while kept and count_tokens(" ".join(kept)) > limit:
        kept.pop()
    return " ".join(kept)


def trim_messages(messages: list[ChatMessage], max_tokens: int) -> list[ChatMessage]:
    """Fit messages into max_tokens by cutting each one's tail proportionally.

    Every message keeps its role and position; message i keeps its first
    floor(words_i * max_tokens / total) words. Messages that already fit are
    returned as-is.

    Raises:
        ValueError: If max_tokens is not positive.
    """
    if max_tokens <= 0:
        raise ValueError("max_tokens must be positive")

    counts = [count_tokens(message.content) for message in messages]
    total = sum(counts)
    if total <= max_tokens:
        return list(messages)

    trimmed: list[ChatMessage] = []
    for message, words in zip(messages, counts):
        keep = words * max_tokens // total
        if keep >= words:
            trimmed.append(message)
            continue
        trimmed.append(ChatMessage(role=message.role, content=_leading_words(message.content, keep)))
    return trimmed
