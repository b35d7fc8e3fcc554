"""Repair and parse link suggestions emitted by a language model.

The model is asked for a JSON object shaped like::

    {"https://example.com": {"text": "[anchor]", "sentence": "... [anchor] ..."}}

but routinely drops the outer braces, separates entries with blank lines
instead of commas, or leaves a stray quote at the end. Parsing is two
stages: strict JSON first, then a tolerant regex extractor. The result is
tagged so callers never need to type-test a return value.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from pbnj.core.logging import get_logger

logger = get_logger(__name__)

URL_KEY_RE = re.compile(r"^https?://[^\s/?#]+\.[^\s/?#]+", re.IGNORECASE)

# "key": { body }  where body holds no nested braces
ENTRY_RE = re.compile(r'"(?P<key>[^"]+)"\s*:\s*\{(?P<body>[^{}]*)\}')

# "text": "..." / "sentence": "..." with backslash escapes allowed
FIELD_RE = re.compile(r'"(?P<name>text|sentence)"\s*:\s*"(?P<value>(?:[^"\\]|\\.)*)"', re.DOTALL)

BRACKETS_RE = re.compile(r"\[([^\[\]]*)\]")

CONTROL_CHARS_RE = re.compile(r"[\u0000-\u001f\u007f-\u009f]")

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```|(\{[\s\S]*\})")


class ArticleParseError(ValueError):
    """Raised when a title/content payload cannot be recovered."""

    pass


@dataclass(frozen=True)
class ParsedLinkEntry:
    """One suggested link: wrap ``text`` where it appears in ``sentence``."""

    url: str
    text: str
    sentence: str


@dataclass(frozen=True)
class Parsed:
    """Successful parse: url -> entry, in the order the model gave them."""

    links: dict[str, ParsedLinkEntry] = field(default_factory=dict)


@dataclass(frozen=True)
class Unparsed:
    """Nothing usable was found; carries the input unchanged."""

    original_text: str


ParseResult = Parsed | Unparsed


def strip_brackets(value: str) -> str:
    """Remove one layer of [square] emphasis markers."""
    return BRACKETS_RE.sub(r"\1", value)


def is_url_key(key: str) -> bool:
    return bool(URL_KEY_RE.match(key.strip()))


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"')
    except json.JSONDecodeError:
        return raw


def _make_entry(key: Any, text: Any, sentence: Any) -> ParsedLinkEntry | None:
    if not isinstance(key, str) or not is_url_key(key):
        return None
    if not isinstance(text, str) or not isinstance(sentence, str):
        return None
    text = strip_brackets(text).strip()
    sentence = strip_brackets(sentence).strip()
    if not text or not sentence:
        return None
    return ParsedLinkEntry(url=key.strip(), text=text, sentence=sentence)


def _parse_strict(candidate: str) -> dict[str, ParsedLinkEntry] | None:
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    links: dict[str, ParsedLinkEntry] = {}
    for key, value in data.items():
        if not isinstance(value, dict):
            continue
        entry = _make_entry(key, value.get("text"), value.get("sentence"))
        if entry is not None:
            links[entry.url] = entry
    return links


def _parse_tolerant(candidate: str) -> dict[str, ParsedLinkEntry]:
    links: dict[str, ParsedLinkEntry] = {}
    for match in ENTRY_RE.finditer(candidate):
        fields = {
            field_match.group("name"): _unescape(field_match.group("value"))
            for field_match in FIELD_RE.finditer(match.group("body"))
        }
        entry = _make_entry(match.group("key"), fields.get("text"), fields.get("sentence"))
        if entry is not None:
            links[entry.url] = entry
    return links


def parse_response(text: str) -> ParseResult:
    """Extract url -> {text, sentence} suggestions from model output.

    Never raises. When no usable entry survives, one ERROR and one INFO
    record are logged and the input comes back as Unparsed.
    """
    candidate = text.strip()
    if not candidate.startswith("{"):
        candidate = "{" + candidate + "}"

    links = _parse_strict(candidate)
    stage = "strict"
    if links is None:
        links = _parse_tolerant(candidate)
        stage = "tolerant"

    if not links:
        logger.error(
            "Could not parse link suggestions from model response",
            extra={"stage": stage, "response_length": len(text)},
        )
        logger.info(
            "Unparseable link suggestion response",
            extra={"response_preview": text[:500]},
        )
        return Unparsed(original_text=text)

    logger.debug(
        "Parsed link suggestions",
        extra={"stage": stage, "link_count": len(links)},
    )
    return Parsed(links=links)


def parse_title_and_content(text: str) -> tuple[str, str]:
    """Pull ``title`` and ``content`` strings out of a JSON-ish reply.

    Tries the whole reply as JSON, then a fenced ```json block or the
    outermost {...} span.

    Raises:
        ArticleParseError: If no object with string title and content is found.
    """
    cleaned = CONTROL_CHARS_RE.sub("", text)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        title, content = data.get("title"), data.get("content")
        if isinstance(title, str) and isinstance(content, str):
            return title.strip(), content.strip()

    match = FENCED_JSON_RE.search(cleaned)
    if not match or not (match.group(1) or match.group(2)):
        raise ArticleParseError("No valid JSON object found in model response")

    snippet = (match.group(1) or match.group(2)).replace("\\'", "'").replace("\t", " ")
    try:
        data = json.loads(snippet)
    except json.JSONDecodeError as exc:
        raise ArticleParseError(f"Invalid JSON in model response: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise ArticleParseError("Model response JSON is not an object")
    title, content = data.get("title"), data.get("content")
    if not isinstance(title, str) or not isinstance(content, str):
        raise ArticleParseError("Model response JSON lacks string title and content")
    return title.strip(), content.strip()
