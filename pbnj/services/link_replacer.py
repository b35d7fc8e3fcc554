"""Turn parsed link suggestions into inline anchors.

Only the occurrence of ``text`` inside the matched ``sentence`` is linked;
every other literal occurrence in the document is left alone. The opening
sentence (the title line, in practice) is never linked: a suggestion that
lands there is moved to the first later occurrence of its text, or dropped.
"""

import re
from collections.abc import Iterable

from pbnj.core.logging import get_logger
from pbnj.services.response_parser import ParseResult, Parsed, ParsedLinkEntry, parse_response

logger = get_logger(__name__)

FIRST_SENTENCE_END_RE = re.compile(r"[.!?\n]")

MARKDOWN_LINK_RE = re.compile(r"\[([^\[\]]+)\]\((https?://[^\s()]+)\)")

BOLD_RE = re.compile(r"\*\*(.*?)\*\*")

# Unclosed tag opener such as "<a href=" or "</"
OPEN_TAG_RE = re.compile(r"<[A-Za-z/!][^<>]*$")


def make_anchor(url: str, text: str) -> str:
    return f'<a href="{url}" target="_blank">{text}</a>'


def first_sentence_end(document: str) -> int:
    """Index just past the document's first sentence or title line."""
    match = FIRST_SENTENCE_END_RE.search(document)
    return match.end() if match else len(document)


def is_inside_markup(document: str, index: int) -> bool:
    """True if index falls inside an HTML tag or an existing <a> element."""
    before = document[:index]
    if OPEN_TAG_RE.search(before):
        return True
    lowered = before.lower()
    last_open = max(lowered.rfind("<a "), lowered.rfind("<a>"))
    return last_open > lowered.rfind("</a>")


def _link_after_opening(document: str, entry: ParsedLinkEntry) -> str | None:
    start = first_sentence_end(document)
    position = document.find(entry.text, start)
    while position != -1:
        if not is_inside_markup(document, position):
            return (
                document[:position]
                + make_anchor(entry.url, entry.text)
                + document[position + len(entry.text):]
            )
        position = document.find(entry.text, position + len(entry.text))
    return None


def replace_link(document: str, entry: ParsedLinkEntry) -> str:
    """Apply one suggestion, returning the document unchanged if it does not fit."""
    sentence_at = document.find(entry.sentence)
    if sentence_at == -1:
        logger.debug("Suggested sentence not found in document", extra={"url": entry.url})
        return document

    offset = entry.sentence.find(entry.text)
    if offset == -1:
        logger.debug("Suggested text not found in its sentence", extra={"url": entry.url})
        return document

    if sentence_at < first_sentence_end(document):
        relocated = _link_after_opening(document, entry)
        if relocated is None:
            logger.debug(
                "Suggestion only matches the opening sentence, skipped",
                extra={"url": entry.url},
            )
            return document
        return relocated

    position = sentence_at + offset
    return (
        document[:position]
        + make_anchor(entry.url, entry.text)
        + document[position + len(entry.text):]
    )


def bulk_replace_links(response: str | ParseResult, original_text: str) -> str:
    """Insert every usable suggestion from ``response`` into ``original_text``.

    ``response`` may be raw model output or an already parsed result. If
    nothing could be parsed the original text is returned exactly.
    """
    result = parse_response(response) if isinstance(response, str) else response
    if not isinstance(result, Parsed):
        return original_text

    document = original_text
    for entry in result.links.values():
        document = replace_link(document, entry)
    return document


def markdown_links_to_anchors(text: str, allowed_urls: Iterable[str] | None = None) -> str:
    """Convert [text](url) to anchors.

    When ``allowed_urls`` is given, links to any other URL are unwrapped to
    their plain text.
    """
    allowed = {url.strip() for url in allowed_urls} if allowed_urls is not None else None

    def _convert(match: re.Match[str]) -> str:
        label, url = match.group(1), match.group(2)
        if allowed is not None and url not in allowed:
            return label
        return make_anchor(url, label)

    return MARKDOWN_LINK_RE.sub(_convert, text)


def format_article_html(text: str) -> str:
    """Render lightly formatted model output as WordPress-ready HTML."""
    html = BOLD_RE.sub(r"<b>\1</b><br><br>", text)
    html = markdown_links_to_anchors(html)
    html = re.sub(r"\n{2,}", "<br><br>", html)
    html = html.replace("\n", "<br>")
    return re.sub(r"(?:<br>)+$", "", html)
