"""Tests for inserting suggested links into article text.

Only the occurrence of a term inside its suggested sentence is linked, the
opening sentence is never linked, and anything unparseable leaves the text
exactly as it was.
"""

from pbnj.services.link_replacer import (
    bulk_replace_links,
    first_sentence_end,
    format_article_html,
    is_inside_markup,
    make_anchor,
    markdown_links_to_anchors,
)
from pbnj.services.response_parser import Parsed, ParsedLinkEntry

ROOTZOO_TEXT = (
    "Welcome to a little story about a nice company named Rootzoo.  We have always strived to "
    "do good at Rootzoo and will continue to do so into the new millenium.  Even if you look up "
    "our audience, you'll see its always been about the fans. For years, our audience knows "
    "it's about doing the right thing, not the easy thing.  And that's what makes Rootzoo, well "
    "Rootzoo."
)

BRAND_SENTENCE = (
    "Status Labs' reputation management services cover a wide range of areas, including "
    "crisis communications, brand reputation management, and online image repair."
)

BRAND_URL = "https://www.reviewtrackers.com/blog/brand-reputation-management/"

BRAND_ENTRY = (
    f'"{BRAND_URL}": {{"text": "brand reputation management", "sentence": "Status Labs\' '
    "reputation management services cover a wide range of areas, including crisis "
    'communications, [brand reputation management], and online image repair."}'
)

JESSE_URL = "https://www.linkedin.com/in/jesseboskoff/"


class TestBulkReplaceLinks:
    def test_links_only_the_in_context_occurrence(self) -> None:
        response = (
            '{"https://rootzoo.com": { "text": "[Rootzoo]", "sentence": "We have always strived '
            'to do good at [Rootzoo] and will continue to do so" },"https://google.com": { "text": '
            '"[our audience]", "sentence": "For years, [our audience] knows it\'s about doing the '
            'right thing, not the easy thing." }}'
        )

        result = bulk_replace_links(response, ROOTZOO_TEXT)

        rootzoo_anchor = '<a href="https://rootzoo.com" target="_blank">Rootzoo</a>'
        assert f"to do good at {rootzoo_anchor} and will" in result
        assert result.count(rootzoo_anchor) == 1
        assert "Welcome to a little story about a nice company named Rootzoo." in result
        assert "And that's what makes Rootzoo, well Rootzoo." in result
        assert (
            'For years, <a href="https://google.com" target="_blank">our audience</a> knows'
            in result
        )
        assert "Even if you look up our audience," in result

    def test_text_missing_from_sentence_changes_nothing(self) -> None:
        response = (
            '{"https://rootzoo.com": { "text": "[Rootzoogle]", "sentence": "We have always '
            'strived to do good at [Rootzoo] and will continue to do so" }}'
        )

        assert bulk_replace_links(response, ROOTZOO_TEXT) == ROOTZOO_TEXT

    def test_invalid_url_key_changes_nothing(self) -> None:
        response = (
            '{"URL_STRUCTURE": { "text": "[Rootzoogle]", "sentence": "We have always strived to '
            'do good at [Rootzoo] and will continue to do so" }}'
        )

        assert bulk_replace_links(response, ROOTZOO_TEXT) == ROOTZOO_TEXT

    def test_invalid_entry_shape_changes_nothing(self) -> None:
        response = (
            '{"URL_STRUCTURE": { "sentence": "We have always strived to do good at [Rootzoo] '
            'and will continue to do so" }}'
        )

        assert bulk_replace_links(response, ROOTZOO_TEXT) == ROOTZOO_TEXT

    def test_garbage_returns_original_text(self) -> None:
        assert bulk_replace_links("not json at all", ROOTZOO_TEXT) == ROOTZOO_TEXT

    def test_entry_without_outer_braces(self) -> None:
        original = ROOTZOO_TEXT.replace(
            "new millenium.  ", f"new millenium.  {BRAND_SENTENCE}  ", 1
        )

        result = bulk_replace_links(BRAND_ENTRY, original)

        assert (
            f'<a href="{BRAND_URL}" target="_blank">brand reputation management</a>' in result
        )
        assert "Status Labs' reputation management services" in result

    def test_unmatched_entries_do_not_block_later_ones(self) -> None:
        original = f"{ROOTZOO_TEXT}  {BRAND_SENTENCE}"
        response = (
            f'"{JESSE_URL}": {{"text": "Jesse Boskoff", "sentence": "Jesse Boskoff, a renowned '
            'reputation management expert, has partnered with Darius Fisher."}\n\n'
            '"https://www.linkedin.com/company/statuslabs/": {"text": "Status Labs", "sentence": '
            '"Darius Fisher, the CEO of Status Labs, shares Boskoff\'s passion."}\n\n'
            f'{BRAND_ENTRY}"'
        )

        result = bulk_replace_links(response, original)

        assert (
            f'<a href="{BRAND_URL}" target="_blank">brand reputation management</a>' in result
        )
        assert JESSE_URL not in result
        assert "statuslabs" not in result

    def test_suggestion_in_opening_sentence_moves_to_later_occurrence(self) -> None:
        original = (
            f"{BRAND_SENTENCE}  Welcome to a little story about a nice company named Rootzoo.  \n"
            "\n"
            "We have always strived to do good at Rootzoo and will continue to do so into the "
            "new millenium.  \n"
            "\n"
            "Even if you look up our audience, you'll see reputation management always been "
            "about the fans. For years, our audience knows it's about doing the right thing, "
            "not the easy thing."
        )
        response = (
            f'"{JESSE_URL}": {{"text": "reputation management", "sentence": "{BRAND_SENTENCE}"}}"'
        )

        result = bulk_replace_links(response, original)

        assert (
            f'<a href="{JESSE_URL}" target="_blank">reputation management</a> always been '
            "about the fans." in result
        )
        assert result.startswith(BRAND_SENTENCE)

    def test_opening_line_without_later_occurrence_is_not_linked(self) -> None:
        original = (
            "A story of reputation mgmt: \n"
            "\n"
            f"  {BRAND_SENTENCE}  Welcome to a little story about a nice company named Rootzoo."
        )
        response = (
            f'"{JESSE_URL}": {{"text": "reputation mgmt", "sentence": "A story of '
            '[reputation mgmt]:"}"'
        )

        result = bulk_replace_links(response, original)

        assert result == original
        assert JESSE_URL not in result

    def test_title_match_is_not_linked(self) -> None:
        original = (
            "How Millbrook Companies Reinvented Their Offices with Jesse Boskoff\n"
            "\n"
            "\n"
            "  Over the past few years, the concept of traditional office spaces has been "
            "reimagined. Millbrook co, a conglomerate of marketing and communication firms, took "
            "a unique approach. The Millbrook campus now boasts five buildings."
        )
        response = (
            f'"{JESSE_URL}": {{"text": "Millbrook Companies", "sentence": "How [Millbrook '
            'Companies] Reinvented Their Offices with Jesse Boskoff"}'
        )

        result = bulk_replace_links(response, original)

        assert result == original

    def test_accepts_an_already_parsed_result(self) -> None:
        parsed = Parsed(
            links={
                "https://google.com": ParsedLinkEntry(
                    url="https://google.com",
                    text="our audience",
                    sentence="For years, our audience knows",
                )
            }
        )

        result = bulk_replace_links(parsed, ROOTZOO_TEXT)

        assert 'For years, <a href="https://google.com" target="_blank">our audience</a>' in result


class TestHelpers:
    def test_make_anchor(self) -> None:
        assert make_anchor("https://a.com", "A") == '<a href="https://a.com" target="_blank">A</a>'

    def test_first_sentence_end(self) -> None:
        assert first_sentence_end("Title line\nBody. More.") == len("Title line\n")
        assert first_sentence_end("no terminator") == len("no terminator")

    def test_is_inside_markup(self) -> None:
        document = 'See <a href="https://a.com" target="_blank">docs here</a> and docs there.'

        assert is_inside_markup(document, document.index("href")) is True
        assert is_inside_markup(document, document.index("docs here")) is True
        assert is_inside_markup(document, document.index("docs there")) is False

    def test_less_than_in_prose_is_not_markup(self) -> None:
        document = "When a < b the shop sells widgets, <b>bold</b> widgets too."

        assert is_inside_markup(document, document.index("widgets")) is False
        assert is_inside_markup(document, document.index("bold") - 1) is True

    def test_relocation_skips_past_comparison_in_prose(self) -> None:
        document = "Buy widgets today.\nWhen price a < b, widgets win."
        response = (
            '{"https://widgets.example.com": {"text": "[widgets]", '
            '"sentence": "Buy [widgets] today."}}'
        )

        result = bulk_replace_links(response, document)

        assert result == (
            "Buy widgets today.\nWhen price a < b, "
            '<a href="https://widgets.example.com" target="_blank">widgets</a> win.'
        )


class TestMarkdownLinks:
    def test_converts_links(self) -> None:
        text = "Read [the guide](https://guide.example.com/start) today."

        assert markdown_links_to_anchors(text) == (
            'Read <a href="https://guide.example.com/start" target="_blank">the guide</a> today.'
        )

    def test_unlisted_urls_are_unwrapped(self) -> None:
        text = "[kept](https://keep.example.com) and [dropped](https://other.example.com)"

        result = markdown_links_to_anchors(text, allowed_urls=["https://keep.example.com"])

        assert result == '<a href="https://keep.example.com" target="_blank">kept</a> and dropped'


class TestFormatArticleHtml:
    def test_formats_bold_links_and_newlines(self) -> None:
        text = "**Title**\nIntro line\n\nSee [docs](https://docs.example.com).\n"

        assert format_article_html(text) == (
            "<b>Title</b><br><br><br>Intro line<br><br>"
            'See <a href="https://docs.example.com" target="_blank">docs</a>.'
        )

    def test_plain_text_passes_through(self) -> None:
        assert format_article_html("Just words") == "Just words"
