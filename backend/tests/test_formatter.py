"""Tests for the response formatter: splits, URL extraction, sections, assembly, normalization."""

import pytest

from searchmesh.answer.formatter import (
    build_sections,
    extract_urls,
    format_response,
    normalize,
    parse_answer,
    split_direct_answer,
    split_thinking,
    tokenize,
)
from searchmesh.answer.schemas import FormattedSection, TokenKind
from searchmesh.search.schemas import BackendSlot, SearchResult


@pytest.fixture
def status():
    return [
        BackendSlot.succeeded(SearchResult(content="x", source="duckduckgo")),
        BackendSlot.not_configured("brave"),
    ]


class TestSplits:
    def test_thinking_split(self):
        assert split_thinking("<think>reasoning</think>\nbody text") == ("reasoning", "body text")

    def test_no_thinking_delimiter(self):
        assert split_thinking("  just the body ") == ("", "just the body")

    def test_thinking_split_on_first_delimiter(self):
        thinking, body = split_thinking("a</think>b</think>c")
        assert thinking == "a"
        assert body == "b</think>c"

    def test_direct_answer_split(self):
        assert split_direct_answer("context here\n**Answer:** 42") == ("context here", "42")

    def test_no_answer_marker(self):
        assert split_direct_answer("context only") == ("context only", "")


class TestExtractUrls:
    def test_duplicates_removed(self):
        assert extract_urls("see https://a.com/x and https://a.com/x again") == ["https://a.com/x"]

    def test_first_occurrence_order(self):
        text = "http://b.org then https://a.com/x then http://b.org"
        assert extract_urls(text) == ["http://b.org", "https://a.com/x"]

    def test_trailing_punctuation_excluded(self):
        assert extract_urls("Read https://a.com/page. Or (https://b.com/q), fine") == [
            "https://a.com/page",
            "https://b.com/q",
        ]

    def test_no_urls(self):
        assert extract_urls("nothing to see") == []

    def test_balanced_parentheses_kept(self):
        text = "See https://en.wikipedia.org/wiki/Cat_(disambiguation) for more"
        assert extract_urls(text) == ["https://en.wikipedia.org/wiki/Cat_(disambiguation)"]

    def test_unbalanced_closing_paren_trimmed(self):
        text = "(see https://en.wikipedia.org/wiki/Cat_(disambiguation)). And [docs](https://a.com/x)"
        assert extract_urls(text) == ["https://en.wikipedia.org/wiki/Cat_(disambiguation)", "https://a.com/x"]


class TestTokenize:
    def test_token_kinds(self):
        tokens = tokenize("## Title\n• a\n  detail\nplain\n\n- b")
        assert [t.kind for t in tokens] == [
            TokenKind.HEADER,
            TokenKind.BULLET,
            TokenKind.CONTINUATION,
            TokenKind.TEXT,
            TokenKind.BLANK,
            TokenKind.BULLET,
        ]
        assert tokens[0].value == "Title"

    def test_emphasis_is_not_a_bullet(self):
        assert tokenize("*bold* claim")[0].kind is TokenKind.TEXT

    def test_indented_text_without_bullet_is_text(self):
        assert tokenize("  indented")[0].kind is TokenKind.TEXT


class TestSections:
    def test_header_captures_following_lines(self):
        sections = build_sections(tokenize("## Details\ntext\n• c"))
        assert sections == [FormattedSection(title="Details", content="text\n• c")]

    def test_ungrouped_bullets_merge_into_key_points(self):
        sections = build_sections(tokenize("Intro line\n• a\n\nMiddle\n• b"))
        assert sections == [
            FormattedSection(title="", content="Intro line"),
            FormattedSection(title="Key Points", content="• a\n\n• b"),
            FormattedSection(title="", content="Middle"),
        ]

    def test_sources_section_dropped(self):
        sections = build_sections(tokenize("Lead\n\n### Sources\n[1] https://a.com"))
        assert [s.title for s in sections] == [""]

    def test_sources_section_keeps_non_listing_text(self):
        text = "Lead\n\n### Sources\n[1] https://a.com\n- https://b.com\nCat Facts Weekly\n\nHope this helps!"
        assert build_sections(tokenize(text)) == [
            FormattedSection(title="", content="Lead"),
            FormattedSection(title="", content="Cat Facts Weekly\n\nHope this helps!"),
        ]

    def test_empty_header_section_dropped(self):
        sections = build_sections(tokenize("### Empty\n\n### Full\nbody"))
        assert sections == [FormattedSection(title="Full", content="body")]

    def test_parse_answer_structure(self):
        parsed = parse_answer("<think>t</think>See https://a.com\n• point\n**Answer:** yes")
        assert parsed.thinking == "t"
        assert parsed.direct_answer == "yes"
        assert parsed.context == "See https://a.com\n• point"
        assert parsed.urls == ("https://a.com",)
        assert [s.title for s in parsed.sections] == ["", "Key Points"]


class TestFormatResponse:
    RAW = (
        "<think>reasoning here</think>\n"
        "The capital is Paris. See https://en.example.org/paris\n"
        "**Answer:** Paris"
    )

    def test_exact_document(self, status):
        assert format_response(self.RAW, status) == (
            "Search Sources Used:\n"
            "✅ DuckDuckGo\n"
            "⚠️ Brave Search\n"
            "\n"
            "TL;DR: Paris\n"
            "\n"
            "The capital is Paris. See https://en.example.org/paris\n"
            "\n"
            "### Sources\n"
            "[1] https://en.example.org/paris"
        )

    def test_thinking_hidden_by_default(self, status):
        assert "reasoning here" not in format_response(self.RAW, status)

    def test_thinking_included_on_request(self, status):
        document = format_response(self.RAW, status, include_thinking=True)
        assert "Thinking Process:\nreasoning here" in document
        assert document.index("Thinking Process:") < document.index("TL;DR:")

    def test_extra_sources_appended_without_duplicates(self, status):
        document = format_response("see https://a.com", status, sources=["https://a.com", "https://b.com"])
        assert document.endswith("### Sources\n[1] https://a.com\n[2] https://b.com")

    def test_existing_sources_section_not_duplicated(self, status):
        document = format_response("Lead https://a.com\n\n### Sources\n[1] https://a.com", status)
        assert document.count("### Sources") == 1

    def test_text_after_generated_sources_survives(self, status):
        raw = "Lead https://a.com\n\n### Sources\n[1] https://a.com\n\nHope this helps!"
        document = format_response(raw, status)
        assert "Hope this helps!" in document
        assert document.endswith("### Sources\n[1] https://a.com")
        assert document.count("### Sources") == 1

    def test_empty_input_keeps_status_header(self, status):
        assert format_response("", status) == "Search Sources Used:\n✅ DuckDuckGo\n⚠️ Brave Search"

    def test_output_is_normalized(self, status):
        document = format_response(self.RAW, status)
        assert normalize(document) == document


class TestNormalize:
    def test_collapses_blank_line_runs(self):
        assert normalize("### T\n• a\n\n\n\n• b") == "### T\n• a\n\n• b"

    def test_drops_empty_bullets(self):
        assert normalize("• first\n• \n-\n- second") == "• first\n- second"

    def test_bullet_spacing(self):
        assert normalize("•tight\n-   loose") == "• tight\n- loose"

    def test_punctuation_spacing(self):
        assert normalize("Note :  value.  Next") == "Note: value. Next"

    def test_urls_untouched(self):
        text = "Port http://a.com:8080/x?y=1 ok"
        assert normalize(text) == text

    def test_trailing_whitespace_and_crlf(self):
        assert normalize("line one   \r\nline two\t\r\n") == "line one\nline two"

    @pytest.mark.parametrize(
        "text",
        [
            "### T\n• a\n\n\n\n• b",
            "  \n\n•a\n•   \n-  b  \n\n\n\ntext :  x.   y\n",
            "see https://a.com/x.  Next :  z",
            "\r\n### Sources\r\n[1]  https://a.com\r\n\r\n\r\n",
            "- - nested\n* star\n+ plus\n• • dot",
        ],
    )
    def test_idempotent(self, text):
        once = normalize(text)
        assert normalize(once) == once
