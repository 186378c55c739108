"""
Response formatting: turn raw generated (or merged search) text into the
status-annotated document sent to the user.

Two passes over the immutable input:
  1. tokenize(): one Token per line (header, bullet, continuation, text, blank)
  2. build_sections(): group tokens into FormattedSection values

parse_answer() runs the thinking / direct-answer splits and both passes;
format_response() assembles the document and normalizes it. No stage raises
on malformed input.
"""

import re
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from searchmesh.answer.schemas import FormattedSection, ParsedAnswer, Token, TokenKind

if TYPE_CHECKING:
    from searchmesh.search.schemas import BackendSlot

THINK_OPEN = "<think>"
THINK_DELIMITER = "</think>"
ANSWER_MARKER = "**Answer:**"

STATUS_TITLE = "Search Sources Used:"
KEY_POINTS_TITLE = "Key Points"
SOURCES_TITLE = "Sources"

_URL_RE = re.compile(r"https?://[^\s<>\"'\[\]{}]+")
_URL_TRAILING = ".,;:!?*"

_HEADER_RE = re.compile(r"^ {0,3}#{1,6}[ \t]+(.*\S)[ \t]*$")
_BULLET_RE = re.compile(r"^[ \t]*(?:•|[-*+](?=[ \t]))[ \t]*\S")
# "[1] https://...", "- https://...", "2. <https://...>" inside a Sources section
_SOURCE_LINE_RE = re.compile(r"^[ \t]*(?:\[\d+\]|\d+\.|[-*+•])?[ \t]*<?https?://\S+?>?[ \t]*$")

# Normalization
_NORM_BULLET_RE = re.compile(r"^([ \t]*)(?:(•)[ \t]*|([-*+])(?:[ \t]+|$))(.*)$")
_SPACE_BEFORE_COLON_RE = re.compile(r"(?<=\S)[ \t]+:")
_SPACE_AFTER_COLON_RE = re.compile(r":[ \t]{2,}")
_SPACE_AFTER_PERIOD_RE = re.compile(r"\.[ \t]{2,}")
_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")


# ----- Splits -----


def split_thinking(text: str) -> tuple[str, str]:
    """Split on the first thinking delimiter: (thinking, body)."""
    if THINK_DELIMITER not in text:
        return "", text.strip()
    thinking, body = text.split(THINK_DELIMITER, 1)
    thinking = thinking.strip()
    if thinking.startswith(THINK_OPEN):
        thinking = thinking[len(THINK_OPEN):].strip()
    return thinking, body.strip()


def split_direct_answer(body: str) -> tuple[str, str]:
    """Split on the first answer marker: (context, direct_answer)."""
    if ANSWER_MARKER not in body:
        return body.strip(), ""
    context, answer = body.split(ANSWER_MARKER, 1)
    return context.strip(), answer.strip()


def _trim_url(url: str) -> str:
    """Drop trailing punctuation and any closing paren without an opener inside the URL."""
    while True:
        trimmed = url.rstrip(_URL_TRAILING)
        if trimmed.endswith(")") and trimmed.count(")") > trimmed.count("("):
            trimmed = trimmed[:-1]
        if trimmed == url:
            return url
        url = trimmed


def _url_spans(text: str) -> Iterable[tuple[int, int]]:
    for m in _URL_RE.finditer(text):
        url = _trim_url(m.group(0))
        if _URL_RE.fullmatch(url):
            yield m.start(), m.start() + len(url)


def extract_urls(text: str) -> list[str]:
    """http(s) URLs in first-occurrence order, without duplicates."""
    seen: dict[str, None] = {}
    for start, end in _url_spans(text):
        seen.setdefault(text[start:end], None)
    return list(seen)


# ----- Pass 1: tokenizer -----


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    in_item = False
    for line in text.split("\n"):
        if not line.strip():
            tokens.append(Token(TokenKind.BLANK, ""))
            in_item = False
            continue
        header = _HEADER_RE.match(line)
        if header:
            tokens.append(Token(TokenKind.HEADER, line, header.group(1).strip()))
            in_item = False
        elif _BULLET_RE.match(line):
            tokens.append(Token(TokenKind.BULLET, line))
            in_item = True
        elif in_item and line[0] in " \t":
            # Indented detail lines directly under a bullet belong to it
            tokens.append(Token(TokenKind.CONTINUATION, line))
        else:
            tokens.append(Token(TokenKind.TEXT, line))
            in_item = False
    return tokens


# ----- Pass 2: section builder -----


class _Draft:
    def __init__(self, title: str):
        self.title = title
        self.lines: list[str] = []

    def add(self, line: str) -> None:
        self.lines.append(line)

    def build(self) -> FormattedSection:
        return FormattedSection(title=self.title, content="\n".join(self.lines).strip())


def build_sections(tokens: Sequence[Token]) -> list[FormattedSection]:
    """
    Group tokens into sections in order of first appearance.

    Header-led segments keep everything up to the next header. Outside a
    header, bullet runs all merge into one "Key Points" section (placed where
    the first run appeared) and plain text forms untitled sections.
    """
    drafts: list[_Draft] = []
    under_header: Optional[_Draft] = None
    key_points: Optional[_Draft] = None
    target: Optional[_Draft] = None

    for token in tokens:
        if token.kind is TokenKind.HEADER:
            under_header = _Draft(token.value)
            drafts.append(under_header)
            continue
        if under_header is not None:
            under_header.add(token.line)
            continue

        if token.kind is TokenKind.BLANK:
            if target is not None:
                target.add("")
            continue

        if token.kind in (TokenKind.BULLET, TokenKind.CONTINUATION):
            if key_points is None:
                key_points = _Draft(KEY_POINTS_TITLE)
                drafts.append(key_points)
            elif target is not key_points and key_points.lines and key_points.lines[-1]:
                key_points.add("")
            key_points.add(token.line)
            target = key_points
            continue

        if target is None or target is key_points:
            target = _Draft("")
            drafts.append(target)
        target.add(token.line)

    sections = []
    for draft in drafts:
        section = draft.build()
        if section.title.lower() == SOURCES_TITLE.lower():
            section = _without_source_listing(section)
        if section.content:
            sections.append(section)
    return sections


def _without_source_listing(section: FormattedSection) -> FormattedSection:
    """
    A generated Sources section minus its URL listing lines. The URLs are
    already collected and re-rendered; any other text survives untitled.
    """
    kept = [line for line in section.content.split("\n") if not _SOURCE_LINE_RE.match(line)]
    return FormattedSection(title="", content="\n".join(kept).strip())


def extract_sections(text: str) -> list[FormattedSection]:
    return build_sections(tokenize(text))


def parse_answer(raw_text: str) -> ParsedAnswer:
    thinking, body = split_thinking(raw_text or "")
    context, direct_answer = split_direct_answer(body)
    return ParsedAnswer(
        thinking=thinking,
        body=body,
        direct_answer=direct_answer,
        context=context,
        urls=tuple(extract_urls(context)),
        sections=tuple(extract_sections(context)),
    )


# ----- Assembly -----


def format_status_header(status: Sequence["BackendSlot"]) -> str:
    lines = [STATUS_TITLE]
    lines.extend(f"{slot.glyph} {slot.label}" for slot in status)
    return "\n".join(lines)


def render_section(section: FormattedSection) -> str:
    if not section.title:
        return section.content
    return f"### {section.title}\n{section.content}"


def render_sources(urls: Sequence[str]) -> str:
    lines = [f"### {SOURCES_TITLE}"]
    lines.extend(f"[{i}] {url}" for i, url in enumerate(urls, start=1))
    return "\n".join(lines)


def format_response(
    raw_text: str,
    status: Sequence["BackendSlot"],
    include_thinking: bool = False,
    sources: Sequence[str] = (),
) -> str:
    """
    Build the user-facing document.

    Args:
        raw_text: Generated answer or merged search text.
        status: One BackendSlot per status header line, in display order.
        include_thinking: Keep the thinking segment (hidden by default).
        sources: Extra source URLs appended after those found in the text.

    Returns:
        Normalized document: status header, optional thinking, TL;DR,
        sections, numbered sources.
    """
    parsed = parse_answer(raw_text)
    urls = list(dict.fromkeys([*parsed.urls, *sources]))

    parts = [format_status_header(status)]
    if include_thinking and parsed.thinking:
        parts.append(f"Thinking Process:\n{parsed.thinking}")
    if parsed.direct_answer:
        parts.append(f"TL;DR: {parsed.direct_answer}")
    parts.extend(render_section(s) for s in parsed.sections)
    if urls:
        parts.append(render_sources(urls))
    return normalize("\n\n".join(parts))


# ----- Normalization -----


def _normalize_gap(text: str) -> str:
    text = _SPACE_BEFORE_COLON_RE.sub(":", text)
    text = _SPACE_AFTER_COLON_RE.sub(": ", text)
    return _SPACE_AFTER_PERIOD_RE.sub(". ", text)


def _normalize_inline(text: str) -> str:
    """Punctuation spacing outside URLs; URL text is copied unchanged."""
    out = []
    pos = 0
    for start, end in _url_spans(text):
        out.append(_normalize_gap(text[pos:start]))
        out.append(text[start:end])
        pos = end
    out.append(_normalize_gap(text[pos:]))
    return "".join(out)


def _normalize_line(line: str) -> Optional[str]:
    """Normalized line, or None when the line is an empty bullet."""
    line = line.rstrip()
    bullet = _NORM_BULLET_RE.match(line)
    if bullet:
        indent, glyph, ascii_marker, rest = bullet.groups()
        if not rest:
            return None
        prefix = f"{indent}{glyph or ascii_marker} "
        return (prefix + _normalize_inline(rest)).rstrip()
    return _normalize_inline(line).rstrip()


def normalize(text: str) -> str:
    """Whitespace and punctuation cleanup. normalize(normalize(x)) == normalize(x)."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [fixed for fixed in map(_normalize_line, text.split("\n")) if fixed is not None]
    text = "\n".join(lines)
    text = _MULTI_NEWLINE_RE.sub("\n\n", text)
    return text.strip()
