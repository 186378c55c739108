"""Answer formatting: parsing, normalization, chunking and the generation/scrape collaborators."""

from .chunker import DEFAULT_CHUNK_LIMIT, split_chunks
from .formatter import (
    extract_sections,
    extract_urls,
    format_response,
    format_status_header,
    normalize,
    parse_answer,
)
from .llm_utils import Generator
from .schemas import FormattedSection, ParsedAnswer, ScrapedPage
from .scraper import FirecrawlScraper

__all__ = [
    "split_chunks",
    "DEFAULT_CHUNK_LIMIT",
    "format_response",
    "format_status_header",
    "normalize",
    "parse_answer",
    "extract_urls",
    "extract_sections",
    "Generator",
    "FirecrawlScraper",
    "FormattedSection",
    "ParsedAnswer",
    "ScrapedPage",
]
