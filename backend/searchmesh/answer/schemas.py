from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TokenKind(Enum):
    HEADER = "header"
    BULLET = "bullet"
    CONTINUATION = "continuation"
    TEXT = "text"
    BLANK = "blank"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    line: str
    # Header title for HEADER tokens, empty otherwise
    value: str = ""


@dataclass(frozen=True)
class FormattedSection:
    """A titled block of the answer. An empty title marks an untitled lead paragraph."""

    title: str
    content: str


@dataclass(frozen=True)
class ParsedAnswer:
    thinking: str
    body: str
    direct_answer: str
    context: str
    urls: tuple[str, ...] = ()
    sections: tuple[FormattedSection, ...] = field(default_factory=tuple)


class ScrapedPage(BaseModel):
    url: str
    content: str = "No content found"
    summary: str = "No summary available"
    key_points: list[str] = Field(default_factory=list)
    title: Optional[str] = None
    author: Optional[str] = None
    publish_date: Optional[str] = None
