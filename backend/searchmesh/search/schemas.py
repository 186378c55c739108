from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

UNTITLED = "Untitled"
NO_URL = "No URL"


class SearchHit(BaseModel):
    """One provider row, coerced to a common shape."""

    title: str = UNTITLED
    description: str = ""
    url: str = NO_URL

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value):
        return str(value).strip() if value and str(value).strip() else UNTITLED

    @field_validator("url", mode="before")
    @classmethod
    def _default_url(cls, value):
        return str(value).strip() if value and str(value).strip() else NO_URL

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value):
        return str(value).strip() if value else ""


class SearchResult(BaseModel):
    """Outcome of one backend for one query: error set XOR content non-empty."""

    content: str = ""
    source: str
    url: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _error_xor_content(self):
        if (self.error is not None) == bool(self.content):
            raise ValueError("exactly one of error or non-empty content must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.content)


class BackendStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    NOT_ATTEMPTED = "not_attempted"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]


_GLYPHS = {
    BackendStatus.PENDING: "⏳",
    BackendStatus.SUCCESS: "✅",
    BackendStatus.ERROR: "❌",
    BackendStatus.NOT_ATTEMPTED: "⚠️",
}

# Status header slots, shown even when a backend is not configured
SLOT_ORDER = ("duckduckgo", "tavily", "serper", "brave", "perplexica")

BACKEND_LABELS = {
    "duckduckgo": "DuckDuckGo",
    "tavily": "Tavily",
    "serper": "Serper",
    "brave": "Brave Search",
    "perplexica": "Perplexica",
}


def backend_label(name: str) -> str:
    return BACKEND_LABELS.get(name, name.replace("_", " ").title())


@dataclass(frozen=True)
class BackendSlot:
    """
    Display state of one named backend slot.

    Variants: NotConfigured, Pending, Succeeded(payload), Failed(error).
    Use the classmethod constructors; `complete` moves Pending to a terminal
    variant exactly once.
    """

    name: str
    status: BackendStatus
    payload: Optional[SearchResult] = None
    error: Optional[str] = None

    @classmethod
    def not_configured(cls, name: str) -> "BackendSlot":
        return cls(name=name, status=BackendStatus.NOT_ATTEMPTED)

    @classmethod
    def pending(cls, name: str) -> "BackendSlot":
        return cls(name=name, status=BackendStatus.PENDING)

    @classmethod
    def succeeded(cls, result: SearchResult) -> "BackendSlot":
        return cls(name=result.source, status=BackendStatus.SUCCESS, payload=result)

    @classmethod
    def failed(cls, name: str, error: str) -> "BackendSlot":
        return cls(name=name, status=BackendStatus.ERROR, error=error)

    @property
    def label(self) -> str:
        return backend_label(self.name)

    @property
    def glyph(self) -> str:
        return self.status.glyph

    @property
    def is_terminal(self) -> bool:
        return self.status is not BackendStatus.PENDING

    def complete(self, result: SearchResult) -> "BackendSlot":
        if self.status is not BackendStatus.PENDING:
            raise ValueError(f"slot {self.name!r} is already {self.status.value}")
        if result.ok:
            return BackendSlot.succeeded(result)
        return BackendSlot.failed(self.name, result.error or "empty result")
