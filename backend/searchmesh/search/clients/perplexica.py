"""
Perplexica client. Posts to a self-hosted Perplexica /api/search endpoint,
which answers with a generated message plus the sources it read.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional, Sequence

import requests

from searchmesh.search.clients.base import NO_RESULTS, SearchBackend, raise_for_response, request_error

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_HISTORY_ROLES = {"user": "human", "assistant": "assistant"}


def published_at(source: dict[str, Any]) -> datetime:
    """Source publication time; undated or unparseable sources sort last."""
    raw = (source.get("metadata") or {}).get("publishedDate")
    if not raw:
        return _OLDEST
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_history(turns: Sequence[tuple[str, str]]) -> list[list[str]]:
    """(role, content) turns as Perplexica history pairs; system turns are skipped."""
    return [[_HISTORY_ROLES[role], content] for role, content in turns if role in _HISTORY_ROLES]


class PerplexicaBackend(SearchBackend):
    name = "perplexica"

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        max_results: int = 5,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
        focus_mode: str = "webSearch",
        max_age_days: int = 30,
        chat_model: Optional[dict[str, Any]] = None,
        embedding_model: Optional[dict[str, Any]] = None,
        today: Callable[[], date] = date.today,
    ):
        super().__init__(max_results=max_results)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.focus_mode = focus_mode
        self.max_age_days = max_age_days
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self._today = today
        self._session = session or requests.Session()

    def build_request(self, query: str, history: Sequence[tuple[str, str]] = ()) -> dict[str, Any]:
        end = self._today()
        start = end - timedelta(days=self.max_age_days)
        payload: dict[str, Any] = {
            "query": query,
            "focusMode": self.focus_mode,
            "optimizationMode": "balanced",
            "history": to_history(history),
            "searchDate": end.isoformat(),
            "recencyBoost": True,
            "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
            "searchOptions": {
                "filterDuplicates": True,
                "prioritizeRecent": True,
                "minRelevanceScore": 0.6,
                "maxResults": self.max_results,
            },
        }
        if self.chat_model:
            payload["chatModel"] = self.chat_model
        if self.embedding_model:
            payload["embeddingModel"] = self.embedding_model
        return payload

    def _post(self, query: str, history: Sequence[tuple[str, str]] = ()) -> dict[str, Any]:
        try:
            response = self._session.post(
                f"{self.base_url}/api/search",
                json=self.build_request(query, history),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise request_error(self.name, e) from e
        raise_for_response(self.name, response)

        data = response.json() or {}
        sources = sorted(data.get("sources") or [], key=published_at, reverse=True)
        return {"message": (data.get("message") or "").strip(), "sources": sources}

    def _rows(self, sources: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        rows = []
        for source in sources:
            metadata = source.get("metadata") or {}
            description = (source.get("pageContent") or "").strip()[:400]
            if metadata.get("publishedDate"):
                description = f"{description} (Published: {metadata['publishedDate']})".strip()
            rows.append({"title": metadata.get("title"), "description": description, "url": metadata.get("url")})
        return rows

    def _search_sync(self, query: str) -> list[dict[str, Any]]:
        return self._rows(self._post(query)["sources"])

    async def run(self, query: str, history: Sequence[tuple[str, str]] = ()) -> str:
        """Perplexica's own answer followed by its sources, newest first."""
        data = await asyncio.to_thread(self._post, query, history)
        hits = [self._coerce(row) for row in self._rows(data["sources"])[: self.max_results]]
        parts = [data["message"]] if data["message"] else []
        if hits:
            parts.append(self.format_hits(hits))
        return "\n\n".join(parts) or NO_RESULTS
