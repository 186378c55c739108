"""
Common shape for search backends.

Provider SDKs and `requests` are blocking, so `search` runs the provider call
in a worker thread and awaits it; the event loop keeps serving the other
backends meanwhile.
"""

import asyncio
from typing import Any, Iterable, Mapping, Sequence

import requests

from searchmesh.errors import InvalidRequestError, NetworkError, RateLimitError
from searchmesh.search.schemas import SearchHit

NO_RESULTS = "No results found."
# Client-side rejections: InvalidRequestError, never retried
REJECTED_STATUSES = (400, 401, 403)


class SearchBackend:
    name: str = ""

    def __init__(self, max_results: int = 5):
        self.max_results = max_results

    def _search_sync(self, query: str) -> Iterable[Mapping[str, Any]]:
        """Provider call. Returns raw rows; raises NetworkError / RateLimitError."""
        raise NotImplementedError

    def _coerce(self, row: Mapping[str, Any]) -> SearchHit:
        return SearchHit(
            title=row.get("title"),
            description=row.get("description"),
            url=row.get("url"),
        )

    async def search(self, query: str) -> list[SearchHit]:
        rows = await asyncio.to_thread(self._search_sync, query)
        return [self._coerce(row) for row in list(rows)[: self.max_results]]

    async def run(self, query: str, history: Sequence[tuple[str, str]] = ()) -> str:
        """Formatted result text for one query. Conversation-aware backends override this."""
        return self.format_hits(await self.search(query))

    def format_hits(self, hits: list[SearchHit]) -> str:
        if not hits:
            return NO_RESULTS
        blocks = []
        for hit in hits:
            lines = [f"• {hit.title}"]
            if hit.description:
                lines.append(f"  {hit.description}")
            lines.append(f"  URL: {hit.url}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)


def raise_for_response(backend: str, response: requests.Response) -> None:
    """Map HTTP failures onto the backend error taxonomy."""
    if response.status_code == 429:
        raise RateLimitError(backend, "HTTP 429: rate limited")
    if response.status_code in REJECTED_STATUSES:
        raise InvalidRequestError(backend, f"HTTP {response.status_code}: request rejected")
    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise NetworkError(backend, f"HTTP {response.status_code}: {e}") from e


def request_error(backend: str, error: requests.exceptions.RequestException) -> NetworkError:
    return NetworkError(backend, str(error) or error.__class__.__name__)
