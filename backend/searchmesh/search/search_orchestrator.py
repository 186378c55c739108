"""
Search orchestrator: fan one query out to every configured backend at once and
merge the settled outcomes in configuration order.
"""

import asyncio
import logging
import re
from typing import Optional, Sequence

from searchmesh.answer.formatter import format_response
from searchmesh.search.clients.base import SearchBackend
from searchmesh.search.schemas import SLOT_ORDER, BackendSlot, SearchResult
from searchmesh.search.support import RateLimiter, RetryingClient

logger = logging.getLogger(__name__)

_URL_MARKER_RE = re.compile(r"URL: (https?://\S+)")

ADDITIONAL_INFO_TITLE = "Additional Information"


def extract_marked_url(content: str) -> Optional[str]:
    """First URL announced by a literal "URL: " marker, if any."""
    m = _URL_MARKER_RE.search(content)
    return m.group(1) if m else None


class SearchOrchestrator:
    """
    Fan-out / fan-in over a fixed, ordered set of backends.

    Each backend gets its own RateLimiter and RetryingClient; a failing
    backend becomes an error SearchResult instead of an exception.
    """

    def __init__(
        self,
        backends: Sequence[SearchBackend],
        *,
        rates: Optional[dict[str, float]] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        slot_order: Sequence[str] = SLOT_ORDER,
    ):
        self.backends = list(backends)
        self.slot_order = tuple(slot_order)
        rates = rates or {}
        self._clients = {
            b.name: RetryingClient(
                b.name,
                RateLimiter(rates.get(b.name, 1.0)),
                max_retries=max_retries,
                retry_delay=retry_delay,
            )
            for b in self.backends
        }

    @property
    def backend_names(self) -> list[str]:
        return [b.name for b in self.backends]

    async def _search_backend(
        self, backend: SearchBackend, query: str, history: Sequence[tuple[str, str]]
    ) -> SearchResult:
        client = self._clients[backend.name]
        content = await client.call(lambda: backend.run(query, history))
        return SearchResult(content=content, source=backend.name, url=extract_marked_url(content))

    async def search(
        self, query: str, history: Optional[Sequence[tuple[str, str]]] = None
    ) -> list[SearchResult]:
        """
        One SearchResult per configured backend, in configuration order. Never raises.

        history holds earlier (role, content) turns for backends that use them.
        """
        history = tuple(history or ())
        if not self.backends:
            return []
        logger.info(f"Searching {len(self.backends)} backends for {query!r}")
        settled = await asyncio.gather(
            *(self._search_backend(b, query, history) for b in self.backends),
            return_exceptions=True,  # one failing backend must not abort the others
        )

        results: list[SearchResult] = []
        for backend, outcome in zip(self.backends, settled):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                message = str(outcome) or outcome.__class__.__name__
                logger.warning(f"❌ {backend.name} failed: {message}")
                results.append(SearchResult(content="", source=backend.name, error=message))
            else:
                results.append(outcome)
        ok = sum(1 for r in results if r.ok)
        logger.info(f"Search complete: {ok}/{len(results)} backends succeeded")
        return results

    def build_status(self, results: Sequence[SearchResult]) -> list[BackendSlot]:
        """
        Status slots: the fixed slot set in fixed order, then any configured
        backend outside it. Slots with no configured backend are not-attempted;
        configured backends with no result yet are pending.
        """
        by_source = {r.source: r for r in results}
        configured = set(self.backend_names)
        names = list(self.slot_order) + [n for n in self.backend_names if n not in self.slot_order]

        slots = []
        for name in names:
            if name not in configured:
                slots.append(BackendSlot.not_configured(name))
                continue
            slot = BackendSlot.pending(name)
            if name in by_source:
                slot = slot.complete(by_source[name])
            slots.append(slot)
        return slots

    def source_urls(self, results: Sequence[SearchResult]) -> list[str]:
        return [r.url for r in results if r.ok and r.url]

    def build_context(self, results: Sequence[SearchResult]) -> str:
        """Lead result, additional results and numbered sources as raw markdown."""
        successful = [r for r in results if r.ok]
        parts = []
        if successful:
            parts.append(successful[0].content)
        if len(successful) > 1:
            extra = "\n\n".join(r.content for r in successful[1:])
            parts.append(f"### {ADDITIONAL_INFO_TITLE}\n{extra}")
        urls = self.source_urls(results)
        if urls:
            listing = "\n".join(f"[{i}] {url}" for i, url in enumerate(urls, start=1))
            parts.append(f"### Sources\n{listing}")
        return "\n\n".join(parts)

    def format_results(self, results: Sequence[SearchResult], include_thinking: bool = False) -> str:
        return format_response(
            self.build_context(results),
            self.build_status(results),
            include_thinking=include_thinking,
        )
