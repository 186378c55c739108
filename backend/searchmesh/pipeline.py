"""
Assistant pipeline: search → optional source scraping → generation →
formatting → chunking, for one conversational turn.

Single entry points: SearchAssistant.answer(session_id, message) and
SearchAssistant.search_only(query).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel

from searchmesh.answer.chunker import DEFAULT_CHUNK_LIMIT, split_chunks
from searchmesh.answer.formatter import extract_urls, format_response
from searchmesh.answer.llm_utils import Generator
from searchmesh.answer.schemas import ScrapedPage
from searchmesh.answer.scraper import FirecrawlScraper
from searchmesh.errors import EmptyGenerationError, GenerationError, ScrapeError
from searchmesh.search.schemas import BackendStatus, SearchResult
from searchmesh.search.search_orchestrator import SearchOrchestrator
from searchmesh.sessions import SessionStore

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Sorry, I encountered an error while processing your message. Please try again."
SEARCH_UNAVAILABLE = "(Web search unavailable. Using base knowledge and conversation history.)"


@dataclass(frozen=True)
class FailurePolicy:
    """
    When a turn counts as failed as a whole.

    A turn fails only if fewer than `min_successful_backends` backends
    succeeded and there is no usable generated text. With
    `empty_generation_is_failure` unset, a blank generation still lets the
    turn fall back to the formatted search results.
    """

    min_successful_backends: int = 1
    empty_generation_is_failure: bool = True

    def is_total_failure(self, results: Sequence[SearchResult], generated: bool) -> bool:
        succeeded = sum(1 for r in results if r.ok)
        return succeeded < self.min_successful_backends and not generated


class AssistantReply(BaseModel):
    chunks: list[str]
    status: dict[str, BackendStatus] = {}
    ok: bool = True
    # False when the reply is the search digest or the failure message
    generated: bool = False


def build_prompt(message: str, search_context: str, details: Sequence[ScrapedPage] = ()) -> str:
    parts = [f"WEB SEARCH RESULTS:\n{search_context}" if search_context else SEARCH_UNAVAILABLE]
    if details:
        blocks = []
        for i, page in enumerate(details, start=1):
            lines = [f"[{i}] {page.title or page.url}", f"Summary: {page.summary}"]
            if page.key_points:
                lines.append("Key points: " + "; ".join(page.key_points))
            if page.author:
                lines.append(f"Author: {page.author}")
            if page.publish_date:
                lines.append(f"Published: {page.publish_date}")
            blocks.append("\n".join(lines))
        parts.append("SOURCE DETAILS:\n" + "\n\n".join(blocks))
    parts.append(f"User Query: {message}")
    parts.append("Provide a helpful response using both the conversation history and available information:")
    return "\n\n".join(parts)


class SearchAssistant:
    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        generator: Generator,
        sessions: SessionStore,
        *,
        scraper: Optional[FirecrawlScraper] = None,
        policy: FailurePolicy = FailurePolicy(),
        chunk_limit: int = DEFAULT_CHUNK_LIMIT,
        history_window: int = 5,
        include_thinking: bool = False,
        max_scrape_urls: int = 3,
    ):
        self.orchestrator = orchestrator
        self.generator = generator
        self.sessions = sessions
        self.scraper = scraper
        self.policy = policy
        self.chunk_limit = chunk_limit
        self.history_window = history_window
        self.include_thinking = include_thinking
        self.max_scrape_urls = max_scrape_urls

    def _reply(self, document: str, results: Sequence[SearchResult], *, ok: bool = True, generated: bool = False):
        status = {slot.name: slot.status for slot in self.orchestrator.build_status(results)}
        return AssistantReply(
            chunks=split_chunks(document, self.chunk_limit),
            status=status,
            ok=ok,
            generated=generated,
        )

    def _failure(self, results: Sequence[SearchResult]) -> AssistantReply:
        return self._reply(GENERIC_FAILURE_MESSAGE, results, ok=False)

    async def _scrape_one(self, url: str) -> Optional[ScrapedPage]:
        try:
            return await self.scraper.scrape(url)
        except ScrapeError as e:
            # Detail omitted; the citation stays in the sources list
            logger.warning(f"Skipping source details: {e}")
            return None

    async def _scrape_details(self, urls: Sequence[str]) -> list[ScrapedPage]:
        if self.scraper is None or not urls:
            return []
        pages = await asyncio.gather(*(self._scrape_one(u) for u in urls[: self.max_scrape_urls]))
        return [p for p in pages if p is not None]

    async def search_only(self, query: str) -> AssistantReply:
        results: list[SearchResult] = []
        try:
            results = await self.orchestrator.search(query)
            if self.policy.is_total_failure(results, generated=False):
                logger.error(f"No backend answered {query!r}")
                return self._failure(results)
            return self._reply(self.orchestrator.format_results(results, self.include_thinking), results)
        except Exception:
            logger.exception("Search request failed")
            return self._failure(results)

    async def answer(self, session_id: str, message: str) -> AssistantReply:
        results: list[SearchResult] = []
        try:
            session = self.sessions.get_or_create(session_id)
            self.sessions.touch(session_id)
            recent = session.recent(self.history_window)
            history = [{"role": m.role, "content": m.content} for m in recent]

            results = await self.orchestrator.search(message, [(m.role, m.content) for m in recent])
            context = self.orchestrator.build_context(results)
            sources = extract_urls(context)
            details = await self._scrape_details(sources)

            generated = True
            text = ""
            try:
                text = await self.generator.generate(build_prompt(message, context, details), history)
            except EmptyGenerationError as e:
                logger.warning(f"Session {session_id}: {e}")
                generated = not self.policy.empty_generation_is_failure
            except GenerationError as e:
                logger.error(f"Session {session_id}: generation failed: {e}")
                generated = False

            if text.strip():
                document = format_response(text, self.orchestrator.build_status(results), self.include_thinking, sources)
                self.sessions.append_exchange(session_id, message, text)
                return self._reply(document, results, generated=True)

            # No usable answer this turn: history stays as it was
            if self.policy.is_total_failure(results, generated=generated):
                logger.error(f"Session {session_id}: every backend and the generation step failed")
                return self._failure(results)
            return self._reply(self.orchestrator.format_results(results, self.include_thinking), results)
        except Exception:
            logger.exception(f"Session {session_id}: error processing message")
            return self._failure(results)
