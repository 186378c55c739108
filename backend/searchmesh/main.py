"""
SearchMesh API: multi-backend web search with a generated, source-annotated answer.
"""

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from searchmesh.answer.llm_utils import Generator
from searchmesh.answer.scraper import FirecrawlScraper
from searchmesh.config import Settings, get_settings
from searchmesh.pipeline import AssistantReply, SearchAssistant
from searchmesh.search.clients import build_backend
from searchmesh.search.search_orchestrator import SearchOrchestrator
from searchmesh.sessions import SessionStore

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="SearchMesh", version="0.1.0")


class SearchRequest(BaseModel):
    query: str


class ChatRequest(BaseModel):
    session_id: str
    message: str


def build_assistant(settings: Settings) -> SearchAssistant:
    backends = [build_backend(name, settings) for name in settings.search_backends]
    orchestrator = SearchOrchestrator(
        backends,
        rates={name: settings.backend_rate(name) for name in settings.search_backends},
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay_seconds,
    )
    return SearchAssistant(
        orchestrator,
        Generator.from_settings(settings),
        SessionStore(max_age_seconds=settings.session_max_age_seconds),
        scraper=FirecrawlScraper(settings.firecrawl_base_url) if settings.scrape_sources else None,
        chunk_limit=settings.chunk_limit,
        history_window=settings.history_window,
        include_thinking=settings.include_thinking,
        max_scrape_urls=settings.max_scrape_urls,
    )


@lru_cache
def get_assistant() -> SearchAssistant:
    return build_assistant(get_settings())


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/v1/search", response_model=AssistantReply)
async def search(body: SearchRequest, assistant: SearchAssistant = Depends(get_assistant)):
    """
    Fan the query out to every configured backend and return the merged,
    formatted result as transport-sized chunks.
    """
    if not body.query.strip():
        raise HTTPException(status_code=422, detail="query must not be empty")
    return await assistant.search_only(body.query)


@app.post("/api/v1/chat", response_model=AssistantReply)
async def chat(body: ChatRequest, assistant: SearchAssistant = Depends(get_assistant)):
    """
    One conversational turn: search, generate, format. History is kept per
    session_id; idle sessions are evicted before the turn runs.
    """
    if not body.message.strip():
        raise HTTPException(status_code=422, detail="message must not be empty")
    evicted = assistant.sessions.evict_expired()
    if evicted:
        logger.info(f"Evicted {evicted} idle sessions")
    return await assistant.answer(body.session_id, body.message)


@app.delete("/api/v1/chat/{session_id}")
def end_chat(session_id: str, assistant: SearchAssistant = Depends(get_assistant)):
    if not assistant.sessions.end(session_id):
        raise HTTPException(status_code=404, detail="No active chat session")
    return {"status": "ended", "session_id": session_id}
