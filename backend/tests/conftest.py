"""Pytest fixtures: in-memory backends and collaborators, no network."""

import asyncio
from typing import Optional

import pytest

from searchmesh.errors import NetworkError
from searchmesh.search.clients.base import SearchBackend
from searchmesh.search.schemas import SearchHit
from searchmesh.search.search_orchestrator import SearchOrchestrator
from searchmesh.sessions import SessionStore


class FakeBackend(SearchBackend):
    """Backend double: fixed hits, optional delay, optional leading or permanent failures."""

    def __init__(
        self,
        name: str,
        hits: Optional[list[SearchHit]] = None,
        *,
        fail_times: int = 0,
        always_fail: bool = False,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        super().__init__(max_results=5)
        self.name = name
        self.hits = hits or []
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.error = error
        self.delay = delay
        self.calls = 0
        self.histories: list[tuple] = []

    async def run(self, query, history=()):
        self.histories.append(tuple(history))
        return await super().run(query, history)

    async def search(self, query: str) -> list[SearchHit]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.always_fail or self.calls <= self.fail_times:
            raise self.error or NetworkError(self.name, "connection reset")
        return self.hits


class FakeGenerator:
    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[tuple[str, list]] = []

    async def generate(self, prompt, history=(), options=None) -> str:
        self.calls.append((prompt, list(history)))
        if self.error is not None:
            raise self.error
        return self.text


def make_orchestrator(backends, **kwargs) -> SearchOrchestrator:
    kwargs.setdefault("max_retries", 0)
    kwargs.setdefault("retry_delay", 0.0)
    kwargs.setdefault("rates", {b.name: 1000.0 for b in backends})
    return SearchOrchestrator(backends, **kwargs)


@pytest.fixture
def cat_facts_hits():
    return [SearchHit(title="cat facts", description="Cats sleep up to 16 hours a day", url="https://cats.example/facts")]


@pytest.fixture
def cat_trivia_hits():
    return [SearchHit(title="cat trivia", description="A group of cats is a clowder", url="https://trivia.example/cats")]


@pytest.fixture
def cat_backends(cat_facts_hits, cat_trivia_hits):
    """[ok, failing, ok] in slot order."""
    return [
        FakeBackend("duckduckgo", cat_facts_hits),
        FakeBackend("tavily", always_fail=True),
        FakeBackend("serper", cat_trivia_hits),
    ]


@pytest.fixture
def session_store():
    return SessionStore(max_age_seconds=60)
