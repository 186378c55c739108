"""Tests for SessionStore: create-on-first-use, history windows, idle eviction."""

import pytest

from searchmesh.answer.llm_utils import SYSTEM_PROMPT
from searchmesh.sessions import SessionStore


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(max_age_seconds=60, clock=clock)


class TestSessionStore:
    def test_created_on_first_use(self, store):
        assert "chat-1" not in store
        assert store.get("chat-1") is None
        session = store.get_or_create("chat-1")
        assert "chat-1" in store
        assert len(store) == 1
        assert store.get_or_create("chat-1") is session

    def test_new_session_seeded_with_system_prompt(self, store):
        session = store.get_or_create("chat-1")
        assert [(m.role, m.content) for m in session.history] == [("system", SYSTEM_PROMPT)]
        assert session.recent(5) == []

    def test_append_exchange(self, store, clock):
        store.get_or_create("chat-1")
        clock.now += 10
        store.append_exchange("chat-1", "what do cats eat?", "Mostly meat.")
        session = store.get("chat-1")
        assert [m.role for m in session.history] == ["system", "user", "assistant"]
        assert session.last_active == 1010.0

    def test_recent_window(self, store):
        for i in range(4):
            store.append_exchange("chat-1", f"q{i}", f"a{i}")
        recent = store.get("chat-1").recent(3)
        assert [m.content for m in recent] == ["a2", "q3", "a3"]
        assert store.get("chat-1").recent(0) == []

    def test_sessions_are_independent(self, store):
        store.append_exchange("a", "hi", "hello")
        store.get_or_create("b")
        assert len(store.get("a").recent(10)) == 2
        assert store.get("b").recent(10) == []

    def test_end(self, store):
        store.get_or_create("chat-1")
        assert store.end("chat-1") is True
        assert store.end("chat-1") is False
        assert "chat-1" not in store

    def test_evicts_idle_sessions_only(self, store, clock):
        store.get_or_create("idle")
        clock.now += 50
        store.get_or_create("active")
        clock.now += 11
        assert store.evict_expired() == 1
        assert "idle" not in store
        assert "active" in store

    def test_activity_postpones_eviction(self, store, clock):
        store.get_or_create("chat-1")
        clock.now += 50
        store.append_exchange("chat-1", "q", "a")
        clock.now += 50
        assert store.evict_expired() == 0

    def test_exactly_max_age_is_kept(self, store, clock):
        store.get_or_create("chat-1")
        clock.now += 60
        assert store.evict_expired() == 0
        clock.now += 0.5
        assert store.evict_expired() == 1

    def test_touch(self, store, clock):
        assert store.touch("missing") is False
        store.get_or_create("chat-1")
        clock.now += 50
        assert store.touch("chat-1") is True
        clock.now += 50
        assert store.evict_expired() == 0
        assert store.get("chat-1").last_active == 1050.0
