"""Search: backend clients, pacing/retry support and the fan-out orchestrator."""

from .clients import build_backend
from .schemas import BackendSlot, BackendStatus, SearchHit, SearchResult
from .search_orchestrator import SearchOrchestrator
from .support import RateLimiter, RetryingClient

__all__ = [
    "build_backend",
    "SearchOrchestrator",
    "SearchHit",
    "SearchResult",
    "BackendSlot",
    "BackendStatus",
    "RateLimiter",
    "RetryingClient",
]
