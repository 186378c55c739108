"""Search API clients: DuckDuckGo, Tavily, Serper, Brave and Perplexica."""

from searchmesh.config import Settings

from .base import SearchBackend
from .brave import BraveBackend
from .duckduckgo import DuckDuckGoBackend
from .perplexica import PerplexicaBackend
from .serper import SerperBackend
from .tavily import TavilyBackend


def build_backend(name: str, settings: Settings) -> SearchBackend:
    """Instantiate one configured backend by name."""
    n = settings.results_per_backend
    if name == "duckduckgo":
        return DuckDuckGoBackend(max_results=n)
    if name == "tavily":
        return TavilyBackend(api_key=settings.tav_api_key, max_results=n)
    if name == "serper":
        return SerperBackend(api_key=settings.serp_api_key, max_results=n)
    if name == "brave":
        return BraveBackend(api_key=settings.brave_api_key, base_url=settings.brave_base_url, max_results=n)
    if name == "perplexica":
        return PerplexicaBackend(
            base_url=settings.perplexica_base_url,
            max_results=n,
            timeout=settings.perplexica_timeout_seconds,
            focus_mode=settings.perplexica_focus_mode,
            max_age_days=settings.perplexica_max_age_days,
            chat_model=settings.perplexica_chat_model,
            embedding_model=settings.perplexica_embedding_model,
        )
    raise ValueError(f"Unknown search backend: {name}")


__all__ = [
    "SearchBackend",
    "DuckDuckGoBackend",
    "TavilyBackend",
    "SerperBackend",
    "BraveBackend",
    "PerplexicaBackend",
    "build_backend",
]
