"""Application configuration."""
from functools import lru_cache
from typing import Any, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings from env."""

    # Backends queried per request, in display/merge order
    search_backends: list[str] = ["duckduckgo", "tavily", "serper"]
    results_per_backend: int = 5

    # Calls per second, per backend
    duckduckgo_rate: float = 1.0
    tavily_rate: float = 2.0
    serper_rate: float = 5.0
    brave_rate: float = 1.0
    perplexica_rate: float = 1.0

    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    tav_api_key: str = ""
    serp_api_key: str = ""
    brave_api_key: str = ""
    brave_base_url: str = "https://api.search.brave.com/res/v1/web"

    # Self-hosted Perplexica; chat/embedding models fall back to its own defaults
    perplexica_base_url: str = "http://localhost:3001"
    perplexica_focus_mode: str = "webSearch"
    perplexica_max_age_days: int = 30
    perplexica_timeout_seconds: float = 60
    perplexica_chat_model: Optional[dict[str, Any]] = None
    perplexica_embedding_model: Optional[dict[str, Any]] = None

    # Any OpenAI-compatible endpoint; Ollama serves one at /v1
    llm_base_url: str = "http://localhost:11434/v1"
    llm_api_key: str = "ollama"
    llm_model: str = "mistral-small:24b-instruct-2501-q4_K_M"
    llm_temperature: float = 0.15

    firecrawl_base_url: str = "http://localhost:3002"
    scrape_sources: bool = False
    max_scrape_urls: int = 3

    chunk_limit: int = 4096
    session_max_age_seconds: int = 24 * 60 * 60
    history_window: int = 5
    include_thinking: bool = False

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def backend_rate(self, name: str) -> float:
        return float(getattr(self, f"{name}_rate", 1.0))


@lru_cache
def get_settings() -> Settings:
    return Settings()
