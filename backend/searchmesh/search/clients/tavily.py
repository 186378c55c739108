"""
Tavily Search API client. Uses TAV_API_KEY.
"""

from typing import Any, Optional

from tavily import TavilyClient
from tavily.errors import BadRequestError, InvalidAPIKeyError, MissingAPIKeyError

from searchmesh.errors import InvalidRequestError, NetworkError, RateLimitError
from searchmesh.search.clients.base import SearchBackend


class TavilyBackend(SearchBackend):
    name = "tavily"

    def __init__(self, api_key: str, max_results: int = 5, client: Optional[TavilyClient] = None):
        super().__init__(max_results=max_results)
        self.api_key = api_key
        # Reuse client for performance (avoids repeated client setup)
        self._client = client

    def _get_client(self) -> TavilyClient:
        if self._client is None:
            if not self.api_key:
                raise ValueError("TAV_API_KEY environment variable is required")
            self._client = TavilyClient(api_key=self.api_key)
        return self._client

    def _search_sync(self, query: str) -> list[dict[str, Any]]:
        client = self._get_client()
        try:
            response = client.search(
                query=query,
                search_depth="basic",
                topic="general",
                max_results=min(self.max_results, 20),
            )
        except (InvalidAPIKeyError, MissingAPIKeyError, BadRequestError) as e:
            raise InvalidRequestError(self.name, str(e) or e.__class__.__name__) from e
        except Exception as e:
            # The SDK surfaces HTTP failures as its own exception types
            if "429" in str(e) or "rate limit" in str(e).lower():
                raise RateLimitError(self.name, str(e)) from e
            raise NetworkError(self.name, str(e)) from e

        return [
            {
                "title": item.get("title"),
                "description": item.get("content"),
                "url": item.get("url"),
            }
            for item in response.get("results", [])
        ]
