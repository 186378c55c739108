"""
Serper Search API client. Uses SERP_API_KEY. Reuses a single requests.Session for performance.
"""

from typing import Any, Optional

import requests

from searchmesh.search.clients.base import SearchBackend, raise_for_response, request_error

SERPER_URL = "https://google.serper.dev/search"


class SerperBackend(SearchBackend):
    name = "serper"

    def __init__(
        self,
        api_key: str,
        max_results: int = 5,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        super().__init__(max_results=max_results)
        self.api_key = api_key
        self.timeout = timeout
        # Reuse session for connection pooling and lower latency
        self._session = session or requests.Session()

    def _get_api_key(self) -> str:
        if not self.api_key:
            raise ValueError("SERP_API_KEY environment variable is required")
        return self.api_key

    def _search_sync(self, query: str) -> list[dict[str, Any]]:
        headers = {"X-API-KEY": self._get_api_key(), "Content-Type": "application/json"}
        request_data = {"q": query, "num": min(self.max_results, 100)}
        try:
            response = self._session.post(
                SERPER_URL,
                json=request_data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise request_error(self.name, e) from e
        raise_for_response(self.name, response)

        data = response.json()
        return [
            {
                "title": item.get("title"),
                "description": item.get("snippet"),
                "url": item.get("link"),
            }
            for item in data.get("organic", [])
        ]
