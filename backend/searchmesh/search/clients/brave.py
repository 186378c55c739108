"""
Brave Search API client. Uses BRAVE_API_KEY.
"""

from typing import Any, Optional

import requests

from searchmesh.search.clients.base import SearchBackend, raise_for_response, request_error


class BraveBackend(SearchBackend):
    name = "brave"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.search.brave.com/res/v1/web",
        max_results: int = 5,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
        freshness: str = "pw",
    ):
        super().__init__(max_results=max_results)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # pd / pw / pm / py; news callers want "pd"
        self.freshness = freshness
        self._session = session or requests.Session()

    def _search_sync(self, query: str) -> list[dict[str, Any]]:
        if not self.api_key:
            raise ValueError("BRAVE_API_KEY environment variable is required")
        try:
            response = self._session.get(
                f"{self.base_url}/search",
                headers={"X-Subscription-Token": self.api_key, "Accept": "application/json"},
                params={"q": query, "freshness": self.freshness, "count": self.max_results},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise request_error(self.name, e) from e
        raise_for_response(self.name, response)

        data = response.json()
        rows = []
        for item in (data.get("web") or {}).get("results", []):
            description = item.get("description") or ""
            if item.get("age"):
                description = f"{description} (Published: {item['age']})".strip()
            rows.append({"title": item.get("title"), "description": description, "url": item.get("url")})
        return rows
