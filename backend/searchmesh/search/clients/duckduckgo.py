"""
DuckDuckGo HTML search client.

Uses `https://html.duckduckgo.com/html/` which does not require an API key.
"""

from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

import requests
from bs4 import BeautifulSoup

from searchmesh.search.clients.base import SearchBackend, raise_for_response, request_error

DDG_HTML_URL = "https://html.duckduckgo.com/html/"
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36"


def _resolve_href(href: str) -> str:
    """Result links go through a /l/?uddg=<target> redirect; unwrap it."""
    if href.startswith("//"):
        href = "https:" + href
    parsed = urlparse(href)
    if parsed.path.startswith("/l/"):
        target = parse_qs(parsed.query).get("uddg")
        if target:
            return target[0]
    return href


def parse_results_html(html: str, limit: int) -> list[dict[str, Any]]:
    soup = BeautifulSoup(html, "html.parser")
    parsed: list[dict[str, Any]] = []

    for result in soup.select(".result__body")[: max(limit, 0)]:
        link = result.select_one(".result__a")
        snippet = result.select_one(".result__snippet")
        if link is None:
            continue
        parsed.append(
            {
                "title": link.get_text(" ", strip=True)[:200],
                "description": snippet.get_text(" ", strip=True)[:400] if snippet else "",
                "url": _resolve_href(link.get("href", "")),
            }
        )
    return parsed


class DuckDuckGoBackend(SearchBackend):
    name = "duckduckgo"

    def __init__(
        self,
        max_results: int = 5,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
        time_range: str = "w",
    ):
        super().__init__(max_results=max_results)
        self.timeout = timeout
        # d / w / m / y; last week by default
        self.time_range = time_range
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def _search_sync(self, query: str) -> list[dict[str, Any]]:
        try:
            response = self._session.post(
                DDG_HTML_URL,
                data={"q": query, "df": self.time_range},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise request_error(self.name, e) from e
        raise_for_response(self.name, response)
        return parse_results_html(response.text, limit=self.max_results)
