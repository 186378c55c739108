"""
Content extraction through a Firecrawl server: submit a scrape job, then poll
until it completes, fails, or the poll budget runs out.
"""

import asyncio
import logging
from typing import Any, Optional

import requests

from searchmesh.answer.schemas import ScrapedPage
from searchmesh.errors import ScrapeError

logger = logging.getLogger(__name__)

EXTRACT_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "content": {"type": "string"},
        "summary": {"type": "string"},
        "keyPoints": {"type": "array", "items": {"type": "string"}},
        "author": {"type": "string"},
        "publishDate": {"type": "string"},
    },
    "required": ["content"],
}


class FirecrawlScraper:
    def __init__(
        self,
        base_url: str = "http://localhost:3002",
        poll_interval: float = 2.0,
        max_polls: int = 15,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.timeout = timeout
        self._session = session or requests.Session()

    def _create_job(self, url: str) -> str:
        response = self._session.post(
            f"{self.base_url}/v0/scrape",
            json={"url": url, "formats": ["extract", "markdown"], "extract": {"schema": EXTRACT_SCHEMA}},
            timeout=self.timeout,
        )
        response.raise_for_status()
        job_id = response.json().get("jobId")
        if not job_id:
            raise ValueError("No job ID received")
        return job_id

    def _job_status(self, job_id: str) -> dict[str, Any]:
        response = self._session.get(f"{self.base_url}/v0/jobs/{job_id}", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def _wait_for_job(self, url: str, job_id: str) -> ScrapedPage:
        for _ in range(self.max_polls):
            status = await asyncio.to_thread(self._job_status, job_id)
            state = status.get("status")
            if state == "completed":
                extract = ((status.get("result") or {}).get("formats") or {}).get("extract")
                if not extract:
                    raise ValueError("No extraction results in completed job")
                return ScrapedPage(
                    url=url,
                    title=extract.get("title"),
                    content=extract.get("content") or "No content found",
                    summary=extract.get("summary") or "No summary available",
                    key_points=extract.get("keyPoints") or [],
                    author=extract.get("author"),
                    publish_date=extract.get("publishDate"),
                )
            if state == "failed":
                raise ValueError(f"Job failed: {status.get('error') or 'Unknown error'}")
            await asyncio.sleep(self.poll_interval)
        raise TimeoutError(f"Job timed out after {self.max_polls * self.poll_interval:g} seconds")

    async def scrape(self, url: str) -> ScrapedPage:
        try:
            job_id = await asyncio.to_thread(self._create_job, url)
            return await self._wait_for_job(url, job_id)
        except (requests.exceptions.RequestException, ValueError, TimeoutError) as e:
            logger.warning(f"Firecrawl error for {url}: {e}")
            raise ScrapeError(url, str(e)) from e
