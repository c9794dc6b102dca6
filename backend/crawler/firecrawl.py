"""Thin async client for the Firecrawl v1 crawl API.

Only the three calls the orchestrator needs are wrapped:

``POST /v1/crawl``          start a crawl job, returns its id
``GET  /v1/crawl/{id}``     read the job status and (once done) its pages
``GET  <next>``             follow pagination of a large result set

HTTP errors propagate as ``httpx`` exceptions; classifying them is the
orchestrator's job.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend.config import settings

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "User-Agent": "DocForge/2.0 (+https://github.com/docforge)",
}


class FirecrawlClient:
    """One instance per process; it owns a pooled :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        http: httpx.AsyncClient | None = None,
        limit: int | None = None,
    ) -> None:
        self.api_key = settings.firecrawl_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.firecrawl_base_url).rstrip("/")
        self.limit = limit or settings.crawl_limit
        self._http = http or httpx.AsyncClient(
            headers=_DEFAULT_HEADERS,
            timeout=settings.crawl_submit_timeout,
            follow_redirects=True,
        )

    def _auth_headers(self) -> dict[str, str]:
        if not self.api_key:
            raise EnvironmentError(
                "FIRECRAWL_API_KEY environment variable is not set "
                "(crawling service api key missing)."
            )
        return {"Authorization": f"Bearer {self.api_key}"}

    async def start_crawl(self, url: str) -> str:
        """Submit a crawl for *url* and return the job id.

        Raises:
            httpx.HTTPStatusError: If Firecrawl rejects the request.
            RuntimeError: If the response carries no job id.
        """
        payload = {
            "url": url,
            "limit": self.limit,
            "scrapeOptions": {"formats": ["markdown"], "onlyMainContent": True},
        }
        response = await self._http.post(
            f"{self.base_url}/v1/crawl", json=payload, headers=self._auth_headers()
        )
        response.raise_for_status()
        data = response.json()
        if not data.get("success", True) or not data.get("id"):
            raise RuntimeError(f"Crawl submission failed: {data.get('error') or data}")
        return data["id"]

    async def get_crawl_status(self, job_id: str) -> dict[str, Any]:
        response = await self._http.get(
            f"{self.base_url}/v1/crawl/{job_id}", headers=self._auth_headers()
        )
        response.raise_for_status()
        return response.json()

    async def get_next(self, next_url: str) -> dict[str, Any]:
        """Fetch the next page of a paginated crawl result."""
        response = await self._http.get(next_url, headers=self._auth_headers())
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()
