"""Crawl orchestration: submit a job, wait for it, collect its pages.

Two independent time budgets apply:

* submission (``settings.crawl_submit_timeout``, 30 s): a hung ``POST`` must
  not eat the caller's whole patience budget;
* completion (``settings.crawl_completion_timeout``, 5 min): polling stops
  and the job is reported as timed out.  The remote job may keep running;
  we simply stop waiting for it.

Every failure leaves this module as a :class:`~backend.errors.CategorizedError`
with stage ``crawl`` (or no stage, for URL validation).
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlparse

from backend.config import settings
from backend.crawler.firecrawl import FirecrawlClient
from backend.crawler.models import CrawledPage, CrawlJob, CrawlStatus, status_from_remote
from backend.errors import (
    CategorizedError,
    ErrorCategory,
    Stage,
    classify,
    timeout_error,
    validation_error,
)

_ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> str:
    """Return *url* stripped, or raise a ``validation`` error.

    Only absolute HTTP/HTTPS URLs with a host are accepted.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise validation_error(
            "Please provide a valid documentation URL", error="URL is required"
        )
    try:
        parsed = urlparse(candidate)
        valid = (
            parsed.scheme.lower() in _ALLOWED_SCHEMES
            and bool(parsed.hostname)
            and not any(ch.isspace() for ch in parsed.netloc)
        )
    except ValueError:
        valid = False
    if not valid:
        raise validation_error("Please enter a valid HTTP or HTTPS URL")
    return candidate


class CrawlOrchestrator:
    """Drives one crawl job through the external crawling service.

    Holds no per-request state, so a single instance can be shared by
    concurrent requests.
    """

    def __init__(
        self,
        client: FirecrawlClient,
        poll_interval: float | None = None,
        submit_timeout: float | None = None,
        completion_timeout: float | None = None,
    ) -> None:
        self.client = client
        self.poll_interval = (
            settings.crawl_poll_interval if poll_interval is None else poll_interval
        )
        self.submit_timeout = (
            settings.crawl_submit_timeout if submit_timeout is None else submit_timeout
        )
        self.completion_timeout = (
            settings.crawl_completion_timeout
            if completion_timeout is None
            else completion_timeout
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, url: str) -> CrawlJob:
        """Validate *url* and start a crawl job for it."""
        root_url = validate_url(url)
        try:
            job_id = await asyncio.wait_for(
                self.client.start_crawl(root_url), timeout=self.submit_timeout
            )
        except asyncio.TimeoutError:
            raise timeout_error(
                Stage.CRAWL,
                "Crawl request timed out. The crawling service did not accept the job in time.",
            ) from None
        except Exception as exc:
            raise classify(exc, Stage.CRAWL) from exc

        print(f"[CRAWL] Job {job_id} started for {root_url!r}")
        return CrawlJob(id=job_id, root_url=root_url, status=CrawlStatus.RUNNING)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def _poll(self, job: CrawlJob) -> list[dict]:
        """Poll until *job* is terminal and return its raw page records."""
        while True:
            status_data = await self.client.get_crawl_status(job.id)
            job.update(status_from_remote(status_data.get("status")))
            print(
                f"[CRAWL] {job.id}: {status_data.get('status', 'unknown')} "
                f"{status_data.get('completed', 0)}/{status_data.get('total', '?')}"
            )

            if job.status is CrawlStatus.FAILED:
                # Only the provider detail; job ids must not reach the classifier.
                detail = status_data.get("error") or "job reported failure"
                raise RuntimeError(f"Crawl job failed: {detail}")

            if job.status is CrawlStatus.COMPLETED:
                records = list(status_data.get("data") or [])
                next_url = status_data.get("next")
                while next_url:
                    next_data = await self.client.get_next(next_url)
                    records.extend(next_data.get("data") or [])
                    next_url = next_data.get("next")
                return records

            await asyncio.sleep(self.poll_interval)

    async def await_completion(
        self, job: CrawlJob, timeout: float | None = None
    ) -> list[CrawledPage]:
        """Wait for *job* to finish and return its pages.

        Raises:
            CategorizedError: ``timeout`` when the budget elapses, ``no_content``
                when the job completes with zero pages, or a classified crawl
                failure.
        """
        budget = self.completion_timeout if timeout is None else timeout
        try:
            records = await asyncio.wait_for(self._poll(job), timeout=budget)
        except asyncio.TimeoutError:
            job.update(CrawlStatus.TIMED_OUT)
            raise timeout_error(
                Stage.CRAWL,
                "Crawl request timed out. The website might be too large or slow.",
            ) from None
        except CategorizedError:
            raise
        except Exception as exc:
            job.update(CrawlStatus.FAILED)
            raise classify(exc, Stage.CRAWL) from exc

        pages = [CrawledPage.from_firecrawl(record) for record in records]
        print(f"[CRAWL] Job {job.id} completed with {len(pages)} page(s)")

        if not pages:
            raise CategorizedError(
                ErrorCategory.NO_CONTENT,
                "No pages could be crawled from this website. "
                "It might be empty or protected.",
                stage=Stage.CRAWL,
                error="No content found",
            )
        return pages

    async def crawl(self, url: str) -> tuple[CrawlJob, list[CrawledPage]]:
        """Submit a crawl for *url* and wait for its pages."""
        job = await self.submit(url)
        pages = await self.await_completion(job)
        return job, pages
