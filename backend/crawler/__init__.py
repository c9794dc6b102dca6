"""Crawler package — Firecrawl client and crawl-job orchestration."""

from backend.crawler.firecrawl import FirecrawlClient
from backend.crawler.models import CrawledPage, CrawlJob, CrawlStatus
from backend.crawler.orchestrator import CrawlOrchestrator, validate_url

__all__ = [
    "FirecrawlClient",
    "CrawlOrchestrator",
    "validate_url",
    "CrawledPage",
    "CrawlJob",
    "CrawlStatus",
]
