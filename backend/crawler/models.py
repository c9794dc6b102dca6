"""Data models for the crawl stage."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CrawlStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlStatus.COMPLETED, CrawlStatus.FAILED, CrawlStatus.TIMED_OUT)


# Firecrawl reports its own status vocabulary; anything unknown counts as running.
_REMOTE_STATUS = {
    "pending": CrawlStatus.PENDING,
    "scraping": CrawlStatus.RUNNING,
    "running": CrawlStatus.RUNNING,
    "completed": CrawlStatus.COMPLETED,
    "failed": CrawlStatus.FAILED,
    "cancelled": CrawlStatus.FAILED,
}


def status_from_remote(value: str | None) -> CrawlStatus:
    return _REMOTE_STATUS.get((value or "").lower(), CrawlStatus.RUNNING)


@dataclass
class CrawlJob:
    """An asynchronous crawl tracked by the crawling service.

    ``status`` is only updated from polling reads; it never moves back out of a
    terminal state.
    """

    id: str
    root_url: str
    status: CrawlStatus = CrawlStatus.PENDING
    created_at: float = field(default_factory=time.time)

    def update(self, status: CrawlStatus) -> None:
        if not self.status.is_terminal:
            self.status = status


@dataclass(frozen=True)
class CrawledPage:
    """A single page returned by the crawling service."""

    url: str
    content: str
    title: str = "Untitled"
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_firecrawl(cls, record: dict[str, Any]) -> CrawledPage:
        """Build a page from one entry of a Firecrawl ``data`` array."""
        metadata = dict(record.get("metadata") or {})
        return cls(
            url=metadata.get("sourceURL") or record.get("url") or "Unknown",
            title=metadata.get("title") or "Untitled",
            content=record.get("markdown") or record.get("content") or "",
            metadata=metadata,
        )

    def to_firecrawl(self) -> dict[str, Any]:
        """Inverse of :meth:`from_firecrawl`, used when snapshotting a crawl."""
        metadata = {**self.metadata, "title": self.title, "sourceURL": self.url}
        return {"url": self.url, "markdown": self.content, "metadata": metadata}
