"""Data models for the conversion stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConversionResult:
    """The Markdown produced for one :class:`~backend.crawler.models.CrawledPage`.

    ``original_content`` is a verbatim copy of the crawled content, kept for
    traceability.  ``markdown`` is either the model output or a fallback stub.
    """

    title: str
    url: str
    original_content: str
    markdown: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "originalContent": self.original_content,
            "markdown": self.markdown,
        }
