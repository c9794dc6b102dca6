"""End-to-end crawl → convert pipeline.

``crawl_and_convert`` orchestrates one request:

    validate URL → submit crawl → await pages → convert pages → response

Each stage carries its own time budget (submission 30 s, crawl completion
5 min, conversion 10 min).  ``settings.request_deadline`` optionally caps the
whole run on top of them.  Every call builds fresh job / result objects, so
concurrent requests share nothing but the client handles.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

from backend.config import settings
from backend.converter.models import ConversionResult
from backend.converter.pipeline import MarkdownConverter
from backend.crawler.models import CrawledPage
from backend.crawler.orchestrator import CrawlOrchestrator
from backend.errors import CategorizedError, Stage, classify, timeout_error


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_response(results: list[ConversionResult], source_url: str) -> dict[str, Any]:
    """Return the success body for a finished run."""
    return {
        "success": True,
        "totalPages": len(results),
        "results": [result.to_dict() for result in results],
        "sourceUrl": source_url,
        "timestamp": utc_timestamp(),
    }


async def _run(
    url: str,
    orchestrator: CrawlOrchestrator,
    converter: MarkdownConverter,
    conversion_timeout: float,
    on_pages: Callable[[list[CrawledPage]], Any] | None = None,
) -> dict[str, Any]:
    print(f"[PIPELINE] Starting crawl and convert for {url!r}")
    job, pages = await orchestrator.crawl(url)
    if on_pages is not None:
        on_pages(pages)

    try:
        results = await asyncio.wait_for(
            converter.convert_all(pages), timeout=conversion_timeout
        )
    except asyncio.TimeoutError:
        raise timeout_error(
            Stage.CONVERSION, "LLM conversion timed out. Too many pages to process."
        ) from None
    except CategorizedError:
        raise
    except Exception as exc:
        raise classify(exc, Stage.CONVERSION) from exc

    print(f"[PIPELINE] Job {job.id}: {len(results)} page(s) converted")
    return build_response(results, job.root_url)


async def crawl_and_convert(
    url: str,
    orchestrator: CrawlOrchestrator,
    converter: MarkdownConverter,
    conversion_timeout: float | None = None,
    deadline: float | None = None,
    on_pages: Callable[[list[CrawledPage]], Any] | None = None,
) -> dict[str, Any]:
    """Crawl *url* and convert every page to Markdown.

    *on_pages*, when given, is called with the crawled pages before
    conversion starts (the CLI uses it to snapshot the raw crawl).

    Returns:
        The success body: ``success``, ``totalPages``, ``results``,
        ``sourceUrl`` and ``timestamp``.

    Raises:
        CategorizedError: For any failure; nothing else escapes.
    """
    budget = settings.conversion_timeout if conversion_timeout is None else conversion_timeout
    cap = settings.request_deadline if deadline is None else deadline

    run = _run(url, orchestrator, converter, budget, on_pages)
    try:
        if cap and cap > 0:
            return await asyncio.wait_for(run, timeout=cap)
        return await run
    except asyncio.TimeoutError:
        raise timeout_error(
            Stage.SERVER, "The request exceeded its overall time limit. Please try again."
        ) from None
    except CategorizedError:
        raise
    except Exception as exc:
        raise classify(exc, Stage.SERVER) from exc
