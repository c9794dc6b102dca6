"""Crawl-and-convert and zip export endpoints.

Routes
------
POST /api/crawl-and-convert    Body: {"url": "https://..."}
POST /api/export               Body: {"results": [...], "sourceUrl": "..."} → zip

Success (200)::

    {"success": true, "totalPages": 3, "results": [...],
     "sourceUrl": "https://...", "timestamp": "2025-01-01T00:00:00Z"}

Failure (400 / 422 / 500)::

    {"error": "...", "category": "timeout", "message": "...",
     "retryable": true, "stage": "crawl"}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import BaseModel

from backend.crawler.orchestrator import validate_url
from backend.errors import CategorizedError, ErrorCategory, Stage, classify
from backend.export import archive_name, build_archive
from backend.pipeline import crawl_and_convert, utc_timestamp

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CrawlRequest(BaseModel):
    url: Optional[str] = None


class ConversionResultOut(BaseModel):
    title: str
    url: str
    originalContent: str
    markdown: str


class CrawlResponse(BaseModel):
    success: bool
    totalPages: int
    results: list[ConversionResultOut]
    sourceUrl: str
    timestamp: str


class ExportRequest(BaseModel):
    results: list[ConversionResultOut]
    sourceUrl: str = ""


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/crawl-and-convert", response_model=CrawlResponse)
async def crawl_and_convert_endpoint(body: CrawlRequest, request: Request) -> dict[str, Any]:
    """Crawl ``body.url`` and return one Markdown document per crawled page.

    URL validation happens before either external service is contacted.
    Categorized failures are rendered by the app-level exception handler.
    """
    url = validate_url(body.url or "")

    try:
        return await crawl_and_convert(
            url,
            orchestrator=request.app.state.orchestrator,
            converter=request.app.state.converter,
        )
    except CategorizedError as exc:
        print(f"[SERVER] {exc.stage.value if exc.stage else '-'} failed: {exc.message}")
        raise
    except Exception as exc:
        raise classify(exc, Stage.SERVER) from exc


@router.post("/export", response_class=Response)
def export_endpoint(body: ExportRequest) -> Response:
    """Bundle converted results into a zip of Markdown files."""
    if not body.results:
        raise CategorizedError(
            ErrorCategory.NO_RESULTS,
            "There are no results to export.",
            error="No results to download",
        )
    generated_at = utc_timestamp()
    payload = build_archive(
        (result.model_dump() for result in body.results), body.sourceUrl, generated_at
    )
    return Response(
        content=payload,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive_name(generated_at)}"'},
    )
