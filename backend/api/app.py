"""FastAPI application factory.

Lifespan
--------
On startup the app opens one Firecrawl client (a pooled ``httpx`` handle) and
one :class:`~backend.converter.pipeline.MarkdownConverter`, shared by all
requests via ``request.app.state``.  On shutdown the HTTP pool is closed.

Routers
-------
    /api/crawl-and-convert  — crawl a site and convert it to Markdown
    /api/export             — zip of converted results
    /api/health             — liveness probe
    /                       — static browser UI (``backend/api/static``)

Error bodies
------------
Every failure is answered with JSON ``{error, category, message, retryable,
stage?}``; unknown routes get ``{error: "Not found", message}``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.api.routers import convert as convert_router
from backend.api.routers import health as health_router
from backend.config import settings
from backend.converter.pipeline import MarkdownConverter
from backend.crawler.firecrawl import FirecrawlClient
from backend.crawler.orchestrator import CrawlOrchestrator
from backend.errors import CategorizedError, validation_error

STATIC_DIR = Path(__file__).resolve().parent / "static"

_SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the external-service clients on startup and close them on shutdown."""
    client = FirecrawlClient()
    app.state.orchestrator = CrawlOrchestrator(client)
    app.state.converter = MarkdownConverter()
    print(f"[SERVER] Environment: {settings.environment}")
    try:
        yield
    finally:
        await client.aclose()


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CategorizedError)
    async def categorized_error_handler(request: Request, exc: CategorizedError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        err = validation_error(
            "Please provide a valid documentation URL", error="Invalid request body"
        )
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not found",
                    "message": "The requested resource was not found",
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "message": str(exc.detail)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        print(f"[SERVER] Unhandled error: {exc!r}")
        # Runs outside the user middleware stack, so headers are set here.
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "Something went wrong" if settings.is_production else str(exc),
            },
            headers=_SECURITY_HEADERS if settings.is_production else None,
        )


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="DocForge API",
        description=(
            "Crawls a documentation website through Firecrawl and rewrites "
            "every page into a standardized Markdown document with an LLM."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.is_production:

        @app.middleware("http")
        async def security_headers(request: Request, call_next):
            response = await call_next(request)
            response.headers.update(_SECURITY_HEADERS)
            return response

    _register_error_handlers(app)

    app.include_router(convert_router.router, prefix="/api", tags=["convert"])
    app.include_router(health_router.router, prefix="/api", tags=["health"])

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", include_in_schema=False)
    def index() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
