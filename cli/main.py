"""DocForge CLI — entry-point for all backend operations.

Usage:
    python cli/main.py --help

Commands:
    serve    → run the HTTP API and browser UI
    crawl    → crawl a site and convert every page (full pipeline)
    convert  → offline batch conversion of a saved crawl
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import Optional

import typer

from backend.config import settings
from backend.errors import CategorizedError

app = typer.Typer(
    name="docforge",
    help="DocForge: documentation site → standardized Markdown.",
    no_args_is_help=True,
)


def _fail(exc: CategorizedError) -> None:
    typer.echo(f"[{exc.category.value}] {exc.error}: {exc.message}", err=True)
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port (defaults to $PORT)."),
    reload: bool = typer.Option(False, help="Auto-reload on code changes."),
) -> None:
    """Run the HTTP API and the browser UI with uvicorn."""
    import uvicorn

    bind_port = port or settings.port
    typer.echo(f"[serve] DocForge running on http://localhost:{bind_port}")
    typer.echo(f"[serve] Environment: {settings.environment}")
    typer.echo(f"[serve] Health check: http://localhost:{bind_port}/api/health")
    uvicorn.run("backend.api.app:app", host=host, port=bind_port, reload=reload)


# ---------------------------------------------------------------------------
# crawl
# ---------------------------------------------------------------------------
async def _crawl(url: str, save_raw: Optional[Path]) -> dict:
    from backend.batch import save_crawl_output
    from backend.converter.pipeline import MarkdownConverter
    from backend.crawler.firecrawl import FirecrawlClient
    from backend.crawler.orchestrator import CrawlOrchestrator
    from backend.pipeline import crawl_and_convert

    def snapshot(pages) -> None:
        target = save_crawl_output(pages, save_raw)
        typer.echo(f"[crawl] Raw crawl saved to {target}")

    client = FirecrawlClient()
    try:
        return await crawl_and_convert(
            url,
            CrawlOrchestrator(client),
            MarkdownConverter(),
            on_pages=snapshot if save_raw is not None else None,
        )
    finally:
        await client.aclose()


@app.command("crawl")
def crawl(
    url: str = typer.Option(..., help="Root URL of the documentation site."),
    output: Optional[Path] = typer.Option(
        None, help="Results file (defaults to <OUTPUT_DIR>/results.json)."
    ),
    save_raw: Optional[Path] = typer.Option(
        None, "--save-raw", help="Also save the raw crawl for `convert`."
    ),
) -> None:
    """Crawl URL and convert every page into Markdown."""
    typer.echo(f"[crawl] Crawling {url!r} …")
    try:
        response = asyncio.run(_crawl(url, save_raw))
    except CategorizedError as exc:
        _fail(exc)

    if output is None:
        settings.ensure_output_dir()
        target = settings.output_dir / "results.json"
    else:
        target = output
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(response, indent=2, ensure_ascii=False), encoding="utf-8")
    typer.echo(f"[crawl] {response['totalPages']} page(s) converted → {target}")


# ---------------------------------------------------------------------------
# convert (batch / offline)
# ---------------------------------------------------------------------------
@app.command("convert")
def convert(
    input: Path = typer.Option(
        Path("output/crawl.json"), "--input", help="Saved crawl (Firecrawl JSON)."
    ),
    output: Path = typer.Option(
        Path("output/converted.json"), "--output", help="Where to write the results."
    ),
) -> None:
    """Convert a previously saved crawl without contacting the crawling service."""
    from backend.batch import run_batch

    if not input.exists():
        typer.echo(f"[convert] Input file not found: {input}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[convert] Converting pages from {input} …")
    try:
        results = asyncio.run(run_batch(input, output))
    except CategorizedError as exc:
        _fail(exc)
    except ValueError as exc:
        typer.echo(f"[convert] {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(f"[convert] {len(results)} page(s) converted → {output}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
