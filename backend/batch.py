"""Offline batch mode: convert a previously saved crawl.

A saved crawl is a JSON file in the shape Firecrawl returns
(``{"data": [{"markdown": ..., "metadata": {...}}, ...]}``) or a bare list of
such records.  The output file holds a timestamped array of
:class:`~backend.converter.models.ConversionResult` dicts::

    {"generatedAt": "...", "totalPages": 3, "results": [...]}
"""

from __future__ import annotations

import json
from pathlib import Path

from backend.converter.models import ConversionResult
from backend.converter.pipeline import MarkdownConverter
from backend.crawler.models import CrawledPage
from backend.pipeline import utc_timestamp


def load_crawl_output(path: str | Path) -> list[CrawledPage]:
    """Read a saved crawl from *path*.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a crawl result.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    records = raw.get("data") if isinstance(raw, dict) else raw
    if not isinstance(records, list):
        raise ValueError(f"{path} does not contain a crawl result (expected a 'data' list).")
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(
                f"{path}: record {index} is not a page object (got {type(record).__name__})."
            )
    return [CrawledPage.from_firecrawl(record) for record in records]


def save_crawl_output(pages: list[CrawledPage], path: str | Path) -> Path:
    """Snapshot *pages* to *path* so they can be converted later."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {"success": True, "data": [page.to_firecrawl() for page in pages]}
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return target


def save_results(results: list[ConversionResult], path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "generatedAt": utc_timestamp(),
        "totalPages": len(results),
        "results": [result.to_dict() for result in results],
    }
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return target


async def run_batch(
    input_path: str | Path,
    output_path: str | Path,
    converter: MarkdownConverter | None = None,
) -> list[ConversionResult]:
    """Load a saved crawl, convert every page, and write the results file."""
    pages = load_crawl_output(input_path)
    print(f"[BATCH] Loaded {len(pages)} page(s) from {input_path}")

    results = await (converter or MarkdownConverter()).convert_all(pages)

    target = save_results(results, output_path)
    print(f"[BATCH] Results saved to {target}")
    return results
