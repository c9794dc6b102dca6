"""Zip export of a finished run.

The archive holds a ``README.md`` summary plus one numbered Markdown file per
result (``01_<title>.md``, ``02_<title>.md`` …), each wrapped with its title,
source URL and generation time.
"""

from __future__ import annotations

import io
import re
import zipfile
from typing import Any, Iterable

from backend.pipeline import utc_timestamp

_UNSAFE = re.compile(r"[^a-z0-9\-_.]", re.IGNORECASE)
_RUNS = re.compile(r"_{2,}")


def safe_filename(name: str, limit: int = 100) -> str:
    cleaned = _RUNS.sub("_", _UNSAFE.sub("_", name)).strip("_")
    return cleaned[:limit] or "page"


def archive_name(generated_at: str) -> str:
    return f"docforge-results-{generated_at[:10]}.zip"


def _readme(total: int, source_url: str, generated_at: str) -> str:
    return (
        "# DocForge Conversion Results\n\n"
        f"**Generated:** {generated_at}\n"
        f"**Source URL:** {source_url}\n"
        f"**Total Pages:** {total}\n\n"
        "## File Structure\n\n"
        "- `README.md` - This overview file\n"
        "- `01_[title].md` - Individual documentation pages (numbered sequentially)\n\n"
        "Each file includes the original page title and URL, the generation "
        "timestamp and the converted Markdown.\n"
    )


def _page_file(result: dict[str, Any], generated_at: str) -> str:
    return (
        f"# {result['title']}\n\n"
        f"**Source URL:** {result['url']}\n"
        f"**Generated:** {generated_at}\n\n"
        "---\n\n"
        f"{result['markdown']}\n"
    )


def build_archive(
    results: Iterable[dict[str, Any]],
    source_url: str,
    generated_at: str | None = None,
) -> bytes:
    """Return the zip bytes for *results* (dicts in the response wire format)."""
    stamp = generated_at or utc_timestamp()
    items = list(results)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("README.md", _readme(len(items), source_url, stamp))
        for index, result in enumerate(items, start=1):
            name = safe_filename(f"{index:02d}_{result['title']}")
            archive.writestr(f"{name}.md", _page_file(result, stamp))
    return buffer.getvalue()
