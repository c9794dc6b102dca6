"""Sequential Markdown transformation of crawled pages.

``MarkdownConverter.convert_all`` sends one completion request per page,
waiting ``delay`` seconds between requests to stay under the provider's rate
ceiling.  A page whose request fails (or comes back empty) is replaced by a
fallback stub, so the output always has exactly one result per input page:

    pages[i]  →  convert_page  →  results[i]   (model output or stub)

Only failures that affect the whole batch (no usable chat model, an empty
input) are raised, as :class:`~backend.errors.CategorizedError` with stage
``conversion``.
"""

from __future__ import annotations

import asyncio
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from backend.config import settings
from backend.converter.llm import get_llm
from backend.converter.models import ConversionResult
from backend.converter.prompts import SYSTEM_PROMPT, build_user_prompt
from backend.crawler.models import CrawledPage
from backend.errors import CategorizedError, ErrorCategory, Stage, classify


def fallback_markdown(page: CrawledPage) -> str:
    """Stub document for a page the model could not convert."""
    return (
        f"# {page.title}\n\n"
        "**Error:** Failed to convert this page with the language model.\n\n"
        f"**Original URL:** {page.url}"
    )


def _message_text(response: Any) -> str:
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Some providers return content blocks instead of a plain string.
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return content if isinstance(content, str) else ""


class MarkdownConverter:
    """Turns :class:`CrawledPage` objects into :class:`ConversionResult` objects.

    The chat model is created lazily on first use and then reused.  Pass
    *llm* to inject one (tests, alternative providers).
    """

    def __init__(self, llm: Any | None = None, delay: float | None = None) -> None:
        self._llm = llm
        self.delay = settings.conversion_delay if delay is None else delay

    @property
    def llm(self) -> Any:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    async def convert_page(self, page: CrawledPage, index: int = 0) -> ConversionResult:
        """Convert a single page; never raises."""
        print(f"[CONVERT] Page {index + 1}: {page.title}")
        messages = [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=build_user_prompt(page)),
        ]
        try:
            response = await self.llm.ainvoke(messages)
            markdown = _message_text(response).strip()
            if not markdown:
                raise ValueError("No content received from the language model")
        except Exception as exc:  # noqa: BLE001
            print(f"[CONVERT] Page {index + 1} failed, using fallback: {exc}")
            markdown = fallback_markdown(page)

        return ConversionResult(
            title=page.title,
            url=page.url,
            original_content=page.content,
            markdown=markdown,
        )

    async def convert_all(self, pages: list[CrawledPage]) -> list[ConversionResult]:
        """Convert *pages* one after another.

        Returns:
            One result per page, in input order.

        Raises:
            CategorizedError: ``no_results`` for an empty input, or a
                classified conversion failure when no chat model is available.
        """
        if pages and self._llm is None:
            try:
                self._llm = get_llm()
            except Exception as exc:
                raise classify(exc, Stage.CONVERSION) from exc

        print(f"[CONVERT] Processing {len(pages)} page(s) …")
        results: list[ConversionResult] = []
        for i, page in enumerate(pages):
            results.append(await self.convert_page(page, i))
            if i < len(pages) - 1 and self.delay > 0:
                await asyncio.sleep(self.delay)

        if not results:
            raise CategorizedError(
                ErrorCategory.NO_RESULTS,
                "LLM conversion completed but generated no results.",
                stage=Stage.CONVERSION,
                error="No results generated",
            )

        print(f"[CONVERT] Converted {len(results)} page(s)")
        return results
