"""Converter package — LLM-driven Markdown transformation."""

from backend.converter.models import ConversionResult
from backend.converter.pipeline import MarkdownConverter, fallback_markdown
from backend.converter.prompts import SYSTEM_PROMPT, build_user_prompt

__all__ = [
    "MarkdownConverter",
    "ConversionResult",
    "fallback_markdown",
    "SYSTEM_PROMPT",
    "build_user_prompt",
]
