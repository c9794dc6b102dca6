"""Prompt templates for the Markdown transformation step."""

from __future__ import annotations

from backend.crawler.models import CrawledPage

SYSTEM_PROMPT = """\
You are a technical documentation transformer. Convert structured documentation \
data into a clean, self-contained Markdown file. The output must be:

- Structured with headers
- Easy to parse by LLMs
- No external references
- Human-readable, instructionally clear

Use this Markdown format:

# {Title}

## Overview
Explain the feature's purpose and use cases.

## Setup / Integration
Step-by-step usage or integration instructions.

## Parameters / Configuration
Explain available parameters, options, and flags.

## Code Examples
Include clean code blocks and explain them.

## Gotchas / Tips
Highlight common issues or optimisation tips.

## Source Info
- Original URL: {source_url}
- Category: {tag}"""


def build_user_prompt(page: CrawledPage) -> str:
    """Return the per-page user prompt: title, source URL, then the content."""
    return (
        "Transform this documentation page into clean, structured Markdown:\n\n"
        f"TITLE: {page.title}\n"
        f"URL: {page.url}\n"
        f"CONTENT: {page.content}\n\n"
        "Please follow the exact format specified in the system prompt. Make sure to:\n"
        "1. Extract the main purpose and use cases\n"
        "2. Identify setup/integration steps\n"
        "3. List parameters and configuration options\n"
        "4. Include relevant code examples\n"
        "5. Note any important tips or gotchas\n"
        "6. Include source information\n\n"
        "Return ONLY the formatted Markdown content, no additional commentary."
    )
