"""Categorized errors for the crawl → convert pipeline.

Every failure that leaves the crawler, the converter, or the HTTP layer is a
:class:`CategorizedError`.  Raw provider exceptions (``httpx``, OpenAI,
Ollama, ``asyncio`` timeouts …) are turned into one by :func:`classify`, which
is the only place that inspects their text.

Rule tables
-----------
HTTP status errors are mapped by their response code alone: their message
carries the request URL (job ids included), which must never be matched.
Everything else goes through an ordered tuple of :class:`_Rule` entries per
stage.  The first rule whose needle occurs in ``"<ExceptionType> <message>"``
(lower-cased) wins; when nothing matches the stage default applies.  Add a row
to extend the mapping, the orchestration code never needs to change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    NO_CONTENT = "no_content"
    CRAWL = "crawl"
    LLM = "llm"
    AUTH = "auth"
    QUOTA = "quota"
    CONTENT_POLICY = "content_policy"
    NO_RESULTS = "no_results"
    CONNECTION = "connection"
    MEMORY = "memory"
    UNEXPECTED = "unexpected"


class Stage(str, Enum):
    CRAWL = "crawl"
    CONVERSION = "conversion"
    SERVER = "server"


# A plain retry may succeed.
TRANSIENT = frozenset(
    {
        ErrorCategory.TIMEOUT,
        ErrorCategory.NETWORK,
        ErrorCategory.CONNECTION,
        ErrorCategory.CRAWL,
        ErrorCategory.LLM,
        ErrorCategory.AUTH,
        ErrorCategory.QUOTA,
        ErrorCategory.CONTENT_POLICY,
    }
)

_STATUS_CODES = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NO_CONTENT: 422,
    ErrorCategory.NO_RESULTS: 422,
}

_STAGE_LABELS = {
    Stage.CRAWL: "Crawl failed",
    Stage.CONVERSION: "LLM conversion failed",
    Stage.SERVER: "Internal server error",
}


class CategorizedError(Exception):
    """A failure tagged with a category, a caller-facing message and a stage."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        stage: Stage | None = None,
        error: str | None = None,
    ) -> None:
        super().__init__(message)
        self.category = ErrorCategory(category)
        self.message = message
        self.stage = Stage(stage) if stage is not None else None
        self.error = error or _STAGE_LABELS.get(self.stage, "Request failed")

    @property
    def status_code(self) -> int:
        """HTTP status the API layer should answer with."""
        return _STATUS_CODES.get(self.category, 500)

    @property
    def retryable(self) -> bool:
        return self.category in TRANSIENT

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body; ``stage`` is omitted when unknown."""
        body: dict[str, Any] = {
            "error": self.error,
            "category": self.category.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.stage is not None:
            body["stage"] = self.stage.value
        return body

    def __repr__(self) -> str:
        stage = self.stage.value if self.stage else None
        return (
            f"CategorizedError(category={self.category.value!r}, "
            f"stage={stage!r}, message={self.message!r})"
        )


# ---------------------------------------------------------------------------
# Constructors for the failures the pipeline detects itself
# ---------------------------------------------------------------------------

def validation_error(message: str, error: str = "Invalid URL format") -> CategorizedError:
    return CategorizedError(ErrorCategory.VALIDATION, message, error=error)


def timeout_error(stage: Stage, message: str) -> CategorizedError:
    return CategorizedError(ErrorCategory.TIMEOUT, message, stage=stage)


# ---------------------------------------------------------------------------
# Classification tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Rule:
    needles: tuple[str, ...]
    category: ErrorCategory
    message: str


_CRAWL_TIMEOUT = _Rule(
    ("timeout", "timed out"),
    ErrorCategory.TIMEOUT,
    "Crawl request timed out. The website might be too large or slow.",
)
_CRAWL_NOT_FOUND = _Rule(
    ("404", "not found"),
    ErrorCategory.NOT_FOUND,
    "Website not found. Please check the URL.",
)
_CRAWL_FORBIDDEN = _Rule(
    ("403", "forbidden"),
    ErrorCategory.FORBIDDEN,
    "Access denied. The website blocks automated crawling.",
)
_CRAWL_AUTH = _Rule(
    ("401", "unauthorized", "api key", "api_key"),
    ErrorCategory.AUTH,
    "Crawling service authentication failed. Check the API key.",
)
_CRAWL_RATE_LIMIT = _Rule(
    ("429", "rate limit", "too many requests"),
    ErrorCategory.RATE_LIMIT,
    "Rate limit exceeded. Please try again later.",
)

_CRAWL_RULES: tuple[_Rule, ...] = (
    _CRAWL_TIMEOUT,
    _CRAWL_NOT_FOUND,
    _CRAWL_FORBIDDEN,
    _CRAWL_AUTH,
    _CRAWL_RATE_LIMIT,
    _Rule(
        (
            "network",
            "enotfound",
            "connecterror",
            "connection refused",
            "name or service not known",
            "nodename nor servname",
            "getaddrinfo",
        ),
        ErrorCategory.NETWORK,
        "Network error. Please check your connection and the URL.",
    ),
)

_CONVERSION_TIMEOUT = _Rule(
    ("timeout", "timed out"),
    ErrorCategory.TIMEOUT,
    "LLM conversion timed out. Too many pages to process.",
)
_CONVERSION_AUTH = _Rule(
    ("api key", "api_key", "unauthorized", "authentication", "401"),
    ErrorCategory.AUTH,
    "AI service authentication failed. Please try again.",
)
_CONVERSION_RATE_LIMIT = _Rule(
    ("rate limit", "ratelimit", "429"),
    ErrorCategory.RATE_LIMIT,
    "AI service rate limit exceeded. Please try again later.",
)

_CONVERSION_RULES: tuple[_Rule, ...] = (
    _CONVERSION_TIMEOUT,
    _CONVERSION_AUTH,
    _Rule(
        ("quota", "billing"),
        ErrorCategory.QUOTA,
        "AI service quota exceeded. Please try again later.",
    ),
    _CONVERSION_RATE_LIMIT,
    _Rule(
        ("content policy", "content_policy", "content management policy"),
        ErrorCategory.CONTENT_POLICY,
        "Content violates AI service policies.",
    ),
)

_SERVER_RULES: tuple[_Rule, ...] = (
    _Rule(
        (
            "econnrefused",
            "enotfound",
            "connecterror",
            "connection refused",
            "name or service not known",
        ),
        ErrorCategory.CONNECTION,
        "Cannot connect to external services. Check your internet connection.",
    ),
    _Rule(
        ("memoryerror", "memory", "heap"),
        ErrorCategory.MEMORY,
        "Server ran out of memory. The website might be too large.",
    ),
)

_TABLES: dict[Stage, tuple[tuple[_Rule, ...], _Rule]] = {
    Stage.CRAWL: (
        _CRAWL_RULES,
        _Rule((), ErrorCategory.CRAWL, "Failed to crawl website"),
    ),
    Stage.CONVERSION: (
        _CONVERSION_RULES,
        _Rule((), ErrorCategory.LLM, "Failed during LLM transformation"),
    ),
    Stage.SERVER: (
        _SERVER_RULES,
        _Rule((), ErrorCategory.UNEXPECTED, "An unexpected error occurred. Please try again."),
    ),
}

# Status codes not listed fall back to the stage default.
_CRAWL_STATUS: dict[int, _Rule] = {
    401: _CRAWL_AUTH,
    403: _CRAWL_FORBIDDEN,
    404: _CRAWL_NOT_FOUND,
    408: _CRAWL_TIMEOUT,
    429: _CRAWL_RATE_LIMIT,
    504: _CRAWL_TIMEOUT,
}

_CONVERSION_STATUS: dict[int, _Rule] = {
    401: _CONVERSION_AUTH,
    408: _CONVERSION_TIMEOUT,
    429: _CONVERSION_RATE_LIMIT,
}

_STATUS_TABLES: dict[Stage, dict[int, _Rule]] = {
    Stage.CRAWL: _CRAWL_STATUS,
    Stage.CONVERSION: _CONVERSION_STATUS,
    Stage.SERVER: {},
}


def _haystack(exc: BaseException) -> str:
    return f"{type(exc).__name__} {exc}".lower()


def classify(exc: BaseException, stage: Stage) -> CategorizedError:
    """Map *exc* to a :class:`CategorizedError` for *stage*.

    An exception that is already categorized is returned untouched so that
    failures classified deep inside the pipeline keep their original stage.
    """
    if isinstance(exc, CategorizedError):
        return exc

    stage = Stage(stage)
    rules, default = _TABLES[stage]

    if isinstance(exc, httpx.HTTPStatusError):
        rule = _STATUS_TABLES[stage].get(exc.response.status_code, default)
        return CategorizedError(rule.category, rule.message, stage=stage)

    text = _haystack(exc)
    for rule in rules:
        if any(needle in text for needle in rule.needles):
            return CategorizedError(rule.category, rule.message, stage=stage)
    return CategorizedError(default.category, default.message, stage=stage)
