"""Centralised settings for the DocForge backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  Nothing is re-read after
start-up.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    environment: str = field(
        default_factory=lambda: os.environ.get("ENVIRONMENT", "development")
    )
    app_version: str = field(
        default_factory=lambda: os.environ.get("APP_VERSION", "2.0.0")
    )
    output_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("OUTPUT_DIR", "output"))
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    # ------------------------------------------------------------------
    # Crawling service (Firecrawl)
    # ------------------------------------------------------------------
    firecrawl_api_key: str = field(
        default_factory=lambda: os.environ.get("FIRECRAWL_API_KEY", "")
    )
    firecrawl_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "FIRECRAWL_BASE_URL", "https://api.firecrawl.dev"
        )
    )
    crawl_limit: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_LIMIT", "10"))
    )
    crawl_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_POLL_INTERVAL", "2.0"))
    )
    crawl_submit_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_SUBMIT_TIMEOUT", "30.0"))
    )
    crawl_completion_timeout: float = field(
        default_factory=lambda: float(
            os.environ.get("CRAWL_COMPLETION_TIMEOUT", "300.0")
        )
    )

    # ------------------------------------------------------------------
    # Completion model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0.1"))
    )
    llm_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("LLM_MAX_TOKENS", "4000"))
    )
    llm_request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LLM_REQUEST_TIMEOUT", "120.0"))
    )

    # ------------------------------------------------------------------
    # Conversion pipeline
    # ------------------------------------------------------------------
    conversion_delay: float = field(
        default_factory=lambda: float(os.environ.get("CONVERSION_DELAY", "1.0"))
    )
    conversion_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CONVERSION_TIMEOUT", "600.0"))
    )
    # 0 disables the end-to-end cap; the per-stage budgets still apply.
    request_deadline: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_DEADLINE", "0"))
    )

    def ensure_output_dir(self) -> None:
        """Create the output directory if it does not exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this everywhere:
#   from backend.config import settings
settings = Settings()
