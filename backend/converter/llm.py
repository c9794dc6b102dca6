"""Chat-model factory for the converter.

Completion providers
--------------------
``openai`` (default)
    ``langchain_openai.ChatOpenAI``.  Requires ``OPENAI_API_KEY``.
    Configure via ``OPENAI_CHAT_MODEL``.

``ollama``
    ``langchain_ollama.ChatOllama`` against a local Ollama server.
    Configure via ``OLLAMA_BASE_URL`` and ``OLLAMA_CHAT_MODEL``.

Temperature and maximum output size come from ``LLM_TEMPERATURE`` and
``LLM_MAX_TOKENS``; low temperature keeps the six-section layout stable.
"""

from __future__ import annotations

from typing import Any

from backend.config import settings


def get_llm() -> Any:
    """Return a configured LangChain chat model based on ``settings``.

    Raises:
        EnvironmentError: If ``OPENAI_API_KEY`` is missing when using the
            OpenAI provider.
    """
    if settings.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=settings.ollama_chat_model,
            base_url=settings.ollama_base_url,
            temperature=settings.llm_temperature,
            num_predict=settings.llm_max_tokens,
        )

    if not settings.openai_api_key:
        raise EnvironmentError(
            "OPENAI_API_KEY environment variable is not set. "
            "Set it or switch to LLM_PROVIDER=ollama."
        )

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.openai_chat_model,
        api_key=settings.openai_api_key,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_request_timeout,
    )
