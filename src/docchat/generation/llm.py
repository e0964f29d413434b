"""LLM initialisation and the generation collaborator.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` (e.g. a vLLM
   server exposing ``/v1/chat/completions``).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from langchain_openai import ChatOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from docchat.config import settings
from docchat.errors import ConfigError, ProviderError
from docchat.generation.prompts import build_chat_prompt

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

EMPTY_COMPLETION = "No response from the model."


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint, with a dummy key (``"EMPTY"``) if none is configured.
    """
    kwargs: dict[str, Any] = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    elif settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key
    else:
        raise ConfigError("OPENAI_API_KEY is not set and no LLM_BASE_URL is configured")

    return ChatOpenAI(**kwargs)


class ChatGenerator:
    """Writes an answer from a system prompt, the user's message and context.

    Parameters
    ----------
    llm:
        Any LangChain chat model.  Defaults to :func:`get_llm`.
    max_attempts:
        Attempts before a :class:`ProviderError` surfaces.
    retry_wait:
        Multiplier for the exponential back-off between attempts, in seconds.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        *,
        max_attempts: int | None = None,
        retry_wait: float | None = None,
    ) -> None:
        self._llm = llm if llm is not None else get_llm()
        self._max_attempts = max_attempts or settings.provider_max_attempts
        self._retry_wait = settings.provider_retry_wait if retry_wait is None else retry_wait

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        context_segments: Sequence[str] = (),
    ) -> str:
        """Return the model's answer; raise :class:`ProviderError` on failure."""
        messages = build_chat_prompt(system_prompt, user_message, context_segments)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=30),
            retry=retry_if_exception_type(ProviderError),
            reraise=True,
        ):
            with attempt:
                try:
                    reply = await self._llm.ainvoke(messages)
                except Exception as exc:
                    logger.warning("Chat completion failed (attempt %d): %s",
                                   attempt.retry_state.attempt_number, exc)
                    raise ProviderError(f"Chat completion failed: {exc}") from exc

        content = reply.content if isinstance(reply.content, str) else str(reply.content)
        return content.strip() or EMPTY_COMPLETION
