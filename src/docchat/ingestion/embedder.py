"""Embedding generation with per-item failure isolation.

Every text is embedded as an independent unit of work.  A batch either
returns exactly one vector per input, in input order, or raises a
:class:`~docchat.errors.ProviderError` naming the input that failed.
Partial results are never returned because the ingestion pipeline relies
on a 1:1 alignment between chunks and vectors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docchat.config import settings
from docchat.errors import ConfigError, ProviderError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(backend: str | None = None) -> Embeddings:
    """Return the configured LangChain embedding provider.

    ``huggingface`` runs a local sentence-transformer; ``openai`` calls the
    OpenAI embeddings API (or any compatible endpoint at ``llm_base_url``).
    """
    backend = backend or settings.embedding_backend
    if backend == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=settings.embedding_model)

    if backend == "openai":
        if not settings.openai_api_key and not settings.llm_base_url:
            raise ConfigError("OPENAI_API_KEY is required for the openai embedding backend")
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict[str, Any] = {
            "model": settings.openai_embedding_model,
            "api_key": settings.openai_api_key or "EMPTY",
        }
        if settings.llm_base_url:
            kwargs["base_url"] = settings.llm_base_url
        return OpenAIEmbeddings(**kwargs)

    raise ConfigError(f"Unknown embedding backend: {backend!r}")


def _describe(index: int | None) -> str:
    return "query" if index is None else f"input {index}"


class Embedder:
    """Batch embedder on top of a LangChain :class:`Embeddings` provider.

    Parameters
    ----------
    provider:
        Any LangChain embeddings implementation.  The same provider must
        serve both documents and queries so their vectors are comparable.
    max_concurrency:
        Upper bound on in-flight provider calls within one batch.
    max_attempts:
        Attempts per text before the :class:`ProviderError` surfaces.
    retry_wait:
        Multiplier for the exponential back-off between attempts, in seconds.
    """

    def __init__(
        self,
        provider: Embeddings,
        *,
        max_concurrency: int | None = None,
        max_attempts: int | None = None,
        retry_wait: float | None = None,
    ) -> None:
        self._provider = provider
        self._max_concurrency = max_concurrency or settings.embedding_concurrency
        self._max_attempts = max_attempts or settings.provider_max_attempts
        self._retry_wait = settings.provider_retry_wait if retry_wait is None else retry_wait
        if self._max_concurrency <= 0 or self._max_attempts <= 0:
            raise ConfigError("max_concurrency and max_attempts must be positive")
        self.dimension: int | None = None

    # -- public API -----------------------------------------------------------

    async def aembed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts* concurrently; all-or-nothing.

        The first failure cancels the remaining calls and is re-raised.
        """
        if not texts:
            return []
        semaphore = asyncio.Semaphore(self._max_concurrency)
        tasks = [
            asyncio.ensure_future(self._aembed_one(text, i, semaphore))
            for i, text in enumerate(texts)
        ]
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        logger.debug("Embedded %d texts (dim=%s)", len(vectors), self.dimension)
        return list(vectors)

    async def aembed_query(self, text: str) -> list[float]:
        """Embed a single query text with the bulk model."""
        return await self._aembed_one(text, None, asyncio.Semaphore(1))

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Synchronous :meth:`aembed`; must not be called from a running event loop."""
        return asyncio.run(self.aembed(texts))

    def embed_query(self, text: str) -> list[float]:
        """Synchronous single-text embedding used by the store's text-query path."""
        for attempt in Retrying(**self._retry_policy()):
            with attempt:
                try:
                    vector = self._provider.embed_query(text)
                except Exception as exc:
                    raise ProviderError(f"Embedding provider failed for query: {exc}") from exc
        return self._check_dimension(vector, None)

    # -- internals ------------------------------------------------------------

    def _retry_policy(self) -> dict[str, Any]:
        return {
            "stop": stop_after_attempt(self._max_attempts),
            "wait": wait_exponential(multiplier=self._retry_wait, max=30),
            "retry": retry_if_exception_type(ProviderError),
            "reraise": True,
        }

    async def _aembed_one(
        self, text: str, index: int | None, semaphore: asyncio.Semaphore
    ) -> list[float]:
        async with semaphore:
            async for attempt in AsyncRetrying(**self._retry_policy()):
                with attempt:
                    try:
                        vector = await self._provider.aembed_query(text)
                    except Exception as exc:
                        logger.warning(
                            "Embedding %s failed (attempt %d): %s",
                            _describe(index),
                            attempt.retry_state.attempt_number,
                            exc,
                        )
                        raise ProviderError(
                            f"Embedding provider failed for {_describe(index)}: {exc}", index=index
                        ) from exc
        return self._check_dimension(vector, index)

    def _check_dimension(self, vector: Sequence[float], index: int | None) -> list[float]:
        values = [float(x) for x in vector]
        if not values:
            raise ProviderError(
                f"Embedding provider returned an empty vector for {_describe(index)}", index=index
            )
        if self.dimension is None:
            self.dimension = len(values)
        elif len(values) != self.dimension:
            raise ProviderError(
                f"Embedding for {_describe(index)} has dimension {len(values)}, "
                f"expected {self.dimension}",
                index=index,
            )
        return values
