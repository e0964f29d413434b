"""Retrieval pipeline — ranked search, context assembly and answer generation.

Usage::

    pipeline = RetrievalPipeline(store, ChatGenerator())
    reply = await pipeline.answer("What does the contract say about renewal?")
    print(reply.response, reply.sources)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from docchat.config import settings
from docchat.generation.prompts import SYSTEM_PROMPT
from docchat.retrieval.models import AssistantResponse, RetrievedChunk

if TYPE_CHECKING:
    from docchat.generation.llm import ChatGenerator
    from docchat.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"


def select_context_hits(hits: Sequence[RetrievedChunk], max_chars: int) -> list[RetrievedChunk]:
    """The hits, in rank order, whose texts fit in *max_chars* once joined.

    Hits that would push the context past the bound are dropped, except
    the first one, which is truncated so a single long chunk still grounds
    the answer.
    """
    kept: list[RetrievedChunk] = []
    used = 0
    for hit in hits:
        if not hit.text:
            continue
        extra = len(hit.text) + (len(CONTEXT_SEPARATOR) if kept else 0)
        if used + extra > max_chars:
            if not kept:
                kept.append(hit.model_copy(update={"text": hit.text[:max_chars]}))
            break
        kept.append(hit)
        used += extra
    return kept


def assemble_context(hits: Sequence[RetrievedChunk], max_chars: int) -> str:
    """Join hit texts in rank order, bounded by *max_chars*."""
    return CONTEXT_SEPARATOR.join(h.text for h in select_context_hits(hits, max_chars))


class RetrievalPipeline:
    """Answers a user query from the indexed documents.

    Parameters
    ----------
    store:
        Vector store holding the document chunks.
    generator:
        Generation collaborator producing the final text.
    k:
        Number of chunks retrieved per query.
    max_context_chars:
        Upper bound on the assembled context string.
    system_prompt:
        Instruction given to the model ahead of the context.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        generator: ChatGenerator,
        *,
        k: int | None = None,
        max_context_chars: int | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._store = store
        self._generator = generator
        self.k = k or settings.retrieval_k
        self.max_context_chars = max_context_chars or settings.max_context_chars
        self.system_prompt = system_prompt

    async def retrieve(self, query: str) -> list[RetrievedChunk]:
        """Top-*k* chunks for *query*, most similar first."""
        hits = await asyncio.to_thread(self._store.query, query, n_results=self.k)
        logger.debug("Retrieved %d chunks for query", len(hits))
        return hits

    async def answer(self, query: str) -> AssistantResponse:
        """Retrieve, assemble the context and delegate to the generator.

        An empty store yields an empty context; generation still runs.
        ``sources`` names only the chunks that made it into the context.
        """
        hits = await self.retrieve(query)
        used = select_context_hits(hits, self.max_context_chars)
        context = CONTEXT_SEPARATOR.join(h.text for h in used)
        if not context:
            logger.info("No context retrieved; answering without grounding")
        text = await self._generator.complete(
            self.system_prompt, query, [context] if context else []
        )
        return AssistantResponse(response=text, sources=[h.id for h in used])
