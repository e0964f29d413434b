"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

import pytest
from langchain_core.embeddings import Embeddings

from docchat.errors import StoreError
from docchat.ingestion.embedder import Embedder
from docchat.retrieval.base import VectorStoreBase, check_dimensions
from docchat.retrieval.models import RetrievedChunk, VectorRecord

VOCABULARY = [
    "cat", "cats", "kitten", "purr", "feline", "whiskers",
    "finance", "stock", "stocks", "market", "bank", "interest", "money",
    "alpha", "bravo", "charlie", "delta",
]


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedding provider ─────────────────────────────────────────────


class KeywordEmbeddings(Embeddings):
    """Bag-of-words over a fixed vocabulary, plus a constant bias dimension.

    Texts sharing vocabulary words end up close in cosine space, which is
    enough to make ranking assertions deterministic.
    """

    def __init__(self, vocabulary: Sequence[str] = VOCABULARY, fail_on: str | None = None) -> None:
        self.vocabulary = list(vocabulary)
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError(f"provider rejected text containing {self.fail_on!r}")
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(term)) for term in self.vocabulary] + [0.1]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]


class FlakyEmbeddings(KeywordEmbeddings):
    """Fails the first *failures* calls, then behaves normally."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    def embed_query(self, text: str) -> list[float]:
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("temporary outage")
        return super().embed_query(text)


# ── In-memory vector store ──────────────────────────────────────────────


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store with exact cosine search."""

    def __init__(self, embedder: Embedder, *, fail_upsert: bool = False) -> None:
        super().__init__("documents")
        self._embedder = embedder
        self.records: dict[str, VectorRecord] = {}
        self.fail_upsert = fail_upsert
        self.upsert_calls = 0

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        self.upsert_calls += 1
        if self.fail_upsert:
            raise StoreError("disk full")
        existing = next(iter(self.records.values()), None)
        check_dimensions(records, len(existing.embedding) if existing else None)
        for record in records:
            self.records[record.id] = record

    def query(self, query: str | Sequence[float], *, n_results: int = 3) -> list[RetrievedChunk]:
        vector = self._embedder.embed_query(query) if isinstance(query, str) else list(query)
        hits = [
            RetrievedChunk(
                id=r.id,
                text=r.text,
                score=_cosine(vector, r.embedding),
                metadata=r.metadata.model_dump(),
            )
            for r in self.records.values()
        ]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[: max(n_results, 0)]

    def size(self) -> int:
        return len(self.records)

    def delete_stale(self, filename: str, keep_ids: Sequence[str]) -> int:
        keep = set(keep_ids)
        stale = [
            rid for rid, r in self.records.items() if r.metadata.filename == filename and rid not in keep
        ]
        for rid in stale:
            del self.records[rid]
        return len(stale)

    def health_check(self) -> bool:
        return True


# ── Fake generation collaborator ────────────────────────────────────────


class RecordingGenerator:
    """Stands in for :class:`ChatGenerator`; records every call."""

    def __init__(self, reply: str = "Here is what I found.", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self, system_prompt: str, user_message: str, context_segments: Sequence[str] = ()
    ) -> str:
        self.calls.append(
            {"system": system_prompt, "user": user_message, "context": list(context_segments)}
        )
        if self.error is not None:
            raise self.error
        return self.reply


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def provider() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture()
def embedder(provider: KeywordEmbeddings) -> Embedder:
    return Embedder(provider, max_concurrency=4, max_attempts=1, retry_wait=0)


@pytest.fixture()
def memory_store(embedder: Embedder) -> InMemoryVectorStore:
    return InMemoryVectorStore(embedder)


@pytest.fixture()
def generator() -> RecordingGenerator:
    return RecordingGenerator()
