"""Domain models for stored vectors and query results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChunkMetadata(BaseModel):
    """Metadata persisted alongside every vector."""

    filename: str
    chunk_ordinal: int


class VectorRecord(BaseModel):
    """The persisted tuple ``(id, embedding, text, metadata)``.

    Owned by the vector store; chunks and embeddings are transient and
    only meet here.
    """

    id: str
    embedding: list[float]
    text: str
    metadata: ChunkMetadata


class RetrievedChunk(BaseModel):
    """A single ranked hit returned by :meth:`VectorStoreBase.query`.

    Attributes
    ----------
    id:
        The vector-store ID of the chunk.
    text:
        The chunk's text content.
    score:
        Cosine similarity to the query (higher = more similar).
    metadata:
        Stored metadata, at least ``filename`` and ``chunk_ordinal``.
    """

    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    def short_ref(self) -> str:
        """Return a compact ``[filename§ordinal]`` reference string."""
        ordinal = self.metadata.get("chunk_ordinal", "?")
        return f"[{self.metadata.get('filename', 'unknown')}§{ordinal}]"

    def __str__(self) -> str:  # noqa: D105
        return f"{self.short_ref()} {self.text[:120]}…"


class AssistantResponse(BaseModel):
    """Answer produced by the retrieval pipeline."""

    response: str
    sources: list[str] = Field(default_factory=list)
