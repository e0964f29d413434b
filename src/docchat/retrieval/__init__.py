"""
Retrieval — vector storage, ranked search and context assembly.

The pipelines only talk to :class:`VectorStoreBase`, so the backing
engine can be swapped without touching them.

Public surface
--------------
- :class:`RetrievalPipeline` — query → ranked chunks → context → answer.
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`VectorRecord`, :class:`RetrievedChunk`, :class:`AssistantResponse` — data models.
"""

from docchat.retrieval.base import VectorStoreBase
from docchat.retrieval.models import AssistantResponse, ChunkMetadata, RetrievedChunk, VectorRecord
from docchat.retrieval.retriever import RetrievalPipeline, assemble_context, select_context_hits

__all__ = [
    "AssistantResponse",
    "ChromaVectorStore",
    "ChunkMetadata",
    "RetrievalPipeline",
    "RetrievedChunk",
    "VectorRecord",
    "VectorStoreBase",
    "assemble_context",
    "select_context_hits",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from docchat.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
