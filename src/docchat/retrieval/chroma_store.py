"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import chromadb

from docchat.config import settings
from docchat.errors import StoreError
from docchat.retrieval.base import VectorStoreBase, check_dimensions
from docchat.retrieval.models import RetrievedChunk, VectorRecord

if TYPE_CHECKING:
    from docchat.ingestion.embedder import Embedder

logger = logging.getLogger(__name__)


def make_client() -> Any:
    """Build a Chroma client from the global settings.

    An HTTP client when ``chroma_host`` is set, otherwise an embedded
    client persisting to ``chroma_persist_dir``.
    """
    if settings.chroma_host:
        return chromadb.HttpClient(host=settings.chroma_host, port=settings.chroma_port)
    return chromadb.PersistentClient(path=settings.chroma_persist_dir)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using cosine distance.

    Parameters
    ----------
    embedder:
        Embeds text queries; must be the embedder used for ingestion.
    collection_name:
        Name of the Chroma collection; ``settings.chroma_collection`` when omitted.
    client:
        A Chroma client.  Built from settings when omitted.
    """

    def __init__(
        self,
        embedder: Embedder,
        collection_name: str | None = None,
        *,
        client: Any = None,
    ) -> None:
        collection_name = collection_name or settings.chroma_collection
        super().__init__(collection_name)
        self._embedder = embedder
        self._client = client if client is not None else make_client()
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=None,
            )
        except Exception as exc:
            raise StoreError(f"Could not open collection {collection_name!r}: {exc}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        check_dimensions(records, self._stored_dimension())
        try:
            self._collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.embedding for r in records],
                documents=[r.text for r in records],
                metadatas=[r.metadata.model_dump() for r in records],
            )
        except Exception as exc:
            raise StoreError(f"Upsert of {len(records)} records failed: {exc}") from exc
        logger.debug("Upserted %d records into %s", len(records), self.collection_name)

    def query(self, query: str | Sequence[float], *, n_results: int = 3) -> list[RetrievedChunk]:
        if isinstance(query, str):
            embedding = self._embedder.embed_query(query)
        else:
            embedding = [float(x) for x in query]

        total = self.size()
        if n_results <= 0 or total == 0:
            return []

        try:
            results = self._collection.query(
                query_embeddings=[embedding],
                n_results=min(n_results, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreError(f"Query against {self.collection_name!r} failed: {exc}") from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[RetrievedChunk] = []
        for chunk_id, text, meta, dist in zip(ids, docs, metas, distances):
            # Cosine space: distance = 1 - cosine similarity.
            hits.append(
                RetrievedChunk(
                    id=chunk_id,
                    text=text or "",
                    score=1.0 - float(dist),
                    metadata=dict(meta or {}),
                )
            )
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    def size(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise StoreError(f"Count of {self.collection_name!r} failed: {exc}") from exc

    def delete_stale(self, filename: str, keep_ids: Sequence[str]) -> int:
        keep = set(keep_ids)
        try:
            existing = self._collection.get(where={"filename": filename}, include=["metadatas"])
            stale = [i for i in existing.get("ids", []) if i not in keep]
            if stale:
                self._collection.delete(ids=stale)
        except Exception as exc:
            raise StoreError(f"Pruning stale chunks of {filename!r} failed: {exc}") from exc
        if stale:
            logger.info("Removed %d stale chunks of %s", len(stale), filename)
        return len(stale)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _stored_dimension(self) -> int | None:
        try:
            sample = self._collection.get(limit=1, include=["embeddings"])
        except Exception as exc:
            raise StoreError(f"Could not read {self.collection_name!r}: {exc}") from exc
        embeddings = sample.get("embeddings")
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])
