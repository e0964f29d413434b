"""Ingestion pipeline — one document from raw bytes to stored vectors.

Stages::

    received → text_extracted → chunked → embedded → stored → done

A failure at any stage raises :class:`~docchat.errors.IngestionError`
carrying the filename, the stage that was being attempted and the cause.
The vector store is only written once every chunk has an embedding, so a
failed or cancelled document never leaves a partial chunk set behind.

Ingestion is idempotent per filename: chunk ids are ``{filename}_chunk_{i}``
and records of a previous version that the new version no longer
produces are pruned after the upsert.  The original bytes are written to
the blob area only after the vectors are stored, so a failed upload never
appears in the document listing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from docchat.config import settings
from docchat.errors import ConfigError, IngestionError
from docchat.ingestion.chunker import build_chunks
from docchat.ingestion.extractor import Extractor, SuffixExtractor
from docchat.ingestion.models import Document, IngestionReport, IngestionStage
from docchat.ingestion.storage import validate_filename
from docchat.retrieval.models import ChunkMetadata, VectorRecord

if TYPE_CHECKING:
    from docchat.ingestion.embedder import Embedder
    from docchat.ingestion.storage import DocumentStorage
    from docchat.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Extractor → chunker → embedder → vector store, for one document at a time.

    Parameters
    ----------
    store:
        Destination vector store.
    embedder:
        Embedder shared with the store's text-query path.
    extractor:
        Text extractor; dispatches on file suffix by default.
    storage:
        Optional blob area receiving the original bytes.
    chunk_size:
        Words per chunk.
    prune_stale:
        Remove records left over from a longer previous version.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: Embedder,
        *,
        extractor: Extractor | None = None,
        storage: DocumentStorage | None = None,
        chunk_size: int | None = None,
        prune_stale: bool = True,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._extractor = extractor or SuffixExtractor()
        self._storage = storage
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        if self.chunk_size <= 0:
            raise ConfigError(f"chunk_size must be positive, got {self.chunk_size!r}")
        self.prune_stale = prune_stale

    async def ingest(self, filename: str, data: bytes) -> IngestionReport:
        """Ingest one document; raise :class:`IngestionError` on any failure."""
        doc = Document(filename=filename, content=data)
        stage = IngestionStage.RECEIVED
        try:
            validate_filename(filename)

            stage = IngestionStage.TEXT_EXTRACTED
            doc.text = await asyncio.to_thread(self._extractor.extract, filename, data)

            stage = IngestionStage.CHUNKED
            chunks = build_chunks(filename, doc.text, self.chunk_size)
            logger.debug("%s: %d chunks of up to %d words", filename, len(chunks), self.chunk_size)

            stage = IngestionStage.EMBEDDED
            vectors = await self._embedder.aembed([c.text for c in chunks])

            stage = IngestionStage.STORED
            records = [
                VectorRecord(
                    id=chunk.id,
                    embedding=vector,
                    text=chunk.text,
                    metadata=ChunkMetadata(filename=filename, chunk_ordinal=chunk.index),
                )
                for chunk, vector in zip(chunks, vectors, strict=True)
            ]
            await asyncio.to_thread(self._store.upsert, records)
            pruned = 0
            if self.prune_stale:
                pruned = await asyncio.to_thread(
                    self._store.delete_stale, filename, [r.id for r in records]
                )
            if self._storage is not None:
                await asyncio.to_thread(self._storage.save, filename, data)
        except Exception as exc:
            logger.error("Ingestion of %s failed at %s: %s", filename, stage.value, exc)
            raise IngestionError(filename, stage.value, exc) from exc

        logger.info("Ingested %s: %d chunks stored, %d stale removed", filename, len(records), pruned)
        return IngestionReport(filename=filename, chunk_count=len(records), pruned=pruned)

    async def ingest_many(self, files: Iterable[tuple[str, bytes]]) -> list[IngestionReport]:
        """Ingest *files* sequentially, stopping at the first failure.

        Documents before the failing one stay ingested.
        """
        reports: list[IngestionReport] = []
        for filename, data in files:
            reports.append(await self.ingest(filename, data))
        return reports
