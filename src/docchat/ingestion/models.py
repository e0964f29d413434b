"""Transient domain models produced and consumed within one ingestion call."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def chunk_id(filename: str, index: int) -> str:
    """Deterministic chunk identifier: ``{filename}_chunk_{index}``."""
    return f"{filename}_chunk_{index}"


class IngestionStage(str, Enum):
    """Stages a document moves through during ingestion."""

    RECEIVED = "received"
    TEXT_EXTRACTED = "text_extracted"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    STORED = "stored"
    DONE = "done"


class Document(BaseModel):
    """An uploaded file and the text extracted from it."""

    filename: str
    content: bytes
    text: str = ""
    ingested_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Chunk(BaseModel):
    """One bounded-size segment of a document's text."""

    id: str
    text: str
    index: int
    source_filename: str


class IngestionReport(BaseModel):
    """Outcome of a successful :meth:`IngestionPipeline.ingest` call."""

    success: bool = True
    filename: str
    chunk_count: int = 0
    pruned: int = 0
    stage: IngestionStage = IngestionStage.DONE
