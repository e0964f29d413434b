"""FastAPI application exposing document upload, listing and grounded chat."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from docchat import __version__
from docchat.config import check_settings, configure_logging, settings
from docchat.errors import (
    DocChatError,
    ExtractionError,
    IngestionError,
    ProviderError,
)
from docchat.generation.llm import ChatGenerator
from docchat.ingestion.embedder import Embedder, get_embedding_function
from docchat.ingestion.models import IngestionStage
from docchat.ingestion.pipeline import IngestionPipeline
from docchat.ingestion.storage import DocumentStorage
from docchat.retrieval.base import VectorStoreBase
from docchat.retrieval.retriever import RetrievalPipeline

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Sorry, I could not generate a response."


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    check_settings(settings)
    logger.info("docchat %s starting (collection=%s)", __version__, settings.chroma_collection)
    yield


app = FastAPI(
    title="docchat API",
    version=__version__,
    description="Upload documents and chat with answers grounded in them.",
    lifespan=lifespan,
)


# ── Components (overridable in tests via app.dependency_overrides) ────
@lru_cache
def get_embedder() -> Embedder:
    return Embedder(get_embedding_function())


@lru_cache
def get_store() -> VectorStoreBase:
    from docchat.retrieval.chroma_store import ChromaVectorStore

    return ChromaVectorStore(get_embedder())


@lru_cache
def get_storage() -> DocumentStorage:
    return DocumentStorage(settings.upload_dir)


@lru_cache
def get_generator() -> ChatGenerator:
    return ChatGenerator()


def get_ingestion_pipeline(
    store: VectorStoreBase = Depends(get_store),
    embedder: Embedder = Depends(get_embedder),
    storage: DocumentStorage = Depends(get_storage),
) -> IngestionPipeline:
    return IngestionPipeline(store, embedder, storage=storage)


def get_retrieval_pipeline(
    store: VectorStoreBase = Depends(get_store),
    generator: ChatGenerator = Depends(get_generator),
) -> RetrievalPipeline:
    return RetrievalPipeline(store, generator)


# ── Request / Response schemas ────────────────────────────────────────
class UploadedFile(BaseModel):
    """One file of an upload request; ``content`` is base64-encoded."""

    filename: str
    content: str


class UploadRequest(BaseModel):
    files: list[UploadedFile] = Field(min_length=1)


class UploadResponse(BaseModel):
    """Result of an upload; failure fields name the offending file and stage."""

    success: bool
    filename: str | None = None
    stage: str | None = None
    error: str | None = None


class DocumentEntry(BaseModel):
    name: str
    path: str


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    response: str


def _failure(exc: IngestionError) -> JSONResponse:
    if isinstance(exc.cause, ExtractionError):
        status = 422
    elif isinstance(exc.cause, ProviderError):
        status = 502
    else:
        status = 500
    body = UploadResponse(success=False, filename=exc.filename, stage=exc.stage, error=str(exc.cause))
    return JSONResponse(status_code=status, content=body.model_dump())


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health(store: VectorStoreBase = Depends(get_store)) -> JSONResponse:
    """Readiness probe; 503 when the vector store is unreachable."""
    if await asyncio.to_thread(store.health_check):
        return JSONResponse(status_code=200, content={"status": "ok"})
    return JSONResponse(status_code=503, content={"status": "unavailable"})


@app.post("/documents/upload", response_model=UploadResponse)
async def upload(
    request: UploadRequest,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> UploadResponse | JSONResponse:
    """Ingest every file in order; the first failure fails the call."""
    decoded: list[tuple[str, bytes]] = []
    for item in request.files:
        try:
            decoded.append((item.filename, base64.b64decode(item.content, validate=True)))
        except (binascii.Error, ValueError) as exc:
            cause = ExtractionError(item.filename, f"{item.filename!r} is not valid base64: {exc}")
            return _failure(IngestionError(item.filename, IngestionStage.RECEIVED.value, cause))

    try:
        await pipeline.ingest_many(decoded)
    except IngestionError as exc:
        return _failure(exc)
    return UploadResponse(success=True)


@app.get("/documents", response_model=list[DocumentEntry])
async def list_documents(storage: DocumentStorage = Depends(get_storage)) -> list[DocumentEntry]:
    """All stored raw documents, sorted by name."""
    return [DocumentEntry(**entry) for entry in storage.list()]


@app.get("/uploads/{name}")
async def download(name: str, storage: DocumentStorage = Depends(get_storage)) -> FileResponse:
    """Original bytes of a stored document."""
    try:
        path = storage.open(name)
    except (FileNotFoundError, ExtractionError) as exc:
        raise HTTPException(status_code=404, detail=f"No document named {name!r}") from exc
    return FileResponse(path, filename=name)


@app.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    pipeline: RetrievalPipeline = Depends(get_retrieval_pipeline),
) -> ChatResponse:
    """Answer *message* from the indexed documents."""
    try:
        reply = await pipeline.answer(request.message)
    except DocChatError:
        logger.exception("Chat request failed")
        return ChatResponse(response=GENERIC_FAILURE)
    return ChatResponse(response=reply.response)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
