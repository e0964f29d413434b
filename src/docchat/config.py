"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

from docchat.errors import ConfigError

EMBEDDING_BACKENDS = ("huggingface", "openai")


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-3.5-turbo", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description="Base URL of an OpenAI-compatible API. Leave empty to use OpenAI cloud.",
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_backend: str = Field(default="huggingface", description="One of 'huggingface' or 'openai'")
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    openai_embedding_model: str = "text-embedding-ada-002"

    # Vector store
    chroma_host: str = Field(default="", description="Chroma server host; empty means embedded persistent client")
    chroma_port: int = 8000
    chroma_persist_dir: str = "./data/chroma"
    chroma_collection: str = "documents"

    # Raw document blobs
    upload_dir: str = "./data/uploads"

    # Pipeline tuning
    chunk_size: int = Field(default=200, description="Words per chunk")
    retrieval_k: int = 3
    max_context_chars: int = 4000
    embedding_concurrency: int = 8
    provider_max_attempts: int = 3
    provider_retry_wait: float = 1.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def check_settings(cfg: Settings) -> Settings:
    """Validate settings once at start-up; raise :class:`ConfigError` on bad values."""
    positive = (
        "chunk_size",
        "retrieval_k",
        "max_context_chars",
        "embedding_concurrency",
        "provider_max_attempts",
    )
    for name in positive:
        value = getattr(cfg, name)
        if value <= 0:
            raise ConfigError(f"{name} must be positive, got {value!r}")
    if cfg.embedding_backend not in EMBEDDING_BACKENDS:
        raise ConfigError(
            f"Unknown embedding_backend {cfg.embedding_backend!r}; "
            f"expected one of {', '.join(EMBEDDING_BACKENDS)}"
        )
    # Chat generation always goes through an OpenAI-compatible API.
    if not cfg.openai_api_key and not cfg.llm_base_url:
        raise ConfigError("OPENAI_API_KEY is not set and no LLM_BASE_URL is configured")
    return cfg


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler at *level* (defaults to ``settings.log_level``)."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Singleton — import `settings` wherever needed.
settings = Settings()
