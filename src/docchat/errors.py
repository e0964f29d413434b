"""Error taxonomy shared by every component.

Each stage of the pipeline converts engine-specific exceptions into one of
these types at its boundary, so callers can tell extraction, embedding and
storage failures apart without knowing which library produced them.
"""

from __future__ import annotations


class DocChatError(Exception):
    """Root of all errors raised by docchat."""


class ConfigError(DocChatError):
    """Invalid configuration or missing credentials.  Fatal at start-up."""


class ExtractionError(DocChatError):
    """A source file could not be turned into text.  Not retried."""

    def __init__(self, filename: str, message: str = "") -> None:
        self.filename = filename
        super().__init__(message or f"Could not extract text from {filename!r}")


class ProviderError(DocChatError):
    """An embedding or generation call failed.

    ``index`` identifies the failing input when the call was part of a
    batch.
    """

    def __init__(self, message: str, *, index: int | None = None) -> None:
        self.index = index
        super().__init__(message)


class StoreError(DocChatError):
    """A vector-store or blob-store operation failed."""


class IngestionError(DocChatError):
    """Ingestion of one document failed at a given stage."""

    def __init__(self, filename: str, stage: str, cause: BaseException) -> None:
        self.filename = filename
        self.stage = stage
        self.cause = cause
        super().__init__(f"Ingestion of {filename!r} failed at stage {stage!r}: {cause}")
