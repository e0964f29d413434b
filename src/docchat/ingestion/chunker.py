"""Word-window text chunking."""

from __future__ import annotations

from docchat.errors import ConfigError
from docchat.ingestion.models import Chunk, chunk_id


def chunk_text(text: str, size: int = 200) -> list[str]:
    """Split *text* into consecutive windows of *size* words.

    Words are whitespace-delimited and re-joined with single spaces.  The
    windows do not overlap and only the last one may be shorter than
    *size*.  The output is a pure function of the input, which keeps
    index-based chunk ids stable across re-ingestion.

    Parameters
    ----------
    text:
        Extracted document text.
    size:
        Number of words per chunk.

    Returns
    -------
    list[str]
        Ordered chunk texts; empty when *text* has no words.
    """
    if size <= 0:
        raise ConfigError(f"chunk size must be positive, got {size!r}")
    words = text.split()
    return [" ".join(words[start : start + size]) for start in range(0, len(words), size)]


def build_chunks(filename: str, text: str, size: int = 200) -> list[Chunk]:
    """Chunk *text* and attach deterministic ids derived from *filename*."""
    return [
        Chunk(id=chunk_id(filename, i), text=piece, index=i, source_filename=filename)
        for i, piece in enumerate(chunk_text(text, size))
    ]
