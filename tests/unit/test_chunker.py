"""Unit tests for the chunker module."""

import pytest

from docchat.errors import ConfigError
from docchat.ingestion.chunker import build_chunks, chunk_text


def test_chunk_text_splits_into_word_windows() -> None:
    """450 words at size 200 should give 200, 200 and 50 words."""
    text = " ".join(f"w{i}" for i in range(450))
    chunks = chunk_text(text, size=200)
    assert [len(c.split()) for c in chunks] == [200, 200, 50]


def test_chunks_concatenate_to_normalised_text() -> None:
    """Joining the chunks restores the text with single spaces."""
    text = "  The quick\tbrown fox\n\njumps over   the lazy dog  "
    chunks = chunk_text(text, size=3)
    assert " ".join(chunks) == "The quick brown fox jumps over the lazy dog"
    assert all(len(c.split()) <= 3 for c in chunks)


def test_chunks_do_not_overlap() -> None:
    chunks = chunk_text("a b c d e", size=2)
    assert chunks == ["a b", "c d", "e"]


def test_chunk_text_is_deterministic() -> None:
    text = "lorem ipsum dolor sit amet " * 40
    assert chunk_text(text, size=7) == chunk_text(text, size=7)


def test_chunk_text_empty_input() -> None:
    """Empty or whitespace-only text should return an empty list."""
    assert chunk_text("") == []
    assert chunk_text(" \n\t ") == []


@pytest.mark.parametrize("size", [0, -5])
def test_non_positive_size_fails_fast(size: int) -> None:
    with pytest.raises(ConfigError):
        chunk_text("some words here", size=size)


def test_build_chunks_assigns_deterministic_ids() -> None:
    chunks = build_chunks("doc", "one two three four five", size=2)
    assert [c.id for c in chunks] == ["doc_chunk_0", "doc_chunk_1", "doc_chunk_2"]
    assert [c.index for c in chunks] == [0, 1, 2]
    assert all(c.source_filename == "doc" for c in chunks)
