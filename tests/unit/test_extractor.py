"""Unit tests for text extraction."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from docchat.errors import ExtractionError
from docchat.ingestion.extractor import (
    PDFExtractor,
    SuffixExtractor,
    TextExtractor,
    extractor_for,
)


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("report.pdf", PDFExtractor),
        ("REPORT.PDF", PDFExtractor),
        ("notes.txt", TextExtractor),
        ("readme.md", TextExtractor),
        ("no_suffix", TextExtractor),
    ],
)
def test_extractor_for_dispatches_on_suffix(filename: str, expected: type) -> None:
    assert isinstance(extractor_for(filename), expected)


def test_text_extractor_decodes_utf8() -> None:
    assert TextExtractor().extract("a.txt", "héllo wörld".encode()) == "héllo wörld"


def test_text_extractor_rejects_invalid_bytes() -> None:
    with pytest.raises(ExtractionError) as info:
        TextExtractor().extract("a.txt", b"\xff\xfe\x00garbage\xc3")
    assert info.value.filename == "a.txt"


def test_pdf_extractor_joins_pages() -> None:
    pages = [MagicMock(page_content="page one"), MagicMock(page_content="page two")]
    loader = MagicMock()
    loader.return_value.load.return_value = pages
    with patch("langchain_community.document_loaders.PyPDFLoader", loader):
        text = PDFExtractor().extract("doc.pdf", b"%PDF-1.4 fake")
    assert text == "page one\npage two"
    loaded_path = loader.call_args.args[0]
    assert loaded_path.endswith(".pdf")


def test_pdf_extractor_wraps_parse_errors() -> None:
    loader = MagicMock()
    loader.return_value.load.side_effect = ValueError("EOF marker not found")
    with patch("langchain_community.document_loaders.PyPDFLoader", loader):
        with pytest.raises(ExtractionError, match="doc.pdf"):
            PDFExtractor().extract("doc.pdf", b"not a pdf")


def test_suffix_extractor_routes_text() -> None:
    assert SuffixExtractor().extract("a.md", b"# Title") == "# Title"
