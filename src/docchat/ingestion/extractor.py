"""Text extractors — turn an uploaded binary into plain text."""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import PurePath

from docchat.errors import ExtractionError

logger = logging.getLogger(__name__)


class Extractor(ABC):
    """Converts the raw bytes of one file into text."""

    @abstractmethod
    def extract(self, filename: str, data: bytes) -> str:
        """Return the text of *data*; raise :class:`ExtractionError` on malformed input."""
        ...


class TextExtractor(Extractor):
    """Strict UTF-8 decoding for plain-text formats."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def extract(self, filename: str, data: bytes) -> str:
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise ExtractionError(filename, f"{filename!r} is not valid {self.encoding} text") from exc


class PDFExtractor(Extractor):
    """PDF text via LangChain's ``PyPDFLoader``.

    The loader only reads from disk, so the bytes are spooled to a
    temporary file first.
    """

    def extract(self, filename: str, data: bytes) -> str:
        from langchain_community.document_loaders import PyPDFLoader

        fd, tmp_path = tempfile.mkstemp(suffix=".pdf")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            pages = PyPDFLoader(tmp_path).load()
        except Exception as exc:
            raise ExtractionError(filename, f"Could not parse PDF {filename!r}: {exc}") from exc
        finally:
            os.unlink(tmp_path)
        logger.debug("Extracted %d pages from %s", len(pages), filename)
        return "\n".join(page.page_content for page in pages)


_EXTRACTORS: dict[str, Extractor] = {
    ".pdf": PDFExtractor(),
}
_DEFAULT = TextExtractor()


def extractor_for(filename: str) -> Extractor:
    """Pick an extractor by file suffix; anything unknown is read as UTF-8 text."""
    return _EXTRACTORS.get(PurePath(filename).suffix.lower(), _DEFAULT)


class SuffixExtractor(Extractor):
    """Dispatches each file to :func:`extractor_for`."""

    def extract(self, filename: str, data: bytes) -> str:
        return extractor_for(filename).extract(filename, data)
