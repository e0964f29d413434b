"""Name-addressed blob area for the original uploaded bytes."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from docchat.errors import ExtractionError, StoreError

logger = logging.getLogger(__name__)


def validate_filename(filename: str) -> str:
    """Reject names that are empty or would escape the upload directory."""
    if not filename or filename in (".", "..") or "/" in filename or "\\" in filename or "\x00" in filename:
        raise ExtractionError(filename, f"Invalid document name: {filename!r}")
    return filename


class DocumentStorage:
    """Stores raw documents under their original filename.

    Parameters
    ----------
    root:
        Directory holding the blobs; created on first use.
    url_prefix:
        Prefix of the download path reported by :meth:`list`.
    """

    def __init__(self, root: str | Path, *, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, filename: str, data: bytes) -> Path:
        """Write *data*, replacing any previous blob with the same name."""
        validate_filename(filename)
        target = self.root / filename
        tmp: str | None = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=".upload-")
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, target)
        except OSError as exc:
            if tmp is not None:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp)
            raise StoreError(f"Could not write {filename!r} to {self.root}: {exc}") from exc
        logger.info("Stored %d bytes for %s", len(data), filename)
        return target

    def list(self) -> list[dict[str, str]]:
        """Return ``{name, path}`` for every stored document, sorted by name."""
        if not self.root.is_dir():
            return []
        return [
            {"name": entry.name, "path": f"{self.url_prefix}/{entry.name}"}
            for entry in sorted(self.root.iterdir())
            if entry.is_file() and not entry.name.startswith(".upload-")
        ]

    def open(self, filename: str) -> Path:
        """Return the path of a stored document; ``FileNotFoundError`` if absent."""
        validate_filename(filename)
        path = self.root / filename
        if not path.is_file():
            raise FileNotFoundError(filename)
        return path
