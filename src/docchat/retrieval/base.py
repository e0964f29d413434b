"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing its abstract methods.  The pipelines never see the
underlying client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from docchat.errors import StoreError
from docchat.retrieval.models import RetrievedChunk, VectorRecord


def check_dimensions(records: Sequence[VectorRecord], expected: int | None = None) -> int | None:
    """Ensure every record shares one dimensionality (and matches *expected*).

    Returns the batch dimensionality, or *expected* for an empty batch.
    """
    dims = {len(r.embedding) for r in records}
    if len(dims) > 1:
        raise StoreError(f"Batch mixes embedding dimensions {sorted(dims)}")
    if not dims:
        return expected
    dim = dims.pop()
    if dim == 0:
        raise StoreError("Refusing to store empty embeddings")
    if expected is not None and dim != expected:
        raise StoreError(f"Embedding dimension {dim} does not match stored dimension {expected}")
    return dim


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, records: Sequence[VectorRecord]) -> None:
        """Insert or replace *records* by id, all-or-nothing per call."""
        ...

    @abstractmethod
    def query(self, query: str | Sequence[float], *, n_results: int = 3) -> list[RetrievedChunk]:
        """Return up to *n_results* hits ranked by cosine similarity, descending.

        A ``str`` query is embedded with the same model used for ingestion
        before searching.
        """
        ...

    @abstractmethod
    def size(self) -> int:
        """Number of live records."""
        ...

    @abstractmethod
    def delete_stale(self, filename: str, keep_ids: Sequence[str]) -> int:
        """Delete records of *filename* whose id is not in *keep_ids*.

        Returns the number of deleted records.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
