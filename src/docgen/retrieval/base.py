"""Abstract base class for vector-index backends.

Adding a new backend (Pinecone, Qdrant …) only requires subclassing
:class:`VectorIndexBase` and implementing the abstract methods.  The rest of
the stack is backend-agnostic.

Backends never retry; transport failures surface as
:class:`~docgen.errors.IndexUnavailableError` and the caller decides.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from docgen.ingestion.models import EmbeddingRecord
from docgen.retrieval.models import RetrievalResult


class VectorIndexBase(ABC):
    """Namespace-partitioned store of ``(id, vector, metadata)`` tuples.

    Parameters
    ----------
    index_name:
        Logical name of the index / collection.
    """

    def __init__(self, index_name: str) -> None:
        self.index_name = index_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, namespace: str, records: Sequence[EmbeddingRecord]) -> int:
        """Insert or overwrite *records* by id within *namespace*.

        Returns the number of records written.
        """
        ...

    @abstractmethod
    def query(self, namespace: str, vector: list[float], k: int) -> list[RetrievalResult]:
        """Return up to *k* records ranked by descending similarity.

        Ties keep insertion order.  An empty or unknown namespace yields
        ``[]``.
        """
        ...

    @abstractmethod
    def count(self, namespace: str) -> int:
        """Number of records stored in *namespace*."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- shared validation ----------------------------------------------------

    @staticmethod
    def _check_namespace(namespace: str) -> None:
        if not isinstance(namespace, str) or not namespace.strip():
            raise ValueError("namespace is required")

    @staticmethod
    def _check_k(k: int) -> None:
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")

    @staticmethod
    def _check_records(namespace: str, records: Sequence[EmbeddingRecord]) -> None:
        for record in records:
            if record.namespace != namespace:
                raise ValueError(
                    f"record {record.id!r} belongs to namespace {record.namespace!r}, "
                    f"not {namespace!r}"
                )
