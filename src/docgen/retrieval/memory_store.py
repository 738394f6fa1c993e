"""In-process vector index scored by cosine similarity.

Used for local runs and tests.  Nothing is persisted.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Sequence

from docgen.ingestion.models import EmbeddingRecord
from docgen.retrieval.base import VectorIndexBase
from docgen.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; ``0.0`` when either vector has zero norm."""
    if len(a) != len(b):
        raise ValueError(f"dimension mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0.0:
        return 0.0
    return dot / norm


class InMemoryVectorIndex(VectorIndexBase):
    """Dict-backed :class:`VectorIndexBase`.

    Overwriting an id keeps its original insertion position, so tie order
    is stable across re-ingestions.
    """

    def __init__(self, index_name: str = "memory") -> None:
        super().__init__(index_name)
        self._namespaces: dict[str, dict[str, tuple[list[float], dict[str, Any]]]] = {}
        self._lock = threading.Lock()

    def upsert(self, namespace: str, records: Sequence[EmbeddingRecord]) -> int:
        self._check_namespace(namespace)
        self._check_records(namespace, records)
        with self._lock:
            store = self._namespaces.setdefault(namespace, {})
            for record in records:
                store[record.id] = (list(record.vector), record.metadata)
        logger.info("Upserted %d vectors into %s/%s", len(records), self.index_name, namespace)
        return len(records)

    def query(self, namespace: str, vector: list[float], k: int) -> list[RetrievalResult]:
        self._check_namespace(namespace)
        self._check_k(k)
        with self._lock:
            entries = list(self._namespaces.get(namespace, {}).items())

        scored = [
            (cosine_similarity(vector, stored), record_id, meta)
            for record_id, (stored, meta) in entries
        ]
        # sorted() is stable, so equal scores keep insertion order
        scored = sorted(scored, key=lambda item: -item[0])[:k]
        return [
            RetrievalResult(
                record_id=record_id,
                score=score,
                text=str(meta.get("text", "")),
                metadata={key: val for key, val in meta.items() if key != "text"},
            )
            for score, record_id, meta in scored
        ]

    def count(self, namespace: str) -> int:
        self._check_namespace(namespace)
        with self._lock:
            return len(self._namespaces.get(namespace, {}))

    def health_check(self) -> bool:
        return True
