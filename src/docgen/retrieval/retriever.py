"""Retriever: embed a query and run a nearest-neighbour lookup.

Usage::

    from docgen.retrieval import InMemoryVectorIndex, Retriever

    retriever = Retriever(embedder, index, default_k=5)
    for hit in retriever.retrieve("torque values for M8 bolts", "ns-1"):
        print(hit.score, hit.text[:80])
"""

from __future__ import annotations

import logging

from docgen.errors import EmbeddingFailure
from docgen.ingestion.embedder import EmbeddingGenerator
from docgen.retrieval.base import VectorIndexBase
from docgen.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)


class Retriever:
    """Top-*k* semantic retrieval over one namespace of a vector index.

    Parameters
    ----------
    embedder:
        Generator whose single-item path embeds the query.
    index:
        Backend holding the ingested records.
    default_k:
        Number of results when :meth:`retrieve` is called without *k*.
    score_threshold:
        Minimum similarity score; results below it are discarded.
    """

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        index: VectorIndexBase,
        *,
        default_k: int = 5,
        score_threshold: float = 0.0,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self.default_k = default_k
        self.score_threshold = score_threshold

    def retrieve(
        self,
        query_text: str,
        namespace: str,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Return at most *k* results, best first.

        An empty or unknown namespace yields ``[]``.

        Raises
        ------
        EmbeddingFailure
            When the query cannot be embedded (``sequence_index`` is ``None``).
        IndexUnavailableError
            When the backend cannot be reached.
        """
        k = self.default_k if k is None else k
        try:
            vector = self._embedder.embed_text(query_text)
        except Exception as exc:  # noqa: BLE001
            raise EmbeddingFailure(None, namespace=namespace, reason=str(exc)) from exc
        hits = self._index.query(namespace, vector, k)
        results = [hit for hit in hits if hit.score >= self.score_threshold]
        logger.info(
            "Retrieved %d/%d results from namespace %r", len(results), k, namespace
        )
        return results
