"""Chroma implementation of the vector-index abstraction.

One Chroma collection backs the whole index; namespaces are a metadata
partition enforced with a ``where`` clause on every read.  Storage ids are
prefixed with the namespace so the same record id can live in several
namespaces without overwriting each other.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from docgen.config import Settings, settings as default_settings
from docgen.errors import IndexUnavailableError
from docgen.ingestion.models import EmbeddingRecord
from docgen.retrieval.base import VectorIndexBase
from docgen.retrieval.models import RetrievalResult

if TYPE_CHECKING:
    from chromadb.api import ClientAPI
    from chromadb.api.models.Collection import Collection

logger = logging.getLogger(__name__)


def _storage_id(namespace: str, record_id: str) -> str:
    return f"{namespace}:{record_id}"


def _distance_to_score(distance: float, metric: str) -> float:
    """Convert a Chroma distance to a similarity score (higher = closer)."""
    if metric in ("cosine", "ip"):
        return 1.0 - distance
    # l2
    return 1.0 / (1.0 + distance)


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index.

    Parameters
    ----------
    client:
        A ``chromadb`` client (``HttpClient`` in production,
        ``EphemeralClient`` in tests).
    collection_name:
        Name of the Chroma collection (the index name).
    distance_metric:
        ``cosine`` | ``l2`` | ``ip``; fixed when the collection is created.
    """

    def __init__(
        self,
        client: ClientAPI,
        collection_name: str = default_settings.chroma_collection,
        *,
        distance_metric: str = "cosine",
    ) -> None:
        super().__init__(collection_name)
        self._client = client
        self._distance_metric = distance_metric
        self._collection: Collection | None = None

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> ChromaVectorIndex:
        """Connect to the Chroma server named in *config*."""
        import chromadb

        config = config or default_settings
        try:
            client = chromadb.HttpClient(host=config.chroma_host, port=config.chroma_port)
        except Exception as exc:  # noqa: BLE001
            raise IndexUnavailableError("", reason=str(exc)) from exc
        return cls(client, config.chroma_collection)

    # -- VectorIndexBase overrides ----------------------------------------------

    def upsert(self, namespace: str, records: Sequence[EmbeddingRecord]) -> int:
        self._check_namespace(namespace)
        self._check_records(namespace, records)
        if not records:
            return 0

        ids: list[str] = []
        embeddings: list[list[float]] = []
        documents: list[str] = []
        metadatas: list[dict[str, Any]] = []
        for record in records:
            ids.append(_storage_id(namespace, record.id))
            embeddings.append(record.vector)
            documents.append(record.text)
            meta = {k: v for k, v in record.metadata.items() if k != "text"}
            meta["record_id"] = record.id
            metadatas.append(meta)

        collection = self._get_collection(namespace)
        try:
            collection.upsert(
                ids=ids,
                embeddings=embeddings,
                documents=documents,
                metadatas=metadatas,
            )
        except Exception as exc:  # noqa: BLE001
            raise IndexUnavailableError(namespace, reason=str(exc)) from exc

        logger.info("Upserted %d vectors into %s/%s", len(ids), self.index_name, namespace)
        return len(ids)

    def query(self, namespace: str, vector: list[float], k: int) -> list[RetrievalResult]:
        self._check_namespace(namespace)
        self._check_k(k)

        collection = self._get_collection(namespace)
        try:
            # whole-collection size; the where filter can only narrow it
            available = collection.count()
            if available == 0:
                return []
            results = collection.query(
                query_embeddings=[vector],
                n_results=min(k, available),
                where={"namespace": namespace},
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:  # noqa: BLE001
            raise IndexUnavailableError(namespace, reason=str(exc)) from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[RetrievalResult] = []
        for storage_id, content, meta, dist in zip(ids, docs, metas, distances):
            meta = dict(meta or {})
            record_id = str(meta.pop("record_id", storage_id))
            hits.append(
                RetrievalResult(
                    record_id=record_id,
                    score=_distance_to_score(dist, self._distance_metric),
                    text=content or "",
                    metadata=meta,
                )
            )
        return sorted(hits, key=lambda hit: -hit.score)[:k]

    def count(self, namespace: str) -> int:
        self._check_namespace(namespace)
        collection = self._get_collection(namespace)
        try:
            found = collection.get(where={"namespace": namespace}, include=[])
        except Exception as exc:  # noqa: BLE001
            raise IndexUnavailableError(namespace, reason=str(exc)) from exc
        return len(found.get("ids") or [])

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _get_collection(self, namespace: str) -> Collection:
        if self._collection is None:
            try:
                self._collection = self._client.get_or_create_collection(
                    name=self.index_name,
                    metadata={"hnsw:space": self._distance_metric},
                )
            except Exception as exc:  # noqa: BLE001
                raise IndexUnavailableError(namespace, reason=str(exc)) from exc
        return self._collection
