"""Unit tests for the vector-index backends (in-memory and Chroma)."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from docgen.config import Settings
from docgen.errors import IndexUnavailableError
from docgen.ingestion.models import EmbeddingRecord
from docgen.retrieval import InMemoryVectorIndex, VectorIndexBase, build_vector_index
from docgen.retrieval.memory_store import cosine_similarity


def _record(record_id: str, vector: list[float], namespace: str = "ns", text: str = "") -> EmbeddingRecord:
    return EmbeddingRecord(
        id=record_id,
        vector=vector,
        namespace=namespace,
        text=text or record_id,
        sequence_index=0,
        document_id="doc",
    )


# ── Shared contract ─────────────────────────────────────────────────────


class IndexContract:
    """Behaviour every backend must share.  Subclasses provide ``index``."""

    def test_exact_vector_ranks_first(self, index: VectorIndexBase) -> None:
        index.upsert(
            "ns",
            [
                _record("a", [1.0, 0.0, 0.0]),
                _record("b", [0.0, 1.0, 0.0]),
                _record("c", [0.7, 0.7, 0.0]),
            ],
        )
        hits = index.query("ns", [0.0, 1.0, 0.0], 2)
        assert [h.record_id for h in hits] == ["b", "c"]
        assert hits[0].score == pytest.approx(1.0, abs=1e-3)
        assert hits[0].score >= hits[1].score

    def test_text_and_metadata_round_trip(self, index: VectorIndexBase) -> None:
        index.upsert("ns", [_record("a", [1.0, 0.0], text="Torque: 25 Nm")])
        hit = index.query("ns", [1.0, 0.0], 1)[0]
        assert hit.text == "Torque: 25 Nm"
        assert hit.metadata["document_id"] == "doc"
        assert hit.metadata["sequence_index"] == 0

    def test_upsert_is_idempotent(self, index: VectorIndexBase) -> None:
        records = [_record("a", [1.0, 0.0]), _record("b", [0.0, 1.0])]
        index.upsert("ns", records)
        index.upsert("ns", records)
        assert index.count("ns") == 2

    def test_same_id_overwrites(self, index: VectorIndexBase) -> None:
        index.upsert("ns", [_record("a", [1.0, 0.0], text="old")])
        index.upsert("ns", [_record("a", [1.0, 0.0], text="new")])
        assert index.count("ns") == 1
        assert index.query("ns", [1.0, 0.0], 1)[0].text == "new"

    def test_namespaces_are_isolated(self, index: VectorIndexBase) -> None:
        index.upsert("one", [_record("a", [1.0, 0.0], namespace="one")])
        index.upsert("two", [_record("a", [0.0, 1.0], namespace="two", text="other")])

        hits = index.query("one", [0.0, 1.0], 5)
        assert len(hits) == 1
        assert hits[0].text == "a"
        assert index.count("two") == 1

    def test_unknown_namespace_is_empty(self, index: VectorIndexBase) -> None:
        assert index.query("missing", [1.0, 0.0], 3) == []
        assert index.count("missing") == 0

    def test_k_caps_results(self, index: VectorIndexBase) -> None:
        index.upsert("ns", [_record(f"r{i}", [1.0, float(i)]) for i in range(5)])
        assert len(index.query("ns", [1.0, 0.0], 3)) == 3
        assert len(index.query("ns", [1.0, 0.0], 50)) == 5

    def test_empty_upsert(self, index: VectorIndexBase) -> None:
        assert index.upsert("ns", []) == 0

    @pytest.mark.parametrize("k", [0, -1])
    def test_invalid_k(self, index: VectorIndexBase, k: int) -> None:
        with pytest.raises(ValueError, match="k must be"):
            index.query("ns", [1.0], k)

    def test_blank_namespace(self, index: VectorIndexBase) -> None:
        with pytest.raises(ValueError, match="namespace"):
            index.query("  ", [1.0], 1)

    def test_record_namespace_must_match(self, index: VectorIndexBase) -> None:
        with pytest.raises(ValueError, match="belongs to namespace"):
            index.upsert("ns", [_record("a", [1.0], namespace="elsewhere")])


# ── In-memory backend ───────────────────────────────────────────────────


class TestInMemoryVectorIndex(IndexContract):
    @pytest.fixture()
    def index(self, memory_index: InMemoryVectorIndex) -> InMemoryVectorIndex:
        return memory_index

    def test_ties_keep_insertion_order(self, index: InMemoryVectorIndex) -> None:
        index.upsert("ns", [_record(name, [1.0, 0.0]) for name in ("z", "a", "m")])
        assert [h.record_id for h in index.query("ns", [1.0, 0.0], 3)] == ["z", "a", "m"]

    def test_overwrite_keeps_tie_position(self, index: InMemoryVectorIndex) -> None:
        index.upsert("ns", [_record("first", [1.0, 0.0]), _record("second", [1.0, 0.0])])
        index.upsert("ns", [_record("first", [1.0, 0.0])])
        assert [h.record_id for h in index.query("ns", [1.0, 0.0], 2)] == ["first", "second"]

    def test_health_check(self, index: InMemoryVectorIndex) -> None:
        assert index.health_check() is True


class TestCosineSimilarity:
    def test_identical(self) -> None:
        assert cosine_similarity([3.0, 4.0], [3.0, 4.0]) == pytest.approx(1.0)

    def test_orthogonal(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 2.0]) == 0.0

    def test_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch(self) -> None:
        with pytest.raises(ValueError):
            cosine_similarity([1.0], [1.0, 0.0])


# ── Chroma backend ──────────────────────────────────────────────────────


@pytest.fixture()
def chroma_client():
    chromadb = pytest.importorskip("chromadb")
    return chromadb.EphemeralClient()


class TestChromaVectorIndex(IndexContract):
    @pytest.fixture()
    def index(self, chroma_client) -> VectorIndexBase:
        from docgen.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex(chroma_client, f"test-{uuid.uuid4().hex[:12]}")

    def test_health_check(self, index: VectorIndexBase) -> None:
        assert index.health_check() is True


class TestChromaFailures:
    def _index(self, client: MagicMock):
        from docgen.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex(client, "broken")

    def test_unreachable_collection(self) -> None:
        client = MagicMock()
        client.get_or_create_collection.side_effect = ConnectionError("refused")

        with pytest.raises(IndexUnavailableError) as excinfo:
            self._index(client).upsert("ns", [_record("a", [1.0])])
        assert excinfo.value.namespace == "ns"
        assert excinfo.value.retryable

    def test_query_failure(self) -> None:
        client = MagicMock()
        collection = client.get_or_create_collection.return_value
        collection.count.return_value = 1
        collection.query.side_effect = RuntimeError("timeout")

        with pytest.raises(IndexUnavailableError, match="timeout"):
            self._index(client).query("ns", [1.0], 1)

    def test_heartbeat_failure_is_unhealthy(self) -> None:
        client = MagicMock()
        client.heartbeat.side_effect = ConnectionError("down")
        assert self._index(client).health_check() is False

    def test_query_does_not_list_namespace_ids(self) -> None:
        client = MagicMock()
        collection = client.get_or_create_collection.return_value
        collection.count.return_value = 10
        collection.query.return_value = {
            "ids": [[]],
            "documents": [[]],
            "metadatas": [[]],
            "distances": [[]],
        }

        assert self._index(client).query("ns", [1.0], 3) == []
        collection.get.assert_not_called()
        assert collection.query.call_args.kwargs["n_results"] == 3

    def test_empty_collection_skips_query(self) -> None:
        client = MagicMock()
        collection = client.get_or_create_collection.return_value
        collection.count.return_value = 0

        assert self._index(client).query("ns", [1.0], 3) == []
        collection.query.assert_not_called()

    def test_count_fetches_ids_only(self) -> None:
        client = MagicMock()
        collection = client.get_or_create_collection.return_value
        collection.get.return_value = {"ids": ["ns:a", "ns:b"]}

        assert self._index(client).count("ns") == 2
        assert collection.get.call_args.kwargs == {"where": {"namespace": "ns"}, "include": []}


# ── Factory ─────────────────────────────────────────────────────────────


class TestBuildVectorIndex:
    def test_memory_backend(self) -> None:
        index = build_vector_index(Settings(_env_file=None, vector_backend="memory"))
        assert isinstance(index, InMemoryVectorIndex)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="vector_backend"):
            build_vector_index(Settings(_env_file=None, vector_backend="pinecone"))
