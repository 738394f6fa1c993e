"""Embedding generation: one remote call per chunk, never a silent drop."""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Sequence

from docgen.config import Settings, settings as default_settings
from docgen.errors import EmbeddingFailure
from docgen.ingestion.models import EmbeddingRecord, TextChunk

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_model(config: Settings | None = None) -> Embeddings:
    """Build the configured LangChain embedding client.

    ``huggingface`` runs a sentence-transformer locally; ``bedrock`` calls
    Amazon Titan through ``langchain_aws``.
    """
    config = config or default_settings
    provider = config.embedding_provider.lower()
    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=config.embedding_model)
    if provider == "bedrock":
        from langchain_aws import BedrockEmbeddings

        return BedrockEmbeddings(
            model_id=config.bedrock_embedding_model_id,
            region_name=config.aws_region,
        )
    raise ValueError(f"Unsupported embedding_provider: {config.embedding_provider!r}")


def make_record_id(document_id: str, sequence_index: int, text: str) -> str:
    """Deterministic record id: re-ingesting a document overwrites, never duplicates."""
    digest = hashlib.sha256(f"{document_id}:{sequence_index}:{text}".encode()).hexdigest()
    return f"chunk-{digest[:32]}"


class EmbeddingGenerator:
    """Convert :class:`TextChunk` objects into :class:`EmbeddingRecord` objects.

    Parameters
    ----------
    model:
        Any LangChain ``Embeddings`` implementation.
    max_workers:
        ``1`` embeds sequentially.  Larger values fan out over a thread pool;
        output order is unaffected.
    """

    def __init__(self, model: Embeddings, *, max_workers: int = 1) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._model = model
        self.max_workers = max_workers

    def embed_text(self, text: str) -> list[float]:
        """Embed a single string (used for both chunks and queries)."""
        vector = self._model.embed_query(text)
        if not vector:
            raise ValueError("embedding model returned an empty vector")
        return [float(v) for v in vector]

    def embed(
        self,
        chunks: Sequence[TextChunk],
        *,
        document_id: str,
        namespace: str,
    ) -> list[EmbeddingRecord]:
        """Embed every chunk, in order.

        Raises
        ------
        EmbeddingFailure
            On the first (lowest-index) chunk that failed.  ``embedded`` holds
            every record that succeeded.
        """
        if not chunks:
            return []

        if self.max_workers == 1:
            # sequential mode stops at the first failure
            outcomes = []
            for chunk in chunks:
                outcomes.append(self._attempt(chunk))
                if outcomes[-1][1] is not None:
                    break
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self._attempt, chunks))

        records: list[EmbeddingRecord] = []
        failure: tuple[TextChunk, Exception] | None = None
        dim: int | None = None
        for chunk, (vector, error) in zip(chunks, outcomes):
            if error is None and dim is not None and len(vector) != dim:
                error = ValueError(f"dimension mismatch: expected {dim}, got {len(vector)}")
            if error is not None:
                if failure is None:
                    failure = (chunk, error)
                continue
            dim = dim or len(vector)
            records.append(
                EmbeddingRecord(
                    id=make_record_id(document_id, chunk.sequence_index, chunk.text),
                    vector=vector,
                    namespace=namespace,
                    text=chunk.text,
                    sequence_index=chunk.sequence_index,
                    document_id=document_id,
                )
            )

        if failure is not None:
            chunk, error = failure
            logger.warning(
                "Embedding failed for chunk %d (%d/%d succeeded): %s",
                chunk.sequence_index,
                len(records),
                len(chunks),
                error,
            )
            raise EmbeddingFailure(
                chunk.sequence_index,
                namespace=namespace,
                embedded=records,
                reason=str(error),
            ) from error

        logger.info("Embedded %d chunks (dim=%d)", len(records), dim or 0)
        return records

    def _attempt(self, chunk: TextChunk) -> tuple[list[float], Exception | None]:
        logger.debug("Embedding chunk %d (%d chars)", chunk.sequence_index, len(chunk.text))
        # Remote SDKs raise transport errors of many types; all are reported per chunk.
        try:
            return self.embed_text(chunk.text), None
        except Exception as exc:  # noqa: BLE001
            return [], exc
