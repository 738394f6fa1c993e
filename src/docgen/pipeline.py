"""Top-level orchestrators for the ingestion and generation paths.

These own the client handles (embedding model, chat model, vector index)
and the retry policy.  Components below never retry; everything retryable
is retried here with tenacity and re-raised with its context once the
attempts are exhausted.

Usage::

    from docgen.pipeline import GenerationPipeline, IngestionPipeline

    ingestion = IngestionPipeline.from_settings()
    report = ingestion.ingest(pdf_bytes, namespace="line-4")

    generation = GenerationPipeline.from_settings(index=ingestion.index)
    artifact = generation.generate("checksheet", "final assembly torque checks",
                                   namespace="line-4")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Sequence, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from docgen.config import Settings, settings as default_settings
from docgen.errors import EmbeddingFailure, GenerationError, IndexUnavailableError
from docgen.generation.llm import GenerativeClient, get_chat_model
from docgen.generation.models import GenerationRequest, SynthesizedArtifact, UseCase
from docgen.generation.prompts import PromptBuilder
from docgen.generation.synthesizer import DocumentSynthesizer
from docgen.ingestion.chunker import Chunker
from docgen.ingestion.embedder import EmbeddingGenerator, get_embedding_model
from docgen.ingestion.models import (
    DocumentFormat,
    EmbeddingRecord,
    IngestionReport,
    IngestionStatus,
    SourceDocument,
    TextChunk,
)
from docgen.ingestion.parser import DocumentParser
from docgen.retrieval import build_vector_index
from docgen.retrieval.base import VectorIndexBase
from docgen.retrieval.retriever import Retriever

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings
    from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ──────────────────────────────────────────────────────────────────────
# Retry policy
# ──────────────────────────────────────────────────────────────────────


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retry %d after %s: %s",
        retry_state.attempt_number,
        type(exc).__name__,
        exc,
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with jitter, applied by the orchestrators."""

    max_attempts: int = 3
    initial_wait: float = 1.0
    max_wait: float = 30.0
    jitter: float = 1.0

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> RetryPolicy:
        config = config or default_settings
        return cls(
            max_attempts=config.retry_max_attempts,
            initial_wait=config.retry_initial_wait,
            max_wait=config.retry_max_wait,
            jitter=config.retry_jitter,
        )

    def retrying(self, *retry_on: type[BaseException]) -> Retrying:
        return Retrying(
            retry=retry_if_exception_type(retry_on),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.initial_wait, max=self.max_wait, jitter=self.jitter
            ),
            before_sleep=_log_retry,
            reraise=True,
        )

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        retry_on: Sequence[type[BaseException]],
        **kwargs: Any,
    ) -> T:
        return self.retrying(*retry_on)(fn, *args, **kwargs)


# ──────────────────────────────────────────────────────────────────────
# Ingestion
# ──────────────────────────────────────────────────────────────────────


class IngestionPipeline:
    """Parse → chunk → embed → upsert, one document per call.

    The upsert happens once, after every chunk is embedded, so a document's
    chunks become visible together.  With ``allow_partial`` the chunks that
    did embed are upserted anyway and the report lists the missing ones;
    otherwise an exhausted :class:`EmbeddingFailure` propagates and nothing
    is written.
    """

    def __init__(
        self,
        parser: DocumentParser,
        chunker: Chunker,
        embedder: EmbeddingGenerator,
        index: VectorIndexBase,
        *,
        retry: RetryPolicy | None = None,
        default_namespace: str = "ns-1",
        allow_partial: bool = False,
    ) -> None:
        self.parser = parser
        self.chunker = chunker
        self.embedder = embedder
        self.index = index
        self.retry = retry or RetryPolicy()
        self.default_namespace = default_namespace
        self.allow_partial = allow_partial

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        index: VectorIndexBase | None = None,
        embeddings: Embeddings | None = None,
    ) -> IngestionPipeline:
        """Construct every client from *config*; pass *index* / *embeddings* to share them."""
        config = config or default_settings
        return cls(
            parser=DocumentParser(),
            chunker=Chunker(max_chars=config.chunk_max_chars, chunk_overlap=config.chunk_overlap),
            embedder=EmbeddingGenerator(
                embeddings or get_embedding_model(config),
                max_workers=config.embed_max_workers,
            ),
            index=index or build_vector_index(config),
            retry=RetryPolicy.from_settings(config),
            default_namespace=config.default_namespace,
            allow_partial=config.allow_partial_ingestion,
        )

    def ingest(
        self,
        data: bytes,
        *,
        namespace: str | None = None,
        declared_format: DocumentFormat | None = None,
        name: str = "",
    ) -> IngestionReport:
        """Ingest raw document bytes into *namespace*.

        Raises
        ------
        UnsupportedFormatError
            Before anything touches the index.
        EmbeddingFailure
            After retries, unless ``allow_partial`` is set.
        IndexUnavailableError
            When the upsert keeps failing.
        """
        document = SourceDocument(data=data, declared_format=declared_format, name=name)
        return self.ingest_document(document, namespace=namespace)

    def ingest_document(
        self, document: SourceDocument, *, namespace: str | None = None
    ) -> IngestionReport:
        namespace = namespace or self.default_namespace
        document_id = document.document_id
        logger.info(
            "Ingesting %s (%d bytes) into namespace %r",
            document.name or document_id[:12],
            len(document.data),
            namespace,
        )

        segments = self.parser.parse_document(document)
        chunks = self.chunker.chunk(segments)
        records, failure = self._embed_with_resume(chunks, document_id, namespace)
        if failure is not None and not self.allow_partial:
            raise failure

        records = sorted(records, key=lambda r: r.sequence_index or 0)
        if records:
            self.retry.call(
                self.index.upsert, namespace, records, retry_on=(IndexUnavailableError,)
            )

        embedded = {r.sequence_index for r in records}
        failed = [c.sequence_index for c in chunks if c.sequence_index not in embedded]
        report = IngestionReport(
            document_id=document_id,
            namespace=namespace,
            status=IngestionStatus.PARTIAL if failed else IngestionStatus.COMPLETE,
            chunk_count=len(chunks),
            upserted_ids=[r.id for r in records],
            failed_indices=failed,
        )
        if failed:
            logger.warning(
                "Partial ingestion of %s: %d/%d chunks indexed, missing %s",
                document_id[:12],
                report.upserted_count,
                len(chunks),
                failed,
            )
        else:
            logger.info("Indexed %d chunks into namespace %r", report.upserted_count, namespace)
        return report

    def _embed_with_resume(
        self,
        chunks: Sequence[TextChunk],
        document_id: str,
        namespace: str,
    ) -> tuple[list[EmbeddingRecord], EmbeddingFailure | None]:
        """Embed *chunks*, retrying only the ones that have not succeeded yet."""
        done: dict[int, EmbeddingRecord] = {}
        remaining = list(chunks)
        try:
            for attempt in self.retry.retrying(EmbeddingFailure):
                with attempt:
                    try:
                        batch = self.embedder.embed(
                            remaining, document_id=document_id, namespace=namespace
                        )
                    except EmbeddingFailure as exc:
                        done.update((r.sequence_index, r) for r in exc.embedded)
                        remaining = [c for c in remaining if c.sequence_index not in done]
                        raise
                    done.update((r.sequence_index, r) for r in batch)
        except EmbeddingFailure as exc:
            exc.embedded = [done[i] for i in sorted(done)]
            return exc.embedded, exc
        return [done[i] for i in sorted(done)], None


# ──────────────────────────────────────────────────────────────────────
# Generation
# ──────────────────────────────────────────────────────────────────────


class GenerationPipeline:
    """Retrieve → build prompt → generate → synthesize.

    An artifact is returned only when every stage succeeds.
    """

    def __init__(
        self,
        retriever: Retriever,
        prompt_builder: PromptBuilder,
        client: GenerativeClient,
        synthesizer: DocumentSynthesizer,
        *,
        retry: RetryPolicy | None = None,
        default_namespace: str = "ns-1",
    ) -> None:
        self.retriever = retriever
        self.prompt_builder = prompt_builder
        self.client = client
        self.synthesizer = synthesizer
        self.retry = retry or RetryPolicy()
        self.default_namespace = default_namespace

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        index: VectorIndexBase | None = None,
        embeddings: Embeddings | None = None,
        chat_model: BaseChatModel | None = None,
    ) -> GenerationPipeline:
        """Construct every client from *config*; pass handles to share them."""
        config = config or default_settings
        embedder = EmbeddingGenerator(embeddings or get_embedding_model(config))
        return cls(
            retriever=Retriever(
                embedder,
                index or build_vector_index(config),
                default_k=config.retrieval_k,
                score_threshold=config.retrieval_score_threshold,
            ),
            prompt_builder=PromptBuilder(max_context_chars=config.prompt_max_context_chars),
            client=GenerativeClient(chat_model or get_chat_model(config)),
            synthesizer=DocumentSynthesizer(),
            retry=RetryPolicy.from_settings(config),
            default_namespace=config.default_namespace,
        )

    def generate(
        self,
        use_case: UseCase | str,
        query: str,
        *,
        namespace: str | None = None,
        instruction: str = "",
        k: int | None = None,
    ) -> SynthesizedArtifact:
        """Produce an artifact for *use_case* grounded in *namespace*.

        Raises
        ------
        IndexUnavailableError, EmbeddingFailure
            When retrieval keeps failing.
        GenerationError
            When the model keeps failing.  No partial artifact is returned.
        """
        use_case = UseCase.parse(use_case)
        namespace = namespace or self.default_namespace
        hits = self.retry.call(
            self.retriever.retrieve,
            query,
            namespace,
            k,
            retry_on=(IndexUnavailableError, EmbeddingFailure),
        )
        request = self.prompt_builder.build_request(
            use_case, [hit.text for hit in hits], instruction
        )
        return self.respond(request)

    def respond(self, request: GenerationRequest) -> SynthesizedArtifact:
        """Run the model on an already-assembled request and synthesize the result."""
        prompt = self.prompt_builder.build_from_request(request)
        text = self.retry.call(
            self.client.generate,
            prompt,
            use_case=request.use_case.value,
            retry_on=(GenerationError,),
        )
        artifact = self.synthesizer.build(request.use_case, text)
        logger.info(
            "Generated %s artifact from %d context passage(s)",
            request.use_case.value,
            len(request.context),
        )
        return artifact
