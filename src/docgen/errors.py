"""Error taxonomy shared by the ingestion and generation paths.

Every error carries a ``retryable`` flag plus whatever context the caller
needs to decide between retrying and aborting (chunk index, namespace,
use case).  Components raise; only :mod:`docgen.pipeline` retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docgen.ingestion.models import EmbeddingRecord


class DocGenError(Exception):
    """Base class for all docgen errors."""

    retryable: bool = False


class UnsupportedFormatError(DocGenError):
    """No extractor could read the document.  Terminal for that document."""

    retryable = False

    def __init__(self, message: str, failures: dict[str, str] | None = None) -> None:
        self.failures = dict(failures or {})
        super().__init__(message)


class EmbeddingFailure(DocGenError):
    """Embedding a chunk failed.

    Attributes
    ----------
    sequence_index:
        Lowest ``sequence_index`` that could not be embedded, or ``None``
        when the failed text was a retrieval query rather than a chunk.
    namespace:
        Target namespace of the ingestion.
    embedded:
        Records that *were* embedded before / alongside the failure, so the
        caller can resume or report partial ingestion.
    """

    retryable = True

    def __init__(
        self,
        sequence_index: int | None,
        namespace: str = "",
        embedded: list[EmbeddingRecord] | None = None,
        reason: str = "",
    ) -> None:
        self.sequence_index = sequence_index
        self.namespace = namespace
        self.embedded = list(embedded or [])
        target = "query" if sequence_index is None else f"chunk {sequence_index}"
        msg = f"Failed to embed {target} (namespace={namespace!r})"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class IndexUnavailableError(DocGenError):
    """The vector index could not be reached or rejected the request."""

    retryable = True

    def __init__(self, namespace: str, reason: str = "") -> None:
        self.namespace = namespace
        msg = f"Vector index unavailable (namespace={namespace!r})"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class GenerationError(DocGenError):
    """The generative model failed or returned no usable content."""

    retryable = True

    def __init__(self, message: str, use_case: str | None = None) -> None:
        self.use_case = use_case
        super().__init__(message)
