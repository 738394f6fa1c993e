"""Domain models for the ingestion path: documents, chunks, and vectors."""

from __future__ import annotations

import hashlib
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PDF_MAGIC = b"%PDF"
_ZIP_MAGIC = b"PK\x03\x04"


class DocumentFormat(str, Enum):
    """Source document formats the parser knows about."""

    PDF = "pdf"
    DOCX = "docx"
    OTHER = "other"

    @classmethod
    def detect(cls, data: bytes) -> DocumentFormat:
        """Infer the format from leading magic bytes, ignoring leading whitespace."""
        head = data.lstrip()[:8]
        if head.startswith(_PDF_MAGIC):
            return cls.PDF
        if head.startswith(_ZIP_MAGIC):
            return cls.DOCX
        return cls.OTHER


class SourceDocument(BaseModel):
    """Raw document bytes plus an optional, possibly unreliable, format hint."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    declared_format: DocumentFormat | None = None
    name: str = ""

    @property
    def document_id(self) -> str:
        """SHA-256 of the raw content; stable across re-ingestions."""
        return hashlib.sha256(self.data).hexdigest()

    @property
    def inferred_format(self) -> DocumentFormat:
        return DocumentFormat.detect(self.data)


class TextChunk(BaseModel):
    """An ordered unit of extracted text, ready for embedding."""

    model_config = ConfigDict(frozen=True)

    sequence_index: int = Field(ge=0)
    text: str

    @field_validator("text")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk text must be non-empty after trimming")
        return value


class EmbeddingRecord(BaseModel):
    """A vector bound for the index, with the metadata needed to read it back."""

    model_config = ConfigDict(frozen=True)

    id: str
    vector: list[float]
    namespace: str
    text: str = ""
    sequence_index: int | None = None
    document_id: str | None = None

    @property
    def metadata(self) -> dict[str, str | int]:
        """Flat metadata stored next to the vector."""
        meta: dict[str, str | int] = {"namespace": self.namespace, "text": self.text}
        if self.sequence_index is not None:
            meta["sequence_index"] = self.sequence_index
        if self.document_id is not None:
            meta["document_id"] = self.document_id
        return meta


class IngestionStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"


class IngestionReport(BaseModel):
    """Outcome of one document ingestion.

    ``failed_indices`` is empty for a complete ingestion; for a partial one it
    lists the ``sequence_index`` of every chunk that is *not* in the index.
    """

    document_id: str
    namespace: str
    status: IngestionStatus = IngestionStatus.COMPLETE
    chunk_count: int = 0
    upserted_ids: list[str] = Field(default_factory=list)
    failed_indices: list[int] = Field(default_factory=list)

    @property
    def upserted_count(self) -> int:
        return len(self.upserted_ids)
