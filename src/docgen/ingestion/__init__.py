"""
Ingestion: parsing, chunking, and embedding of source documents.

This package turns raw document bytes into :class:`EmbeddingRecord` objects
ready for the vector index.  It performs no persistence itself; the upsert
is owned by :class:`docgen.pipeline.IngestionPipeline`.
"""

from docgen.ingestion.chunker import Chunker
from docgen.ingestion.embedder import EmbeddingGenerator, get_embedding_model, make_record_id
from docgen.ingestion.models import (
    DocumentFormat,
    EmbeddingRecord,
    IngestionReport,
    IngestionStatus,
    SourceDocument,
    TextChunk,
)
from docgen.ingestion.parser import DocumentParser, ExtractionResult

__all__ = [
    "Chunker",
    "DocumentFormat",
    "DocumentParser",
    "EmbeddingGenerator",
    "EmbeddingRecord",
    "ExtractionResult",
    "IngestionReport",
    "IngestionStatus",
    "SourceDocument",
    "TextChunk",
    "get_embedding_model",
    "make_record_id",
]
