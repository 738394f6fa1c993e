"""
Retrieval: vector index backends and nearest-neighbour lookup.

This module wraps the vector store behind a clean interface so that the
pipelines never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`Retriever`: embed a query and return the top-*k* chunks.
- :class:`VectorIndexBase`: abstract backend (subclass for Pinecone, etc.).
- :class:`InMemoryVectorIndex`: in-process backend.
- :class:`ChromaVectorIndex`: Chroma backend.
- :class:`RetrievalResult`: data model.
- :func:`build_vector_index`: backend factory driven by settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docgen.retrieval.base import VectorIndexBase
from docgen.retrieval.memory_store import InMemoryVectorIndex
from docgen.retrieval.models import RetrievalResult
from docgen.retrieval.retriever import Retriever

if TYPE_CHECKING:
    from docgen.config import Settings

__all__ = [
    "ChromaVectorIndex",
    "InMemoryVectorIndex",
    "RetrievalResult",
    "Retriever",
    "VectorIndexBase",
    "build_vector_index",
]


def build_vector_index(config: Settings | None = None) -> VectorIndexBase:
    """Return the backend named by ``config.vector_backend``."""
    from docgen.config import settings as default_settings

    config = config or default_settings
    backend = config.vector_backend.lower()
    if backend == "memory":
        return InMemoryVectorIndex(config.chroma_collection)
    if backend == "chroma":
        from docgen.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex.from_settings(config)
    raise ValueError(f"Unsupported vector_backend: {config.vector_backend!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from docgen.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
