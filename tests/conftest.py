"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import io
import re

import pytest
from langchain_core.embeddings import Embeddings

from docgen.ingestion.embedder import EmbeddingGenerator
from docgen.pipeline import RetryPolicy
from docgen.retrieval.memory_store import InMemoryVectorIndex

_WORD = re.compile(r"[a-z0-9]+")


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class KeywordEmbeddings(Embeddings):
    """Deterministic bag-of-words embeddings hashed into a fixed dimension.

    Texts sharing words land close together, identical texts embed
    identically, which is enough for ranking assertions without a real model.
    """

    def __init__(self, dim: int = 64) -> None:
        self.dim = dim
        self.calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for word in _WORD.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dim
            vec[bucket] += 1.0
        return vec

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return self._vector(text)


class FlakyEmbeddings(KeywordEmbeddings):
    """Raises ``ConnectionError`` for texts containing *trigger*, *failures* times."""

    def __init__(self, trigger: str, failures: int = 1, dim: int = 64) -> None:
        super().__init__(dim)
        self.trigger = trigger
        self.remaining_failures = failures

    def embed_query(self, text: str) -> list[float]:
        if self.trigger in text and self.remaining_failures > 0:
            self.remaining_failures -= 1
            self.calls.append(text)
            raise ConnectionError("embedding service unavailable")
        return super().embed_query(text)


# ── Document builders ───────────────────────────────────────────────────


def build_docx(paragraphs: list[str]) -> bytes:
    import docx

    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def build_pdf(text: str) -> bytes:
    """Single-page PDF drawing *text* in Helvetica."""
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_at
    return bytes(out)


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture()
def embedder(embeddings: KeywordEmbeddings) -> EmbeddingGenerator:
    return EmbeddingGenerator(embeddings)


@pytest.fixture()
def memory_index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex("test-index")


@pytest.fixture()
def fast_retry() -> RetryPolicy:
    """Three attempts, no sleeping."""
    return RetryPolicy(max_attempts=3, initial_wait=0, max_wait=0, jitter=0)
