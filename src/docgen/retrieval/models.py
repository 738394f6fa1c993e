"""Domain models for retrieval results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RetrievalResult(BaseModel):
    """A single stored chunk matched by a nearest-neighbour query.

    Attributes
    ----------
    record_id:
        The id the record was upserted under.
    score:
        Similarity score; higher is more similar (cosine similarity for the
        bundled backends, so an exact match scores ``1.0``).
    text:
        The chunk text stored alongside the vector.
    metadata:
        Remaining stored metadata (``sequence_index``, ``document_id``, …).
    """

    record_id: str
    score: float
    text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.record_id} {self.score:.3f}] {self.text[:120]}…"
