"""Text chunking: paragraph segments to bounded :class:`TextChunk` units."""

from __future__ import annotations

import logging
from typing import Iterable

from langchain_text_splitters import RecursiveCharacterTextSplitter

from docgen.ingestion.models import TextChunk

logger = logging.getLogger(__name__)

# Paragraph boundaries are already applied by the parser, so the guard only
# splits *within* a paragraph.
INTRA_PARAGRAPH_SEPARATORS = ["\n", ". ", " ", ""]


class Chunker:
    """Filter blank segments and enforce a per-chunk character budget.

    Parameters
    ----------
    max_chars:
        Maximum characters per chunk.  Longer segments are split with a
        recursive character splitter.  ``None`` disables the guard, leaving
        one chunk per non-blank segment.
    chunk_overlap:
        Characters shared by consecutive pieces of a split segment.
    """

    def __init__(self, max_chars: int | None = 1000, chunk_overlap: int = 0) -> None:
        if max_chars is not None:
            if max_chars <= 0:
                raise ValueError(f"max_chars must be positive, got {max_chars}")
            if chunk_overlap >= max_chars:
                raise ValueError(
                    f"chunk_overlap ({chunk_overlap}) must be < max_chars ({max_chars})"
                )
        self.max_chars = max_chars
        self.chunk_overlap = chunk_overlap
        self._splitter = (
            RecursiveCharacterTextSplitter(
                chunk_size=max_chars,
                chunk_overlap=chunk_overlap,
                length_function=len,
                separators=INTRA_PARAGRAPH_SEPARATORS,
            )
            if max_chars is not None
            else None
        )

    def chunk(self, segments: Iterable[str]) -> list[TextChunk]:
        """Return ordered chunks with consecutive ``sequence_index`` values.

        Parameters
        ----------
        segments:
            Paragraph-level text, in document order.

        Returns
        -------
        list[TextChunk]
            Never contains a chunk that is blank after trimming.
        """
        chunks: list[TextChunk] = []
        for segment in segments:
            for piece in self._split(segment):
                text = piece.strip()
                if text:
                    chunks.append(TextChunk(sequence_index=len(chunks), text=text))
        logger.info("Produced %d chunks", len(chunks))
        return chunks

    def _split(self, segment: str) -> list[str]:
        if not segment.strip():
            return []
        if self._splitter is None or len(segment.strip()) <= self.max_chars:
            return [segment]
        return self._splitter.split_text(segment)
