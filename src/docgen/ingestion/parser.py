"""Document parsing: ordered extractor strategies over raw bytes.

Extractors never raise for an unreadable document; they return an
:class:`ExtractionResult` and the parser walks the list until one succeeds.
The declared format is only a hint: the order is fixed because uploads are
routinely mislabelled.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from docgen.errors import UnsupportedFormatError
from docgen.ingestion.models import DocumentFormat, SourceDocument

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class ExtractionResult:
    """Structured outcome of a single extractor attempt."""

    extractor: str
    ok: bool
    text: str = ""
    error: str = ""

    @classmethod
    def success(cls, extractor: str, text: str) -> ExtractionResult:
        return cls(extractor=extractor, ok=True, text=text)

    @classmethod
    def failure(cls, extractor: str, error: str) -> ExtractionResult:
        return cls(extractor=extractor, ok=False, error=error)


class Extractor(ABC):
    """One format-specific text extraction strategy."""

    name: str = "extractor"
    format: DocumentFormat = DocumentFormat.OTHER

    @abstractmethod
    def extract(self, data: bytes) -> ExtractionResult:
        """Return the full plain text of *data*, or a failure result."""
        ...


class PdfExtractor(Extractor):
    """Extract page text with pypdf; pages are joined as paragraphs."""

    name = "pdf"
    format = DocumentFormat.PDF

    def extract(self, data: bytes) -> ExtractionResult:
        from pypdf import PdfReader

        # pypdf raises a wide range of errors on foreign input
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                return ExtractionResult.failure(self.name, "encrypted PDF")
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:  # noqa: BLE001
            return ExtractionResult.failure(self.name, f"{type(exc).__name__}: {exc}")
        return ExtractionResult.success(self.name, PARAGRAPH_SEPARATOR.join(pages))


class DocxExtractor(Extractor):
    """Extract body paragraphs and table cells with python-docx, in document order."""

    name = "docx"
    format = DocumentFormat.DOCX

    def extract(self, data: bytes) -> ExtractionResult:
        import docx
        from docx.oxml.ns import qn
        from docx.table import Table
        from docx.text.paragraph import Paragraph

        try:
            document = docx.Document(io.BytesIO(data))
            blocks: list[str] = []
            for child in document.element.body.iterchildren():
                if child.tag == qn("w:p"):
                    blocks.append(Paragraph(child, document).text)
                elif child.tag == qn("w:tbl"):
                    for row in Table(child, document).rows:
                        blocks.extend(cell.text for cell in row.cells)
        except Exception as exc:  # noqa: BLE001
            return ExtractionResult.failure(self.name, f"{type(exc).__name__}: {exc}")
        return ExtractionResult.success(self.name, PARAGRAPH_SEPARATOR.join(blocks))


def default_extractors() -> list[Extractor]:
    """PDF first, then flow documents."""
    return [PdfExtractor(), DocxExtractor()]


def split_paragraphs(text: str) -> list[str]:
    """Split on the paragraph separator, dropping empty pieces."""
    return [segment for segment in text.split(PARAGRAPH_SEPARATOR) if segment]


class DocumentParser:
    """Turn arbitrary document bytes into paragraph-level text segments.

    Parameters
    ----------
    extractors:
        Strategies in priority order.  Defaults to :func:`default_extractors`.
    """

    def __init__(self, extractors: Sequence[Extractor] | None = None) -> None:
        self.extractors = list(extractors) if extractors is not None else default_extractors()

    def parse(self, data: bytes, declared_format: DocumentFormat | None = None) -> list[str]:
        """Return paragraph segments from the first extractor that succeeds.

        Raises
        ------
        UnsupportedFormatError
            When every extractor fails.  Carries each extractor's reason.
        """
        result = self.extract(data)
        if declared_format is not None and declared_format is not DocumentFormat.OTHER:
            winner = self._format_of(result.extractor)
            if winner is not declared_format:
                logger.warning(
                    "Declared format %s but document parsed as %s",
                    declared_format.value,
                    winner.value,
                )
        segments = split_paragraphs(result.text)
        logger.info("Extracted %d segments via %s extractor", len(segments), result.extractor)
        return segments

    def parse_document(self, document: SourceDocument) -> list[str]:
        return self.parse(document.data, document.declared_format)

    def extract(self, data: bytes) -> ExtractionResult:
        """Run extractors in order and return the first successful result."""
        failures: dict[str, str] = {}
        for extractor in self.extractors:
            result = extractor.extract(data)
            if result.ok:
                return result
            logger.debug("Extractor %s rejected document: %s", extractor.name, result.error)
            failures[extractor.name] = result.error
        raise UnsupportedFormatError(
            f"Unsupported document format (tried: {', '.join(failures) or 'none'})",
            failures=failures,
        )

    def _format_of(self, extractor_name: str) -> DocumentFormat:
        for extractor in self.extractors:
            if extractor.name == extractor_name:
                return extractor.format
        return DocumentFormat.OTHER
