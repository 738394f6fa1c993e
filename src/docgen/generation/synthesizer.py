"""Structured-output synthesis: free model text to .xlsx / .docx bytes.

Parsing is deliberately literal:

* checksheet: one row per non-blank line, split on the *first* colon;
  a line without a colon becomes ``(line, "")``.
* work instruction: one paragraph per non-blank line, text unchanged.

Control characters that XML cannot carry are dropped before parsing, and
every checksheet cell is written as a string, so a value starting with
``=`` stays literal text instead of becoming a formula.

Malformed model output never prevents an artifact from being produced.
"""

from __future__ import annotations

import io
import logging

import docx
from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from docgen.generation.models import SynthesizedArtifact, UseCase

logger = logging.getLogger(__name__)

CHECKSHEET_HEADER = ("Field", "Value")
CHECKSHEET_SHEET_TITLE = "Checksheet"


def _lines(text: str) -> list[str]:
    """Split on line feeds only; a trailing carriage return from CRLF input is dropped."""
    text = ILLEGAL_CHARACTERS_RE.sub("", text)
    return [line.rstrip("\r") for line in text.split("\n")]


def checksheet_rows(generated_text: str) -> list[tuple[str, str]]:
    """Parse ``Field: Value`` lines into rows, header included."""
    rows: list[tuple[str, str]] = [CHECKSHEET_HEADER]
    for line in _lines(generated_text):
        if not line.strip():
            continue
        field, sep, value = line.partition(":")
        rows.append((field.strip(), value.strip() if sep else ""))
    return rows


def instruction_paragraphs(generated_text: str) -> list[str]:
    """Each non-blank line, in order."""
    return [line for line in _lines(generated_text) if line.strip()]


class DocumentSynthesizer:
    """Render generated text as the artifact a use case calls for."""

    def synthesize(self, use_case: UseCase | str, generated_text: str) -> bytes:
        use_case = UseCase.parse(use_case)
        text = generated_text or ""
        if use_case is UseCase.CHECKSHEET:
            content = self._checksheet_xlsx(text)
        else:
            content = self._work_instruction_docx(text)
        logger.info("Synthesized %s artifact (%d bytes)", use_case.value, len(content))
        return content

    def build(self, use_case: UseCase | str, generated_text: str) -> SynthesizedArtifact:
        use_case = UseCase.parse(use_case)
        return SynthesizedArtifact(
            content=self.synthesize(use_case, generated_text),
            use_case=use_case,
        )

    # -- renderers -------------------------------------------------------------

    @staticmethod
    def _checksheet_xlsx(text: str) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = CHECKSHEET_SHEET_TITLE
        for row in checksheet_rows(text):
            sheet.append(row)
            for cell in sheet[sheet.max_row]:
                cell.data_type = "s"
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def _work_instruction_docx(text: str) -> bytes:
        document = docx.Document()
        for line in instruction_paragraphs(text):
            document.add_paragraph(line)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()
