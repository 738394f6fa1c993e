"""Domain models for the generation path."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class UseCase(str, Enum):
    """Kinds of artifact the generation pipeline can produce."""

    CHECKSHEET = "checksheet"
    WORK_INSTRUCTION = "work_instruction"

    @classmethod
    def parse(cls, value: str | UseCase) -> UseCase:
        """Accept enum members, values, and the legacy ``workinstruction`` spelling."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized == "workinstruction":
            normalized = cls.WORK_INSTRUCTION.value
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown use case {value!r}; expected one of: {choices}") from None

    @property
    def media_type(self) -> str:
        return XLSX_MEDIA_TYPE if self is UseCase.CHECKSHEET else DOCX_MEDIA_TYPE

    @property
    def file_extension(self) -> str:
        return ".xlsx" if self is UseCase.CHECKSHEET else ".docx"


class GenerationRequest(BaseModel):
    """Everything needed to build one prompt.  Not persisted."""

    use_case: UseCase
    context: list[str] = Field(default_factory=list)
    instruction: str = ""


class SynthesizedArtifact(BaseModel):
    """Final output file.  Owned by the caller once returned."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    use_case: UseCase

    @property
    def media_type(self) -> str:
        return self.use_case.media_type

    @property
    def file_extension(self) -> str:
        return self.use_case.file_extension
