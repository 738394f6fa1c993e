"""Unit tests for prompt assembly and the use-case model."""

from __future__ import annotations

import pytest

from docgen.generation.models import DOCX_MEDIA_TYPE, XLSX_MEDIA_TYPE, UseCase
from docgen.generation.prompts import (
    CHECKSHEET_INSTRUCTION,
    CONTEXT_SEPARATOR,
    WORK_INSTRUCTION_INSTRUCTION,
    PromptBuilder,
)


class TestPromptBuilder:
    def test_deterministic(self) -> None:
        builder = PromptBuilder()
        args = (UseCase.CHECKSHEET, ["a", "b"], "metric units")
        assert builder.build(*args) == builder.build(*args)

    def test_context_in_rank_order(self) -> None:
        prompt = PromptBuilder().build("checksheet", ["first passage", "second passage"])
        assert prompt.index("[1] first passage") < prompt.index("[2] second passage")

    def test_template_selected_by_use_case(self) -> None:
        builder = PromptBuilder()
        assert CHECKSHEET_INSTRUCTION.strip() in builder.build("checksheet", ["x"])
        assert WORK_INSTRUCTION_INSTRUCTION.strip() in builder.build("work_instruction", ["x"])

    def test_context_precedes_template(self) -> None:
        prompt = PromptBuilder().build("checksheet", ["passage"])
        assert prompt.startswith("Reference material:\n[1] passage")

    def test_extra_instruction_appended(self) -> None:
        prompt = PromptBuilder().build("work_instruction", ["x"], "  Use SI units.  ")
        assert prompt.endswith("Additional instructions:\nUse SI units.")

    def test_blank_instruction_omitted(self) -> None:
        assert "Additional instructions" not in PromptBuilder().build("checksheet", ["x"], "   ")

    def test_no_context(self) -> None:
        assert "Reference material:\n(none)" in PromptBuilder().build("checksheet", [])

    def test_unknown_use_case(self) -> None:
        with pytest.raises(ValueError, match="Unknown use case"):
            PromptBuilder().build("report", ["x"])

    def test_build_from_request_matches_build(self) -> None:
        builder = PromptBuilder()
        request = builder.build_request("workinstruction", ["ctx"], "be brief")
        assert request.use_case is UseCase.WORK_INSTRUCTION
        assert builder.build_from_request(request) == builder.build(
            UseCase.WORK_INSTRUCTION, ["ctx"], "be brief"
        )


class TestContextBudget:
    def test_drops_lowest_ranked(self) -> None:
        sep = len(CONTEXT_SEPARATOR)
        builder = PromptBuilder(max_context_chars=10 + sep + 10)
        assert builder.fit_context(["a" * 10, "b" * 10, "c" * 10]) == ["a" * 10, "b" * 10]

    def test_stops_at_first_overflow(self) -> None:
        # a short passage after an oversized one is still dropped
        builder = PromptBuilder(max_context_chars=20)
        assert builder.fit_context(["a" * 5, "b" * 50, "c"]) == ["a" * 5]

    def test_oversized_first_passage_leaves_no_context(self) -> None:
        builder = PromptBuilder(max_context_chars=5)
        assert "(none)" in builder.build("checksheet", ["too long for the budget"])

    def test_budget_disabled(self) -> None:
        texts = ["x" * 100_000, "y"]
        assert PromptBuilder(max_context_chars=None).fit_context(texts) == texts

    def test_negative_budget_rejected(self) -> None:
        with pytest.raises(ValueError):
            PromptBuilder(max_context_chars=-1)


class TestUseCase:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("checksheet", UseCase.CHECKSHEET),
            ("CheckSheet", UseCase.CHECKSHEET),
            ("work_instruction", UseCase.WORK_INSTRUCTION),
            ("work-instruction", UseCase.WORK_INSTRUCTION),
            ("workinstruction", UseCase.WORK_INSTRUCTION),
            (UseCase.CHECKSHEET, UseCase.CHECKSHEET),
        ],
    )
    def test_parse(self, raw: str, expected: UseCase) -> None:
        assert UseCase.parse(raw) is expected

    def test_media_types(self) -> None:
        assert UseCase.CHECKSHEET.media_type == XLSX_MEDIA_TYPE
        assert UseCase.CHECKSHEET.file_extension == ".xlsx"
        assert UseCase.WORK_INSTRUCTION.media_type == DOCX_MEDIA_TYPE
        assert UseCase.WORK_INSTRUCTION.file_extension == ".docx"
