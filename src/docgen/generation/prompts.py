"""Prompt templates and assembly for artifact generation.

Every use case has a dedicated instruction template in this module.
Keeping prompts in one place makes them easy to audit, version, and A/B
test.

The synthesizer parses the model output with plain line / colon splitting,
so the templates ask for exactly that shape.
"""

from __future__ import annotations

import logging
from typing import Sequence

from docgen.generation.models import GenerationRequest, UseCase

logger = logging.getLogger(__name__)

# ── 1. Checksheet ─────────────────────────────────────────────────────

CHECKSHEET_INSTRUCTION = """\
You are a quality engineer preparing an inspection checksheet.

Using only the reference material above, list every item an inspector must
verify.  Write exactly one item per line in the form:

Field: Value

Rules:
- "Field" names the characteristic or check; "Value" states the requirement,
  tolerance, or expected result.
- Do not use headings, bullets, numbering, or blank lines.
- If the material does not state a value, leave it empty after the colon.
"""

# ── 2. Work instruction ───────────────────────────────────────────────

WORK_INSTRUCTION_INSTRUCTION = """\
You are a manufacturing engineer writing a work instruction.

Using only the reference material above, write the procedure as a sequence
of steps an operator can follow.  Write exactly one step per line, in the
order the steps must be performed.

Rules:
- Start each line with "Step N:" followed by a single imperative sentence.
- Put safety warnings and required tools on their own lines before the step
  they apply to.
- Do not use markdown, headings, or blank lines.
"""

TEMPLATES: dict[UseCase, str] = {
    UseCase.CHECKSHEET: CHECKSHEET_INSTRUCTION,
    UseCase.WORK_INSTRUCTION: WORK_INSTRUCTION_INSTRUCTION,
}

CONTEXT_SEPARATOR = "\n\n---\n\n"


class PromptBuilder:
    """Deterministic prompt assembly from retrieved context.

    Parameters
    ----------
    max_context_chars:
        Character budget for retrieved passage text (separators
        included).  Passages are admitted in
        retrieval order (best first) and whole; once one would overflow the
        budget it and every lower-ranked passage are dropped.  ``None``
        disables the budget.
    """

    def __init__(self, max_context_chars: int | None = 12000) -> None:
        if max_context_chars is not None and max_context_chars < 0:
            raise ValueError(f"max_context_chars must be >= 0, got {max_context_chars}")
        self.max_context_chars = max_context_chars

    def build(
        self,
        use_case: UseCase | str,
        retrieved_texts: Sequence[str],
        extra_instruction: str = "",
    ) -> str:
        """Assemble the prompt for *use_case*.

        Parameters
        ----------
        use_case:
            Selects the instruction template.
        retrieved_texts:
            Context passages, in the order the retriever ranked them.
        extra_instruction:
            Caller-supplied guidance appended after the template.

        Returns
        -------
        str
            The full prompt text.
        """
        use_case = UseCase.parse(use_case)
        passages = self.fit_context(retrieved_texts)
        context = CONTEXT_SEPARATOR.join(
            f"[{i}] {text}" for i, text in enumerate(passages, 1)
        )
        parts = [f"Reference material:\n{context or '(none)'}", TEMPLATES[use_case].rstrip()]
        if extra_instruction.strip():
            parts.append(f"Additional instructions:\n{extra_instruction.strip()}")
        return "\n\n".join(parts)

    def build_request(
        self,
        use_case: UseCase | str,
        retrieved_texts: Sequence[str],
        extra_instruction: str = "",
    ) -> GenerationRequest:
        return GenerationRequest(
            use_case=UseCase.parse(use_case),
            context=list(retrieved_texts),
            instruction=extra_instruction,
        )

    def build_from_request(self, request: GenerationRequest) -> str:
        return self.build(request.use_case, request.context, request.instruction)

    def fit_context(self, retrieved_texts: Sequence[str]) -> list[str]:
        """Apply the drop-lowest-ranked budget to *retrieved_texts*."""
        if self.max_context_chars is None:
            return list(retrieved_texts)

        kept: list[str] = []
        used = 0
        for text in retrieved_texts:
            cost = len(text) + (len(CONTEXT_SEPARATOR) if kept else 0)
            if used + cost > self.max_context_chars:
                break
            kept.append(text)
            used += cost

        dropped = len(retrieved_texts) - len(kept)
        if dropped:
            logger.warning(
                "Prompt context budget (%d chars) exceeded; dropped %d lowest-ranked passage(s)",
                self.max_context_chars,
                dropped,
            )
        return kept
