"""
Generation: prompt assembly, model invocation, and artifact synthesis.

Public API
----------
- :class:`PromptBuilder`: deterministic prompt assembly with a context budget.
- :class:`GenerativeClient`: one-shot chat-model call; :func:`get_chat_model` builds the model.
- :class:`DocumentSynthesizer`: model text to ``.xlsx`` / ``.docx`` bytes.
- :class:`UseCase`, :class:`GenerationRequest`, :class:`SynthesizedArtifact`: data models.
"""

from docgen.generation.llm import GenerativeClient, get_chat_model
from docgen.generation.models import GenerationRequest, SynthesizedArtifact, UseCase
from docgen.generation.prompts import PromptBuilder
from docgen.generation.synthesizer import (
    DocumentSynthesizer,
    checksheet_rows,
    instruction_paragraphs,
)

__all__ = [
    "DocumentSynthesizer",
    "GenerationRequest",
    "GenerativeClient",
    "PromptBuilder",
    "SynthesizedArtifact",
    "UseCase",
    "checksheet_rows",
    "get_chat_model",
    "instruction_paragraphs",
]
