"""LLM initialisation and invocation: single place to swap providers.

Supports two providers:

1. **OpenAI** (default): set ``OPENAI_API_KEY``.  Setting ``LLM_BASE_URL``
   points the client at any OpenAI-compatible endpoint (e.g. a vLLM server).
2. **Bedrock**: set ``LLM_PROVIDER=bedrock``; Claude is invoked through
   ``langchain_aws.ChatBedrockConverse`` in ``AWS_REGION``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage

from docgen.config import Settings, settings as default_settings
from docgen.errors import GenerationError

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)


def get_chat_model(config: Settings | None = None) -> BaseChatModel:
    """Return the configured chat model with the response-size ceiling applied.

    When ``llm_base_url`` is set the OpenAI client is pointed at that
    endpoint; a dummy API key (``"EMPTY"``) is used because self-hosted
    servers usually do not require authentication.
    """
    config = config or default_settings
    provider = config.llm_provider.lower()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        kwargs: dict[str, Any] = {
            "model": config.llm_model_name,
            "temperature": config.llm_temperature,
            "max_tokens": config.llm_max_tokens,
        }
        if config.llm_base_url:
            logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
            kwargs["base_url"] = config.llm_base_url
            # self-hosted servers don't need a real key; the client requires one
            kwargs["api_key"] = config.openai_api_key or "EMPTY"
        else:
            kwargs["api_key"] = config.openai_api_key
        return ChatOpenAI(**kwargs)

    if provider == "bedrock":
        from langchain_aws import ChatBedrockConverse

        return ChatBedrockConverse(
            model=config.bedrock_llm_model_id,
            region_name=config.aws_region,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
        )

    raise ValueError(f"Unsupported llm_provider: {config.llm_provider!r}")


def build_messages(prompt: str) -> list[HumanMessage]:
    """A single user-role message carrying one text content block."""
    return [HumanMessage(content=[{"type": "text", "text": prompt}])]


def extract_text(content: Any) -> str:
    """Pull the generated text out of a chat response's ``content``.

    Plain-string content is returned as-is.  For a list of content blocks
    only the first element is consumed and it must be a text block.

    Raises
    ------
    GenerationError
        When no text content is present.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list) and content:
        first = content[0]
        if isinstance(first, str):
            return first
        if isinstance(first, dict) and first.get("type") == "text" and "text" in first:
            return str(first["text"])
    raise GenerationError("Model response is missing text content")


class GenerativeClient:
    """One-shot text generation against an injected chat model.

    Parameters
    ----------
    model:
        A LangChain chat model, already configured with its token ceiling
        (see :func:`get_chat_model`).
    """

    def __init__(self, model: BaseChatModel) -> None:
        self._model = model

    def generate(self, prompt: str, *, use_case: str | None = None) -> str:
        """Invoke the model once and return its text.

        Raises
        ------
        GenerationError
            On transport / service failure or a response without text.
            No partial text is ever returned.
        """
        # provider SDKs raise their own transport error types
        try:
            response = self._model.invoke(build_messages(prompt))
        except Exception as exc:  # noqa: BLE001
            raise GenerationError(f"Model invocation failed: {exc}", use_case=use_case) from exc

        try:
            text = extract_text(getattr(response, "content", None))
        except GenerationError as exc:
            exc.use_case = use_case
            raise
        logger.info("Generated %d chars (prompt %d chars)", len(text), len(prompt))
        return text
