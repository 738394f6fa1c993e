"""Shared configuration loaded from environment / ``.env``."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    log_level: str = "INFO"

    # Embedding
    embedding_provider: str = Field(
        default="huggingface",
        description="Embedding backend: 'huggingface' (local sentence-transformers) or 'bedrock'",
    )
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    bedrock_embedding_model_id: str = "amazon.titan-embed-text-v2:0"

    # LLM
    llm_provider: str = Field(default="openai", description="Chat backend: 'openai' or 'bedrock'")
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud, "
            "e.g. 'http://llm-server.internal/v1' for a self-hosted vLLM."
        ),
    )
    bedrock_llm_model_id: str = "us.anthropic.claude-3-5-haiku-20241022-v1:0"
    llm_max_tokens: int = Field(default=1000, gt=0, description="Response-size ceiling per generation")
    llm_temperature: float = 0.0

    aws_region: str = "us-east-1"

    # Vector index
    vector_backend: str = Field(default="chroma", description="'chroma' or 'memory'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "docgen"
    default_namespace: str = "ns-1"

    # Chunking / embedding
    chunk_max_chars: int | None = Field(
        default=1000,
        description="Max characters per chunk before embedding; unset to disable the guard",
    )
    chunk_overlap: int = 0
    embed_max_workers: int = Field(default=1, ge=1)

    # Retrieval / prompting
    retrieval_k: int = Field(default=5, ge=1)
    retrieval_score_threshold: float = 0.0
    prompt_max_context_chars: int | None = Field(
        default=12000,
        description="Context budget for prompt assembly; lowest-ranked passages are dropped first",
    )

    # Caller-side retry (tenacity)
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_initial_wait: float = 1.0
    retry_max_wait: float = 30.0
    retry_jitter: float = 1.0

    allow_partial_ingestion: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import `settings` wherever needed.
settings = Settings()


def configure_logging(level: str | int | None = None) -> None:
    """Install a root handler with the project's log format."""
    level = level or settings.log_level
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
