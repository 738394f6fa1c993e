"""Command-line entry point.

Examples
--------
    docgen ingest manual.pdf drawing.docx --namespace line-4
    docgen generate --use-case checksheet --query "torque checks" \\
        --namespace line-4 --output checksheet.xlsx
    docgen generate --use-case work_instruction --query "pump overhaul" \\
        --source overhaul.pdf          # ingest + generate in one process
    docgen health
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from docgen.config import Settings, configure_logging, settings as default_settings
from docgen.errors import DocGenError, IndexUnavailableError
from docgen.generation.models import UseCase
from docgen.ingestion.embedder import get_embedding_model
from docgen.ingestion.models import DocumentFormat
from docgen.pipeline import GenerationPipeline, IngestionPipeline
from docgen.retrieval import build_vector_index

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docgen",
        description="Index source documents and generate checksheets / work instructions.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Parse, embed and index documents")
    ingest.add_argument("paths", nargs="+", type=Path, help="Documents to ingest")
    ingest.add_argument("--namespace", default=None, help="Target namespace")
    ingest.add_argument(
        "--format",
        dest="declared_format",
        choices=[f.value for f in DocumentFormat],
        default=None,
        help="Format hint (extraction order is fixed regardless)",
    )

    generate = sub.add_parser("generate", help="Generate an artifact from indexed context")
    generate.add_argument(
        "--use-case",
        required=True,
        type=UseCase.parse,
        help="checksheet | work_instruction",
    )
    generate.add_argument("--query", required=True, help="Retrieval query")
    generate.add_argument("--namespace", default=None, help="Namespace to retrieve from")
    generate.add_argument("--instruction", default="", help="Extra instruction for the model")
    generate.add_argument("-k", type=int, default=None, help="Number of passages to retrieve")
    generate.add_argument(
        "--source",
        action="append",
        type=Path,
        default=[],
        help="Ingest this document first (repeatable)",
    )
    generate.add_argument("--output", type=Path, default=None, help="Output file path")

    sub.add_parser("health", help="Check vector index connectivity")
    return parser


def _ingest(args: argparse.Namespace, pipeline: IngestionPipeline) -> int:
    hint = DocumentFormat(args.declared_format) if args.declared_format else None
    exit_code = 0
    for path in args.paths:
        report = pipeline.ingest(
            path.read_bytes(), namespace=args.namespace, declared_format=hint, name=path.name
        )
        print(
            f"{path}: {report.status.value}: {report.upserted_count}/{report.chunk_count} "
            f"chunks in namespace '{report.namespace}'"
        )
        if report.failed_indices:
            print(f"  missing chunks: {report.failed_indices}")
            exit_code = 1
    return exit_code


def _generate(args: argparse.Namespace, config: Settings) -> int:
    use_case = args.use_case
    embeddings = get_embedding_model(config)
    index = build_vector_index(config)

    if args.source:
        ingestion = IngestionPipeline.from_settings(config, index=index, embeddings=embeddings)
        for path in args.source:
            ingestion.ingest(path.read_bytes(), namespace=args.namespace, name=path.name)

    pipeline = GenerationPipeline.from_settings(config, index=index, embeddings=embeddings)
    artifact = pipeline.generate(
        use_case, args.query, namespace=args.namespace, instruction=args.instruction, k=args.k
    )
    output = args.output or Path(f"{use_case.value}{artifact.file_extension}")
    output.write_bytes(artifact.content)
    print(f"Wrote {len(artifact.content)} bytes → {output}")
    return 0


def main(argv: Sequence[str] | None = None, config: Settings | None = None) -> int:
    config = config or default_settings
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or config.log_level)

    try:
        if args.command == "ingest":
            return _ingest(args, IngestionPipeline.from_settings(config))
        if args.command == "generate":
            return _generate(args, config)
        if args.command == "health":
            try:
                healthy = build_vector_index(config).health_check()
            except IndexUnavailableError as exc:
                logger.warning("%s", exc)
                healthy = False
            print("ok" if healthy else "unavailable")
            return 0 if healthy else 1
    except DocGenError as exc:
        logger.error("%s", exc)
        return 2
    return 1


if __name__ == "__main__":
    sys.exit(main())
