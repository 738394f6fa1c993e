"""
docgen: retrieval-augmented generation of checksheets and work instructions.

Two one-way paths share a namespace-partitioned vector index:

    ingestion:  parse → chunk → embed → upsert
    generation: retrieve → prompt → generate → synthesize (.xlsx / .docx)

See :mod:`docgen.pipeline` for the orchestrators.
"""

__version__ = "0.1.0"
