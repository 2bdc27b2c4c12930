"""Pydantic models for knowledge records, queries and results."""

from models.knowledge import (  # noqa: F401
    ContextRecord,
    KnowledgeRecord,
    Provenance,
    QAPair,
    QARecord,
    RecordKind,
    RetrievalQuery,
    RetrievalResult,
    SanitizeReport,
    ScoredCandidate,
)
