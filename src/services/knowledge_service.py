"""
Corpus mutations: update-answer-by-question and context chunk ingestion.

Each call is a full load -> mutate -> save cycle. There is no locking, so two
concurrent calls can lose one update; callers needing atomic multi-record
changes must serialize them. Loads here are strict: an unreadable or
malformed corpus raises StoreReadError instead of being saved over.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Union

from models.knowledge import ContextRecord, Provenance, QARecord
from repositories.knowledge_store import KnowledgeStore
from services.bedrock_service import EmbeddingService
from services.hygiene import (
    is_context_row,
    normalize_record,
    normalize_text,
    parse_embedding,
    question_key,
)
from utils.logging_config import get_logger
from utils.validators import ensure_present

logger = get_logger(__name__)

MIN_CONTEXT_CHARS = 40
CONTEXT_ORIGIN = "context-upload"

ContextChunk = Union[str, dict]


def _is_qa_row(row: Any) -> bool:
    return isinstance(row, dict) and not is_context_row(row)


class KnowledgeService:
    """Write-side operations on the shared corpus."""

    def __init__(self, store: KnowledgeStore, embedder: Optional[EmbeddingService] = None) -> None:
        self.store = store
        self.embedder = embedder

    def _embed(self, text: str) -> List[float]:
        return self.embedder.embed(text) if self.embedder else []

    def upsert_answer(
        self,
        question: str,
        answer: str,
        source: Optional[str] = None,
        embedding: Optional[Sequence[float]] = None,
    ) -> QARecord:
        """Replace the answer for a question, or append a new QA record."""
        question = normalize_text(question)
        answer = normalize_text(answer)
        ensure_present(question, "question")
        ensure_present(answer, "answer")
        source = normalize_text(source) or None

        vector = parse_embedding(embedding) if embedding is not None else self._embed(f"{question}\n{answer}")
        rows = self.store.load(strict=True)
        key = question_key(question)

        for row in rows:
            if _is_qa_row(row) and question_key(row.get("question")) == key:
                row["answer"] = answer
                row["embedding"] = vector
                if source:
                    row["source"] = source
                updated = normalize_record(row, organization_name=None)
                logger.info("Updated KB entry", extra={"question": question[:80]})
                break
        else:
            updated = QARecord(
                question=question,
                answer=answer,
                embedding=vector,
                provenance=Provenance(source=source or "manual"),
            )
            rows.append(updated.to_document())
            logger.info("Added new KB entry", extra={"question": question[:80]})

        self.store.save(rows)
        return updated

    def add_context_chunks(self, chunks: Iterable[ContextChunk], base_source: str) -> int:
        """
        Embed and append free-text context chunks.

        A chunk is a string or a ``{"content", "source"}`` dict. Chunks under
        MIN_CONTEXT_CHARS are skipped as extraction noise.
        """
        new_records: List[ContextRecord] = []
        for chunk in chunks:
            if isinstance(chunk, dict):
                content = normalize_text(chunk.get("content"))
                source = normalize_text(chunk.get("source")) or base_source
            else:
                content = normalize_text(chunk)
                source = base_source
            if len(content) < MIN_CONTEXT_CHARS:
                continue
            new_records.append(
                ContextRecord(
                    content=content,
                    embedding=self._embed(content),
                    provenance=Provenance(source=source, origin=CONTEXT_ORIGIN),
                )
            )

        if not new_records:
            logger.info("No usable context chunks", extra={"source": base_source})
            return 0

        rows = self.store.load(strict=True)
        rows.extend(record.to_document() for record in new_records)
        self.store.save(rows)
        logger.info(
            "Context chunks added",
            extra={"added": len(new_records), "total": len(rows), "source": base_source},
        )
        return len(new_records)
