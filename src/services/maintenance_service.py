"""
Corpus maintenance: batch hygiene and exact deduplication.

Operator-triggered, never on the request path. Only QA rows are cleaned;
context chunks pass through untouched. The optional classifier pass is
advisory and fails open.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence, Union

from models.knowledge import QAPair, QARecord, SanitizeReport
from repositories.knowledge_store import KnowledgeStore
from services.classification_service import ClassifierService
from services.hygiene import (
    DEFAULT_ORGANIZATION,
    is_entity_specific,
    is_context_row,
    is_garbage_answer,
    normalize_record,
    question_key,
)
from utils.error_handling import NotFoundError
from utils.logging_config import get_logger

logger = get_logger(__name__)


class MaintenanceService:
    """Sanitize a whole corpus and optionally persist the result."""

    def __init__(
        self,
        store: Optional[KnowledgeStore] = None,
        classifier: Optional[ClassifierService] = None,
        organization_name: str = DEFAULT_ORGANIZATION,
        chunk_size: int = 50,
    ) -> None:
        self.store = store
        self.classifier = classifier
        self.organization_name = organization_name
        self.chunk_size = max(1, chunk_size)

    def sanitize(
        self,
        records: Any,
        min_answer_len: int = 8,
        use_classifier: bool = False,
        drop_entity_specific: bool = False,
    ) -> List[Union[QARecord, Dict[str, Any]]]:
        """
        Return the cleaned corpus: QA rows filtered and deduped, then the
        context rows exactly as stored.

        Raises NotFoundError for a non-list or empty corpus, which means an
        uninitialized store or operator error rather than "nothing to clean".
        """
        if not isinstance(records, list) or not records:
            raise NotFoundError("KB empty or missing")

        context_rows = [raw for raw in records if is_context_row(raw)]
        qa_records = [
            normalize_record(raw, self.organization_name)
            for raw in records
            if not is_context_row(raw)
        ]

        kept = [
            r
            for r in qa_records
            if r.question
            and not is_garbage_answer(r.answer, min_length=min_answer_len)
            and not (drop_entity_specific and is_entity_specific(r.question, r.answer))
        ]
        deduped = self._dedupe(kept)

        if use_classifier:
            deduped = self._classifier_pass(deduped)

        logger.info(
            "KB sanitized",
            extra={
                "before": len(records),
                "qa_before": len(qa_records),
                "qa_after": len(deduped),
                "context": len(context_rows),
            },
        )
        return deduped + context_rows

    def run(
        self,
        min_answer_len: int = 8,
        use_classifier: bool = False,
        drop_entity_specific: bool = False,
    ) -> SanitizeReport:
        """Load, sanitize and save the configured store."""
        if self.store is None:
            raise ValueError("MaintenanceService.run requires a store")

        start = time.perf_counter()
        raw = self.store.load()
        cleaned = self.sanitize(
            raw,
            min_answer_len=min_answer_len,
            use_classifier=use_classifier,
            drop_entity_specific=drop_entity_specific,
        )
        written = self.store.save(cleaned)

        report = SanitizeReport(
            before=len(raw),
            after=len(cleaned),
            removed=len(raw) - len(cleaned),
            write_mode=written,
        )
        logger.info(
            "Maintenance run complete",
            extra={
                **report.model_dump(),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return report

    def _dedupe(self, records: Sequence[QARecord]) -> List[QARecord]:
        seen = set()
        unique: List[QARecord] = []
        for record in records:
            key = (question_key(record.question), question_key(record.answer))
            if key in seen:
                continue
            seen.add(key)
            unique.append(record)
        return unique

    def _classifier_pass(self, records: List[QARecord]) -> List[QARecord]:
        if self.classifier is None:
            logger.warning("Classifier pass requested but no classifier configured")
            return records

        kept: List[QARecord] = []
        for i in range(0, len(records), self.chunk_size):
            chunk = records[i : i + self.chunk_size]
            pairs = [QAPair(question=r.question, answer=r.answer) for r in chunk]
            try:
                decisions = list(self.classifier.classify(pairs))
            except Exception as exc:
                logger.warning(
                    "Classifier chunk failed; keeping chunk",
                    extra={"chunk_start": i, "error": str(exc)},
                )
                kept.extend(chunk)
                continue
            if len(decisions) != len(chunk):
                logger.warning(
                    "Classifier returned wrong number of decisions; keeping chunk",
                    extra={"chunk_start": i, "chunk_size": len(chunk)},
                )
                kept.extend(chunk)
                continue
            kept.extend(record for record, keep in zip(chunk, decisions) if keep)
        return kept
