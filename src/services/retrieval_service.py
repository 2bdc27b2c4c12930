"""
Retrieval engine ranking knowledge-base records against a query.

Designed to degrade rather than fail:
- a missing, unreachable or malformed corpus yields empty results
- records or queries without embeddings fall back to lexical-only scoring
- results are deterministic for an unchanged corpus (stable sort)
"""

from __future__ import annotations

import time
from typing import Iterable, List, Optional, Sequence

from models.knowledge import (
    KnowledgeRecord,
    RecordKind,
    RetrievalQuery,
    RetrievalResult,
    ScoredCandidate,
)
from repositories.knowledge_store import KnowledgeStore
from services.hygiene import (
    DEFAULT_ORGANIZATION,
    clean_records,
    normalize_text,
    parse_embedding,
)
from services.scoring import HybridScorer
from utils.logging_config import get_logger

logger = get_logger(__name__)


class RetrievalService:
    """Load, clean, score and rank the corpus for one query at a time."""

    def __init__(
        self,
        store: KnowledgeStore,
        scorer: Optional[HybridScorer] = None,
        organization_name: str = DEFAULT_ORGANIZATION,
    ) -> None:
        self.store = store
        self.scorer = scorer or HybridScorer()
        self.organization_name = organization_name

    def retrieve(
        self,
        query_embedding: Optional[Sequence[float]],
        query_text: Optional[str] = None,
        qa_limit: int = 5,
        context_limit: int = 5,
    ) -> RetrievalResult:
        """Top QA matches and top context matches for the query."""
        query = RetrievalQuery(
            embedding=parse_embedding(query_embedding),
            text=normalize_text(query_text),
            qa_limit=max(0, qa_limit),
            context_limit=max(0, context_limit),
        )
        return self.run(query)

    def run(self, query: RetrievalQuery) -> RetrievalResult:
        start = time.perf_counter()
        if query.qa_limit == 0 and query.context_limit == 0:
            return RetrievalResult()

        raw = self.store.load()
        if not raw:
            logger.warning("KB empty or invalid")
            return RetrievalResult()

        records = clean_records(raw, self.organization_name)
        qa_records = [r for r in records if r.kind == RecordKind.QA.value]
        context_records = [r for r in records if r.kind == RecordKind.CONTEXT.value]

        result = RetrievalResult(
            qa_matches=self._rank(query, qa_records, query.qa_limit),
            context_matches=self._rank(query, context_records, query.context_limit),
        )

        logger.info(
            "Retrieval complete",
            extra={
                "qa_candidates": len(qa_records),
                "context_candidates": len(context_records),
                "top_qa": _score_triples(result.qa_matches),
                "top_context": _score_triples(result.context_matches),
                "lexical_only": not query.embedding,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return result

    def retrieve_matches(
        self,
        query_embedding: Optional[Sequence[float]],
        limit: int = 5,
        query_text: Optional[str] = None,
    ) -> List[ScoredCandidate]:
        """Legacy QA-only entry point; never falls back to context chunks."""
        return self.retrieve(query_embedding, query_text, qa_limit=limit, context_limit=0).qa_matches

    def _rank(
        self, query: RetrievalQuery, records: Iterable[KnowledgeRecord], limit: int
    ) -> List[ScoredCandidate]:
        if limit <= 0:
            return []
        scored = [self.scorer.score(query, record) for record in records]
        # sorted() is stable, so ties keep corpus order.
        scored = sorted(scored, key=lambda c: c.score, reverse=True)
        return scored[:limit]


def select_candidates(
    matches: Sequence[ScoredCandidate], min_score: float = 0.32
) -> List[ScoredCandidate]:
    """
    Pick the answers a chat or report caller should synthesize from.

    Matches at or above ``min_score`` are preferred; if none qualify, all
    matches with an answer are used. Duplicates by answer text are dropped,
    first occurrence wins.
    """
    answered = [m for m in matches if normalize_text(m.answer)]
    good = [m for m in answered if m.score >= min_score]
    if not good and answered:
        logger.info("No matches >= min score; falling back to top matches")
        good = answered

    seen = set()
    deduped: List[ScoredCandidate] = []
    for match in good:
        key = normalize_text(match.answer).lower()
        if key in seen:
            continue
        seen.add(key)
        deduped.append(match)
    return deduped


def _score_triples(matches: Sequence[ScoredCandidate]) -> List[str]:
    return [
        f"{m.score:.3f}/{m.semantic_score:.3f}/{m.lexical_score:.3f}" for m in matches
    ]
