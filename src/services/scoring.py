"""
Hybrid semantic + lexical scorer.

Semantic similarity carries paraphrase matches; the lexical term keeps exact
keyword, acronym and number matches from being under-ranked, and is the only
signal for records that never received an embedding.
"""

from __future__ import annotations

from dataclasses import dataclass

from models.knowledge import KnowledgeRecord, RecordKind, RetrievalQuery, ScoredCandidate
from services.hygiene import expand_abbreviations, normalize_text
from services.similarity import cosine_similarity, lexical_similarity


def scoring_text(text: str) -> str:
    """Form both sides of the lexical comparison are reduced to."""
    return expand_abbreviations(normalize_text(text)).lower()


@dataclass
class HybridScorer:
    """Score one normalized record against a query."""

    semantic_weight: float = 0.7
    lexical_weight: float = 0.3

    def lexical_score(self, query_text: str, record: KnowledgeRecord) -> float:
        """
        String similarity between the query and the record's searchable text.

        For QA records the question alone is also compared, so a query that
        restates the question verbatim is not diluted by a long answer.
        """
        query = scoring_text(query_text)
        if not query:
            return 0.0

        score = lexical_similarity(query, scoring_text(record.searchable_text))
        if record.kind == RecordKind.QA.value and record.question:
            score = max(score, lexical_similarity(query, scoring_text(record.question)))
        return score

    def score(self, query: RetrievalQuery, record: KnowledgeRecord) -> ScoredCandidate:
        lexical = self.lexical_score(query.text, record)

        if query.embedding and record.embedding:
            semantic = cosine_similarity(query.embedding, record.embedding)
            final = self.semantic_weight * semantic + self.lexical_weight * lexical
        else:
            semantic = 0.0
            final = lexical

        return ScoredCandidate(
            record=record,
            semantic_score=semantic,
            lexical_score=lexical,
            score=final,
        )
