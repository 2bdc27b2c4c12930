"""Knowledge base models."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_SOURCE = "Unknown source"


class RecordKind(str, Enum):
    """Record kinds stored in the corpus."""

    QA = "qa"
    CONTEXT = "context"


class Provenance(BaseModel):
    """Where a record came from; used for citations, never for ranking."""

    model_config = ConfigDict(populate_by_name=True)

    source: Optional[str] = None
    source_file: Optional[str] = Field(default=None, alias="sourceFile")
    doc: Optional[str] = None
    origin: Optional[str] = None

    def label(self) -> str:
        """First non-empty provenance field, for citation display."""
        for value in (self.source, self.origin, self.source_file, self.doc):
            if value:
                return value
        return UNKNOWN_SOURCE

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class _RecordBase(BaseModel):
    embedding: List[float] = Field(default_factory=list)
    provenance: Provenance = Field(default_factory=Provenance)
    # Unknown legacy fields, preserved verbatim across load/save.
    extra: Dict[str, Any] = Field(default_factory=dict)

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    def _document(self, **fields: Any) -> Dict[str, Any]:
        doc: Dict[str, Any] = dict(self.extra)
        doc.update(fields)
        doc["embedding"] = list(self.embedding)
        doc.update(self.provenance.to_document())
        return doc


class QARecord(_RecordBase):
    """A question paired with a reusable answer."""

    kind: Literal["qa"] = "qa"
    question: str = ""
    answer: str = ""

    @property
    def searchable_text(self) -> str:
        return f"{self.question} {self.answer}".strip()

    def to_document(self) -> Dict[str, Any]:
        """Render back to the flat stored JSON shape."""
        return self._document(kind=self.kind, question=self.question, answer=self.answer)


class ContextRecord(_RecordBase):
    """Free-text excerpt from a source document, with no question attached."""

    kind: Literal["context"] = "context"
    content: str = ""
    question: str = ""
    answer: str = ""

    @property
    def searchable_text(self) -> str:
        return self.content or self.answer or self.question

    def to_document(self) -> Dict[str, Any]:
        doc = self._document(kind=self.kind, content=self.content)
        if self.question:
            doc["question"] = self.question
        if self.answer:
            doc["answer"] = self.answer
        return doc


KnowledgeRecord = Annotated[Union[QARecord, ContextRecord], Field(discriminator="kind")]


class ScoredCandidate(BaseModel):
    """A record ranked against one query."""

    record: KnowledgeRecord
    semantic_score: float = 0.0
    lexical_score: float = 0.0
    score: float = 0.0

    @property
    def kind(self) -> str:
        return self.record.kind

    @property
    def question(self) -> str:
        return self.record.question

    @property
    def answer(self) -> str:
        return self.record.answer

    @property
    def text(self) -> str:
        return self.record.searchable_text

    @property
    def source(self) -> str:
        return self.record.provenance.label()

    def summary(self) -> Dict[str, Any]:
        """Caller-facing view without the embedding."""
        return {
            "kind": self.kind,
            "question": self.question,
            "answer": self.answer,
            "text": self.text,
            "source": self.source,
            "score": self.score,
            "semantic_score": self.semantic_score,
            "lexical_score": self.lexical_score,
        }


class RetrievalQuery(BaseModel):
    """Query embedding, raw text and per-kind limits. Never persisted."""

    embedding: List[float] = Field(default_factory=list)
    text: str = ""
    qa_limit: int = Field(default=5, ge=0)
    context_limit: int = Field(default=5, ge=0)


class RetrievalResult(BaseModel):
    """Ranked matches for both record kinds."""

    qa_matches: List[ScoredCandidate] = Field(default_factory=list)
    context_matches: List[ScoredCandidate] = Field(default_factory=list)


class QAPair(BaseModel):
    """Question/answer pair sent to the advisory classifier."""

    question: str
    answer: str


class SanitizeReport(BaseModel):
    """Outcome of a maintenance run."""

    before: int
    after: int
    removed: int
    write_mode: bool
