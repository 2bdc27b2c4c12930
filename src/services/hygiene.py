"""
Record normalizer and hygiene filter.

The corpus is filled by heterogeneous document extraction, so stored rows are
noisy: stray whitespace, string-encoded embeddings, legacy vendor names and
placeholder answers such as "N/A" or "-". This module turns raw stored rows
into typed records and decides which of them are fit to be retrieved.

Each hard rule is its own predicate so it can be unit-tested in isolation;
``is_garbage_answer`` is the union of them.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional

from models.knowledge import ContextRecord, KnowledgeRecord, Provenance, QARecord, RecordKind
from utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ORGANIZATION = "Uprise Health"

_WHITESPACE_RE = re.compile(r"\s+")

_VENDOR_ALIAS_RE = re.compile(
    r"\b(H.?C\s*HealthWorks|HMC\s*HealthWorks|HMC\b|IBH\b|Claremont\s+Behavioral\s+Health)\b",
    re.IGNORECASE,
)

ABBREVIATIONS: Dict[str, str] = {
    "EAP": "employee assistance program",
    "BH": "behavioral health",
    "SUD": "substance use disorder",
    "LCSW": "licensed clinical social worker",
    "LMFT": "licensed marriage and family therapist",
    "LPC": "licensed professional counselor",
    "LSW": "licensed social worker",
    "CISD": "critical incident stress debriefing",
    "SLA": "service level agreement",
    "FTE": "full-time equivalent",
}

_ABBREVIATION_RE = re.compile(
    r"\b(" + "|".join(re.escape(abbr) for abbr in ABBREVIATIONS) + r")\b",
    re.IGNORECASE,
)

_PLACEHOLDER_RE = re.compile(
    r"^(n/a|na|n\s*a|n-?/-?a|none|null|nil|tbd|tba|not applicable|-+)$"
)
_SINGLE_LETTER_RE = re.compile(r"^[a-z]$")
_PUNCTUATION_ONLY_RE = re.compile(r"^[\W_]+$")

BOILERPLATE_MARKERS = ("lorem ipsum", "dummy", "test", "sample text")

_ENTITY_SPECIFIC_PATTERNS = [
    re.compile(r"\b(this|the)\s+(rfp|rfi|rfq|solicitation|tender|bid|contract)\b", re.I),
    re.compile(r"\bper\s+this\s+(rfp|rfi|rfq)\b", re.I),
    re.compile(r"\b(rfp|rfi|rfq)\s*#?\s*\d{3,}\b", re.I),
    re.compile(r"\bfor\s+the\s+(county|city|state|university|school district|board)\s+of\b", re.I),
    re.compile(r"\bthe\s+(county|city|state)\s+of\s+[a-z]+\b", re.I),
    re.compile(r"\bfor\s+[a-z]+\s+county\b", re.I),
    re.compile(r"\bfor\s+your\s+(employees|members|population|organization|company)\b", re.I),
    re.compile(r"\bwithin\s+your\s+(county|city|state|organization|company)\b", re.I),
]
_REGIONAL_PROVIDERS_RE = re.compile(
    r"we have [^.]*providers?[^.]*\b(northern|southern|eastern|western|region|county|city|state|area)\b",
    re.I,
)

_QUESTION_LEAD_INS_RE = re.compile(
    r"\b(how many|how much|what is|what are|number of|# of|count of|please describe|describe)\b"
)
_NON_ALPHANUMERIC_RE = re.compile(r"[^a-z0-9]+")

_PROVENANCE_KEYS = ("source", "sourceFile", "doc", "origin")
_KNOWN_KEYS = frozenset(
    ("kind", "question", "answer", "answers", "content", "embedding") + _PROVENANCE_KEYS
)


# ---------- text normalization ----------


def normalize_text(value: Any) -> str:
    """Collapse whitespace runs to one space and trim; None becomes ""."""
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value)).strip()


def question_key(question: Any) -> str:
    """Exact key used for dedupe and update-by-question."""
    return normalize_text(question).lower()


def fuzzy_question_key(question: Any) -> str:
    """Looser key so "How many psychiatrists?" and "number of psychiatrists" collide."""
    key = _QUESTION_LEAD_INS_RE.sub("", question_key(question))
    return _NON_ALPHANUMERIC_RE.sub(" ", key).strip()


def rewrite_vendor_aliases(
    text: str, organization_name: Optional[str] = DEFAULT_ORGANIZATION
) -> str:
    """Replace legacy organization names with the canonical one; None disables it."""
    if not text or not organization_name:
        return text
    return _VENDOR_ALIAS_RE.sub(organization_name, text)


def expand_abbreviations(text: str) -> str:
    """Spell out known domain abbreviations so both forms match the same content."""
    if not text:
        return text
    return _ABBREVIATION_RE.sub(lambda m: ABBREVIATIONS[m.group(1).upper()], text)


def parse_embedding(value: Any) -> List[float]:
    """
    Coerce a stored embedding to a list of floats.

    Accepts a list or its JSON string form. Anything unparseable yields an
    empty list, which only makes the record lexical-only. Non-numeric, NaN
    and infinite components become 0.0.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if hasattr(value, "tolist"):
        value = value.tolist()
    if not isinstance(value, (list, tuple)):
        return []

    vector: List[float] = []
    for item in value:
        try:
            number = float(item)
        except (TypeError, ValueError):
            number = 0.0
        if not math.isfinite(number):
            number = 0.0
        vector.append(number)
    return vector


# ---------- garbage-answer predicates ----------


def is_blank(text: str) -> bool:
    return not normalize_text(text)


def is_too_short(text: str) -> bool:
    return len(normalize_text(text)) < 2


def is_placeholder(text: str) -> bool:
    return bool(_PLACEHOLDER_RE.match(normalize_text(text).lower()))


def is_single_letter(text: str) -> bool:
    return bool(_SINGLE_LETTER_RE.match(normalize_text(text).lower()))


def has_boilerplate_marker(text: str) -> bool:
    lowered = normalize_text(text).lower()
    return any(marker in lowered for marker in BOILERPLATE_MARKERS)


def is_punctuation_only(text: str) -> bool:
    return bool(_PUNCTUATION_ONLY_RE.match(normalize_text(text)))


def is_below_min_length(text: str, min_length: int) -> bool:
    return len(normalize_text(text)) < min_length


_GARBAGE_RULES = (
    is_blank,
    is_too_short,
    is_placeholder,
    is_single_letter,
    has_boilerplate_marker,
    is_punctuation_only,
)


def is_garbage_answer(text: str, min_length: Optional[int] = None) -> bool:
    """
    True when an answer is too uninformative to retrieve.

    ``min_length`` is the stricter bar applied by the maintenance pass only;
    per-query retrieval leaves it unset.
    """
    if any(rule(text) for rule in _GARBAGE_RULES):
        return True
    return min_length is not None and is_below_min_length(text, min_length)


def is_entity_specific(question: str, answer: str) -> bool:
    """Detect rows tied to one solicitation or customer rather than reusable facts."""
    combined = f"{normalize_text(question)} {normalize_text(answer)}"
    if any(pattern.search(combined) for pattern in _ENTITY_SPECIFIC_PATTERNS):
        return True
    return bool(_REGIONAL_PROVIDERS_RE.search(normalize_text(answer)))


# ---------- record normalization ----------


def is_context_row(raw: Any) -> bool:
    """True for a stored row tagged `kind: context`; every other row is QA."""
    return isinstance(raw, dict) and normalize_text(raw.get("kind")).lower() == RecordKind.CONTEXT.value


def _provenance(raw: Dict[str, Any]) -> Provenance:
    values = {key: normalize_text(raw.get(key)) or None for key in _PROVENANCE_KEYS}
    return Provenance.model_validate(values)


def _legacy_answer(raw: Dict[str, Any]) -> Any:
    answer = raw.get("answer")
    if answer in (None, "") and isinstance(raw.get("answers"), list):
        return " ".join(normalize_text(a) for a in raw["answers"])
    return answer


def normalize_record(
    raw: Any, organization_name: Optional[str] = DEFAULT_ORGANIZATION
) -> KnowledgeRecord:
    """
    Turn one stored row into a typed record.

    Never raises: a non-object row becomes an empty QA record, which the
    eligibility check then rejects.
    """
    if not isinstance(raw, dict):
        return QARecord()

    question = normalize_text(raw.get("question"))
    answer = rewrite_vendor_aliases(normalize_text(_legacy_answer(raw)), organization_name)
    common = {
        "embedding": parse_embedding(raw.get("embedding")),
        "provenance": _provenance(raw),
        "extra": {k: v for k, v in raw.items() if k not in _KNOWN_KEYS},
    }

    if is_context_row(raw):
        content = rewrite_vendor_aliases(normalize_text(raw.get("content")), organization_name)
        return ContextRecord(
            content=content or answer or question,
            question=question,
            answer=answer,
            **common,
        )

    return QARecord(question=question, answer=answer, **common)


def is_eligible(record: KnowledgeRecord) -> bool:
    """Retrieval-time eligibility; the weaker bar without a minimum length."""
    if record.kind == RecordKind.CONTEXT.value:
        return bool(record.content)
    return not is_garbage_answer(record.answer)


def clean_records(
    raw_records: List[Any], organization_name: str = DEFAULT_ORGANIZATION
) -> List[KnowledgeRecord]:
    """Normalize a raw corpus and keep only retrieval-eligible records, in order."""
    records = [normalize_record(raw, organization_name) for raw in raw_records]
    eligible = [record for record in records if is_eligible(record)]
    logger.info(
        "Corpus normalized",
        extra={"total": len(records), "eligible": len(eligible)},
    )
    return eligible
