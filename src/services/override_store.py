"""
Sticky answer overrides.

An operator can pin an answer for a question phrasing ("update: change the
answer for how many psychiatrists to 2527"). Overrides live in an injected,
TTL-bounded LRU cache owned by the caller, so their lifetime is explicit and
identical whether one or many instances serve requests.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from services.hygiene import fuzzy_question_key, normalize_text
from utils.cache_service import LRUCache
from utils.logging_config import get_logger

logger = get_logger(__name__)


class AnswerOverrideStore:
    """Question-phrasing -> pinned answer, keyed by the fuzzy question key."""

    def __init__(self, cache: Optional[LRUCache] = None) -> None:
        self.cache = cache or LRUCache(max_size=256, ttl_seconds=3600)

    def set(self, question: str, answer: str) -> bool:
        key = fuzzy_question_key(question)
        answer = normalize_text(answer)
        if not key or not answer:
            return False
        self.cache.set(key, answer)
        logger.info("Answer override stored", extra={"key": key})
        return True

    def get(self, question: str) -> Optional[str]:
        key = fuzzy_question_key(question)
        return self.cache.get(key) if key else None

    def invalidate(self, question: str) -> bool:
        key = fuzzy_question_key(question)
        return bool(key) and self.cache.delete(key)

    def clear(self) -> None:
        self.cache.clear()


_UPDATE_PREFIXES = (
    re.compile(r"^change\s+the\s+answer\s+for\s+", re.I),
    re.compile(r"^change\s+answer\s+for\s+", re.I),
    re.compile(r"^the\s+answer\s+for\s+", re.I),
    re.compile(r"^answer\s+for\s+", re.I),
)
_QUOTES_RE = re.compile(r"^[\"']+|[\"']+$")


def parse_update_command(command: str) -> Optional[Tuple[str, str]]:
    """
    Parse 'change the answer for <question> to <answer>'.

    Splits on the last " to " so the question itself may contain "to". Returns
    None when either side is missing.
    """
    rest = normalize_text(command)
    for prefix in _UPDATE_PREFIXES:
        rest = prefix.sub("", rest)

    idx = rest.lower().rfind(" to ")
    if idx == -1:
        return None

    question = normalize_text(_QUOTES_RE.sub("", rest[:idx].strip()))
    answer = normalize_text(_QUOTES_RE.sub("", rest[idx + 4 :].strip()))
    if not question or not answer:
        return None
    return question, answer
