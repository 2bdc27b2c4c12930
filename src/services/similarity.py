"""
Similarity primitives used by the hybrid scorer.

Both functions are pure and never raise on odd input: mismatched vector
lengths are compared over their shared prefix, non-finite cosines become 0
and short strings score 0.
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

import math

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine over the shared-length prefix of ``a`` and ``b``; 0 if either is empty."""
    n = min(len(a or ()), len(b or ()))
    if n == 0:
        return 0.0

    va = np.asarray(a[:n], dtype=float)
    vb = np.asarray(b[:n], dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        denominator = float(np.linalg.norm(va) * np.linalg.norm(vb)) or 1.0
        score = float(np.dot(va, vb)) / denominator
    # Overflow in the norms gives inf/inf; treat it as no similarity.
    return score if math.isfinite(score) else 0.0


def _bigrams(text: str) -> Counter:
    return Counter(text[i : i + 2] for i in range(len(text) - 1))


def lexical_similarity(first: str, second: str) -> float:
    """
    Sorensen-Dice coefficient over character bigrams, in [0, 1].

    Whitespace is ignored so spacing differences do not affect the score.
    Callers are expected to lowercase and normalize both sides first.
    """
    a = "".join((first or "").split())
    b = "".join((second or "").split())

    if a == b:
        return 1.0 if a else 0.0
    if len(a) < 2 or len(b) < 2:
        return 0.0

    first_bigrams = _bigrams(a)
    overlap = 0
    for bigram in _bigrams(b).elements():
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            overlap += 1

    return (2.0 * overlap) / (len(a) + len(b) - 2)
