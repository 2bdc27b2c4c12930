"""
Similarity primitive tests.

Run with: pytest tests/unit/test_similarity.py -v
"""

import math

import pytest

from services.similarity import cosine_similarity, lexical_similarity


class TestCosineSimilarity:
    """Cosine over shared-length prefixes."""

    def test_identical_vectors_score_one(self):
        assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "a,b",
        [
            ([1.0, 2.0, 3.0], [3.0, -1.0, 0.5]),
            ([0.1, 0.9], [0.7, 0.2]),
            ([-1.0, 4.0, 2.0, 0.0], [2.0, 2.0, -3.0, 1.0]),
        ],
    )
    def test_symmetric_and_bounded(self, a, b):
        forward = cosine_similarity(a, b)
        assert forward == pytest.approx(cosine_similarity(b, a))
        assert -1.0 - 1e-9 <= forward <= 1.0 + 1e-9

    def test_orthogonal_vectors_score_zero(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors_score_minus_one(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_empty_vector_scores_zero(self):
        assert cosine_similarity([], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0], []) == 0.0
        assert cosine_similarity(None, None) == 0.0

    def test_length_mismatch_uses_shared_prefix(self):
        assert cosine_similarity([1.0, 0.0, 99.0], [1.0, 0.0]) == pytest.approx(1.0)

    def test_zero_vector_does_not_divide_by_zero(self):
        result = cosine_similarity([0.0, 0.0], [1.0, 1.0])
        assert result == 0.0
        assert not math.isnan(result)

    @pytest.mark.parametrize(
        "a, b",
        [([1e200, 1e200], [1e200, 1e200]), ([float("inf"), 1.0], [1.0, 1.0]), ([float("nan")], [1.0])],
    )
    def test_non_finite_result_scores_zero(self, a, b):
        assert cosine_similarity(a, b) == 0.0


class TestLexicalSimilarity:
    """Dice coefficient over character bigrams."""

    def test_identical_strings_score_one(self):
        assert lexical_similarity("licensed clinicians", "licensed clinicians") == 1.0

    def test_whitespace_is_ignored(self):
        assert lexical_similarity("licensed clinicians", "licensedclinicians") == 1.0

    def test_disjoint_strings_score_zero(self):
        assert lexical_similarity("abc", "xyz") == 0.0

    def test_short_strings_score_zero(self):
        assert lexical_similarity("a", "ab") == 0.0
        assert lexical_similarity("", "") == 0.0

    def test_partial_overlap_is_between_zero_and_one(self):
        score = lexical_similarity("night", "nacht")
        # bigrams: ni ig gh ht / na ac ch ht -> one shared out of 8
        assert score == pytest.approx(0.25)

    def test_symmetric(self):
        a, b = "how many clinicians", "we employ 500 clinicians"
        assert lexical_similarity(a, b) == pytest.approx(lexical_similarity(b, a))
