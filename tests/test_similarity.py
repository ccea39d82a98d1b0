"""Tests for cosine similarity scoring."""
import numpy as np
import pytest

from voiceguard.core.errors import (
    ConfigurationError,
    DimensionMismatchError,
    UndefinedSimilarityError,
)
from voiceguard.core.similarity import cosine_similarity


class TestCosineSimilarity:

    def test_identical_unit_vector_scores_one(self):
        a = np.array([0.6, 0.8, 0.0])
        assert cosine_similarity(a, a) == pytest.approx(1.0, abs=1e-6)

    def test_identical_arbitrary_vector_scores_one(self):
        a = np.array([-12.5, 3.1, 0.4, 7.7, -0.02])
        assert cosine_similarity(a, a) == pytest.approx(1.0, abs=1e-6)

    def test_symmetric(self):
        a = np.array([1.0, 2.0, -3.0])
        b = np.array([0.5, -1.0, 4.0])
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_orthogonal_vectors_score_zero(self):
        assert cosine_similarity([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]) == pytest.approx(0.0)

    def test_opposite_vectors_score_minus_one(self):
        assert cosine_similarity([1.0, 0.0, 0.0], [-1.0, 0.0, 0.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        a = np.array([1.0, 2.0, 3.0])
        assert cosine_similarity(a, 10 * a) == pytest.approx(1.0)

    def test_result_stays_in_range(self):
        rng = np.random.default_rng(7)
        for _ in range(50):
            a = rng.normal(size=13)
            b = rng.normal(size=13)
            assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_mismatched_lengths_raise(self):
        with pytest.raises(DimensionMismatchError) as exc:
            cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0])
        assert exc.value.expected == 3
        assert exc.value.actual == 2

    @pytest.mark.parametrize("zero_first", [True, False])
    def test_zero_vector_raises(self, zero_first):
        zero = np.zeros(3)
        other = np.array([1.0, 2.0, 3.0])
        args = (zero, other) if zero_first else (other, zero)
        with pytest.raises(UndefinedSimilarityError):
            cosine_similarity(*args)

    def test_defects_are_configuration_errors(self):
        assert issubclass(DimensionMismatchError, ConfigurationError)
        assert issubclass(UndefinedSimilarityError, ConfigurationError)

    @pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
    def test_non_finite_values_raise(self, bad):
        with pytest.raises(UndefinedSimilarityError):
            cosine_similarity([1.0, 0.0, 0.0], [bad, 0.0, 0.0])
        with pytest.raises(UndefinedSimilarityError):
            cosine_similarity([bad, 0.0, 0.0], [1.0, 0.0, 0.0])

    def test_large_magnitude_vector_scores_one_with_itself(self):
        a = np.array([1e200, 0.0, 0.0])
        assert cosine_similarity(a, a) == pytest.approx(1.0)

    def test_large_magnitude_vectors_keep_their_angle(self):
        assert cosine_similarity([1e200, 0.0], [1e200, 1e200]) == pytest.approx(np.sqrt(0.5))

    def test_tiny_non_zero_vector_is_defined(self):
        a = np.array([1e-200, 0.0, 0.0])
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, [-1.0, 0.0, 0.0]) == pytest.approx(-1.0)

    def test_same_size_different_shape_is_compared_flat(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [[1.0, 2.0, 3.0]]) == pytest.approx(1.0)

    def test_mismatch_reports_flat_sizes(self):
        with pytest.raises(DimensionMismatchError) as exc:
            cosine_similarity([[1.0, 0.0, 0.0]], [1.0, 0.0])
        assert (exc.value.expected, exc.value.actual) == (3, 2)
