"""Tests for the enrollment aggregator."""
import numpy as np
import pytest

from voiceguard.core.enrollment import EnrollmentAggregator
from voiceguard.core.errors import DimensionMismatchError, EmptyEnrollmentError


class TestEnrollmentAggregator:

    @pytest.fixture
    def aggregator(self):
        agg = EnrollmentAggregator()
        agg.begin()
        return agg

    def test_mean_per_coefficient(self, aggregator):
        rng = np.random.default_rng(42)
        samples = rng.normal(size=(25, 13))
        for sample in samples:
            aggregator.add(sample)

        profile = aggregator.finalize()

        np.testing.assert_allclose(profile, samples.mean(axis=0), rtol=1e-12, atol=1e-12)

    def test_identical_samples_give_same_profile(self, aggregator):
        for _ in range(10):
            aggregator.add([1.0, 0.0, 0.0])
        np.testing.assert_array_equal(aggregator.finalize(), [1.0, 0.0, 0.0])

    def test_finalize_empty_raises(self, aggregator):
        with pytest.raises(EmptyEnrollmentError):
            aggregator.finalize()

    def test_finalize_clears_state(self, aggregator):
        aggregator.add([1.0, 2.0])
        aggregator.finalize()

        assert aggregator.count == 0
        with pytest.raises(EmptyEnrollmentError):
            aggregator.finalize()

    def test_begin_discards_samples(self, aggregator):
        aggregator.add([1.0, 2.0])
        aggregator.begin()
        assert aggregator.count == 0

    def test_profile_is_read_only(self, aggregator):
        aggregator.add([1.0, 2.0, 3.0])
        profile = aggregator.finalize()
        with pytest.raises(ValueError):
            profile[0] = 5.0

    def test_later_mutation_of_input_does_not_leak(self, aggregator):
        sample = np.array([1.0, 1.0])
        aggregator.add(sample)
        sample[0] = 100.0
        np.testing.assert_array_equal(aggregator.finalize(), [1.0, 1.0])

    def test_mismatched_length_rejected(self, aggregator):
        aggregator.add([1.0, 2.0, 3.0])
        with pytest.raises(DimensionMismatchError):
            aggregator.add([1.0, 2.0])
        assert aggregator.count == 1
