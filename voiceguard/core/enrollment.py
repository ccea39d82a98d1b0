# voiceguard/core/enrollment.py

"""
Enrollment aggregation.

Collects the feature vectors of one enrollment and reduces them to a single
voice profile (coefficient-wise mean).
"""

from __future__ import annotations

from typing import List

import numpy as np

from .errors import DimensionMismatchError, EmptyEnrollmentError
from .features import as_feature_vector


class EnrollmentAggregator:
    def __init__(self):
        self._samples: List[np.ndarray] = []

    @property
    def count(self) -> int:
        return len(self._samples)

    def begin(self):
        """Drop anything collected so far."""
        self._samples = []

    def add(self, vector: np.ndarray):
        sample = as_feature_vector(vector)
        if self._samples and sample.size != self._samples[0].size:
            raise DimensionMismatchError(self._samples[0].size, sample.size)
        self._samples.append(sample)

    def finalize(self) -> np.ndarray:
        """
        Average the collected vectors into a voice profile and reset.

        Raises:
            EmptyEnrollmentError: if nothing was collected
        """
        if not self._samples:
            raise EmptyEnrollmentError("no feature vectors were collected during enrollment")

        profile = np.mean(np.stack(self._samples, axis=0), axis=0)
        self._samples = []
        return as_feature_vector(profile)
