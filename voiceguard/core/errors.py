# voiceguard/core/errors.py

"""
Error taxonomy for VoiceGuard.

User-facing conditions (no microphone, nothing captured, no profile) and
configuration defects (mismatched feature lengths, zero vectors) both end
at the session boundary, but defects derive from ConfigurationError so they
can be logged separately.
"""


class VoiceGuardError(Exception):
    """Base class for all VoiceGuard errors."""


class AcquisitionError(VoiceGuardError):
    """No audio source could be acquired (missing device, access denied)."""


class ExtractionStartError(VoiceGuardError):
    """The feature extractor could not attach to the audio source."""


class ExtractionError(VoiceGuardError):
    """A single buffer could not be turned into features."""


class EmptyEnrollmentError(VoiceGuardError):
    """Enrollment was finalized without any feature vectors."""


class MissingProfileError(VoiceGuardError):
    """Monitoring was requested before a voice profile was enrolled."""


class InvalidTransitionError(VoiceGuardError):
    """The session was asked to move between modes it cannot connect."""


class ConfigurationError(VoiceGuardError):
    """Invalid tunables, or a defect caused by inconsistent configuration."""


class DimensionMismatchError(ConfigurationError):
    """Two feature vectors of different length were combined."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"feature length mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class UndefinedSimilarityError(ConfigurationError):
    """Cosine similarity requested for a zero-magnitude vector."""
