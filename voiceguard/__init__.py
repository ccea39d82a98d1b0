"""
VoiceGuard: live speaker verification.

Enrolls a voice profile from a short utterance, then checks every incoming
audio frame against it.
"""

__version__ = "0.1.0"
