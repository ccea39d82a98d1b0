"""
Configuration management for VoiceGuard.
Loads settings from config.json and provides access to configuration values.
"""

import json
import os
import logging
from dataclasses import dataclass
from typing import Dict, Any

from .errors import ConfigurationError


ALERT_POLICIES = ("every_frame", "on_transition")


@dataclass(frozen=True)
class SessionSettings:
    """
    Tunables of the feature pipeline and the verification session.

    Changing any of these never changes a component contract; they are
    validated once here so the components can trust them.
    """

    sample_rate: int = 16000
    buffer_size: int = 512
    n_mfcc: int = 13
    n_mels: int = 26
    loudness_scale: float = 100.0
    enrollment_duration: float = 10.0
    countdown_interval: float = 1.0
    similarity_threshold: float = 0.8
    loudness_history: int = 50
    alert_policy: str = "every_frame"

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.buffer_size <= 0:
            raise ConfigurationError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.n_mfcc <= 0:
            raise ConfigurationError(f"n_mfcc must be positive, got {self.n_mfcc}")
        if self.n_mels < self.n_mfcc:
            raise ConfigurationError(
                f"n_mels ({self.n_mels}) must be at least n_mfcc ({self.n_mfcc})"
            )
        if self.loudness_scale < 0:
            raise ConfigurationError(f"loudness_scale must be >= 0, got {self.loudness_scale}")
        if self.enrollment_duration <= 0:
            raise ConfigurationError(
                f"enrollment_duration must be positive, got {self.enrollment_duration}"
            )
        if self.countdown_interval <= 0:
            raise ConfigurationError(
                f"countdown_interval must be positive, got {self.countdown_interval}"
            )
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ConfigurationError(
                f"similarity_threshold must be within [-1, 1], got {self.similarity_threshold}"
            )
        if self.loudness_history <= 0:
            raise ConfigurationError(
                f"loudness_history must be positive, got {self.loudness_history}"
            )
        if self.alert_policy not in ALERT_POLICIES:
            raise ConfigurationError(
                f"alert_policy must be one of {ALERT_POLICIES}, got {self.alert_policy!r}"
            )

    @property
    def countdown_ticks(self) -> int:
        """Number of timer ticks that make up one enrollment."""
        return max(1, round(self.enrollment_duration / self.countdown_interval))


ALERT_TONE_DEFAULTS = {"frequency": 880.0, "duration": 0.25, "volume": 0.5}


class Config:
    """
    JSON-backed settings for VoiceGuard.

    Values are addressed with dotted keys ("audio.buffer_size"). A missing
    or unreadable file is replaced by one holding the defaults.
    """

    def __init__(self, config_path: str = "config.json"):
        self.logger = logging.getLogger("voiceguard.config")
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.load()

    def load(self) -> bool:
        """Read the file; returns False when the defaults had to be used."""
        if not os.path.exists(self.config_path):
            self.logger.warning(f"No config at {self.config_path}; writing defaults")
            self._create_default_config()
            return False
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self.config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Unreadable config {self.config_path}: {e}", exc_info=True)
            self._create_default_config()
            return False
        self.logger.info(f"Configuration loaded from {self.config_path}")
        return True

    def _create_default_config(self):
        defaults = SessionSettings()
        self.config = {
            "logs_path": "data/logs/",
            "audio": {
                "sample_rate": defaults.sample_rate,
                "buffer_size": defaults.buffer_size,
                "loudness_scale": defaults.loudness_scale,
                "loudness_history": defaults.loudness_history,
            },
            "features": {
                "n_mfcc": defaults.n_mfcc,
                "n_mels": defaults.n_mels,
            },
            "enrollment": {
                "duration": defaults.enrollment_duration,
                "countdown_interval": defaults.countdown_interval,
            },
            "verification": {
                "similarity_threshold": defaults.similarity_threshold,
                "alert_policy": defaults.alert_policy,
            },
            "alert": dict(ALERT_TONE_DEFAULTS),
        }
        self.save()

    def save(self) -> bool:
        """Write the current values back; returns False on an I/O error."""
        directory = os.path.dirname(self.config_path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            self.logger.error(f"Could not write {self.config_path}: {e}", exc_info=True)
            return False
        self.logger.debug(f"Configuration written to {self.config_path}")
        return True

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self.config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> bool:
        """Store `value` under a dotted key, creating sections on the way."""
        *sections, leaf = key.split('.')
        node = self.config
        for part in sections:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                self.logger.error(f"Cannot set {key}: '{part}' holds a value, not a section")
                return False
        node[leaf] = value
        return True

    @property
    def logs_path(self) -> str:
        return self.get("logs_path", "data/logs/")

    @property
    def similarity_threshold(self) -> float:
        return self.get("verification.similarity_threshold", SessionSettings.similarity_threshold)

    @property
    def enrollment_duration(self) -> float:
        return self.get("enrollment.duration", SessionSettings.enrollment_duration)

    @property
    def alert_tone(self) -> Dict[str, float]:
        """
        Beep parameters for ToneAlert, defaults filled in.

        Raises:
            ConfigurationError: on an unknown key or a non-positive value
        """
        section = self.get("alert", {})
        if not isinstance(section, dict):
            raise ConfigurationError(f"'alert' in {self.config_path} must be a section")

        unknown = set(section) - set(ALERT_TONE_DEFAULTS)
        if unknown:
            raise ConfigurationError(
                f"Unknown alert setting(s) {sorted(unknown)} in {self.config_path}; "
                f"expected {sorted(ALERT_TONE_DEFAULTS)}"
            )

        tone = dict(ALERT_TONE_DEFAULTS)
        for name, value in section.items():
            try:
                tone[name] = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"alert.{name} must be a number, got {value!r}") from e
            if not tone[name] > 0:
                raise ConfigurationError(f"alert.{name} must be positive, got {value!r}")
        return tone

    def session_settings(self) -> SessionSettings:
        """
        Build validated session tunables from the loaded configuration.

        Raises:
            ConfigurationError: if any value is out of range or of the wrong type
        """
        defaults = SessionSettings()
        try:
            return SessionSettings(
                sample_rate=int(self.get("audio.sample_rate", defaults.sample_rate)),
                buffer_size=int(self.get("audio.buffer_size", defaults.buffer_size)),
                n_mfcc=int(self.get("features.n_mfcc", defaults.n_mfcc)),
                n_mels=int(self.get("features.n_mels", defaults.n_mels)),
                loudness_scale=float(self.get("audio.loudness_scale", defaults.loudness_scale)),
                enrollment_duration=float(self.enrollment_duration),
                countdown_interval=float(
                    self.get("enrollment.countdown_interval", defaults.countdown_interval)
                ),
                similarity_threshold=float(self.similarity_threshold),
                loudness_history=int(self.get("audio.loudness_history", defaults.loudness_history)),
                alert_policy=str(self.get("verification.alert_policy", defaults.alert_policy)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration in {self.config_path}: {e}") from e
