# voiceguard/core/logger.py

"""
Logging helper for VoiceGuard.

Components log through children of the "voiceguard" logger
("voiceguard.session", "voiceguard.extractor", ...), so configuring that
one logger routes every component to the same file and console.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_FILE_NAME = "voiceguard.log"


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Attach file and console handlers to the "voiceguard" logger.

    Calling it again only updates the level.
    """
    root = logging.getLogger("voiceguard")
    root.setLevel(level)
    if root.handlers:
        for handler in root.handlers:
            handler.setLevel(level)
        return root

    log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in (
        logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"),
        logging.StreamHandler(),
    ):
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)

    root.info(f"Logging to {log_dir / LOG_FILE_NAME} at level {logging.getLevelName(level)}")
    return root
