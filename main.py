# main.py

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from voiceguard.core.config import Config
from voiceguard.core.errors import ConfigurationError
from voiceguard.core.logger import setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="VoiceGuard live speaker verification")
    parser.add_argument("--console", action="store_true", help="run in the terminal instead of the window")
    parser.add_argument("--config", default="config.json", help="path to the JSON configuration file")
    parser.add_argument("--log-dir", default=None, help="directory for voiceguard.log")
    parser.add_argument("--debug", action="store_true", help="log per-frame decisions")
    return parser.parse_args(argv)


def run_window(config: Config) -> int:
    from PyQt6 import QtWidgets

    from voiceguard.controller import VoiceGuardController
    from voiceguard.ui import VoiceGuardWindow

    app = QtWidgets.QApplication(sys.argv)

    window = VoiceGuardWindow()
    controller = VoiceGuardController(window, config)
    app.aboutToQuit.connect(controller.shutdown)

    window.show()

    # Make sure controller isn't garbage-collected
    window.controller = controller  # type: ignore

    return app.exec()


def main(argv=None) -> int:
    args = parse_args(argv)
    config = Config(args.config)

    log_dir = Path(args.log_dir or config.logs_path)
    logger = setup_logging(log_dir, level=logging.DEBUG if args.debug else logging.INFO)

    try:
        if args.console:
            from voiceguard.console import run_console
            return run_console(config)
        return run_window(config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
