"""Tests for the logging setup."""
import logging

import pytest

from voiceguard.core.logger import LOG_FILE_NAME, setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("voiceguard")
    saved = list(logger.handlers), logger.level
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])


class TestSetupLogging:

    def test_writes_component_records_to_file(self, tmp_path, clean_logger):
        setup_logging(tmp_path)
        logging.getLogger("voiceguard.session").info("hello from the session")
        for handler in clean_logger.handlers:
            handler.flush()

        text = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
        assert "| INFO | voiceguard.session | hello from the session" in text

    def test_second_call_adds_no_handlers(self, tmp_path, clean_logger):
        setup_logging(tmp_path)
        setup_logging(tmp_path, level=logging.DEBUG)

        assert len(clean_logger.handlers) == 2
        assert clean_logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in clean_logger.handlers)
