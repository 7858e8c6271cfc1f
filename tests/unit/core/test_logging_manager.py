"""Tests for LoggingManager."""

import logging

import pytest

from basinstats.core.config import BasinStatsConfig
from basinstats.core.logging_manager import ROOT_LOGGER_NAME, LoggingManager


@pytest.fixture(autouse=True)
def reset_basinstats_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, '_basinstats_managed', False):
            logger.removeHandler(handler)
            handler.close()


def managed_handlers():
    return [h for h in logging.getLogger(ROOT_LOGGER_NAME).handlers if getattr(h, '_basinstats_managed', False)]


class TestLoggingManager:

    def test_level_from_config(self):
        manager = LoggingManager(BasinStatsConfig.from_flat({"LOG_LEVEL": "WARNING"}))
        assert manager.level == logging.WARNING
        assert manager.logger.level == logging.WARNING

    def test_debug_mode_overrides_level(self):
        manager = LoggingManager(BasinStatsConfig(), debug_mode=True)
        assert manager.logger.level == logging.DEBUG

    def test_setup_is_idempotent(self):
        manager = LoggingManager()
        manager.setup_logging()
        manager.setup_logging()
        assert len(managed_handlers()) == 1

    def test_file_handler_writes_detailed_format(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        config = BasinStatsConfig.from_flat({"LOG_FILE": str(log_file), "LOG_FORMAT": "simple"})
        manager = LoggingManager(config)
        assert len(managed_handlers()) == 2

        logging.getLogger("basinstats.pipeline").info("delineation started")

        content = log_file.read_text(encoding="utf-8")
        assert "[INFO] [basinstats.pipeline] - delineation started" in content
        assert manager.logger.name == ROOT_LOGGER_NAME
