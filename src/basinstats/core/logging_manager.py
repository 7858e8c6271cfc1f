# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Logging setup for basinstats runs.

Library modules only create module-level loggers; handlers are attached here,
once, by the CLI or by an application embedding the pipeline.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import BasinStatsConfig

ROOT_LOGGER_NAME = 'basinstats'

FORMATS = {
    'detailed': '[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s',
    'simple': '%(levelname)s: %(message)s',
}

NOISY_LOGGERS = ['asyncio', 'concurrent.futures']


class LoggingManager:
    """
    Configures the ``basinstats`` logger tree from a BasinStatsConfig.

    Re-running setup replaces the handlers this manager installed, so a
    long-lived process can reconfigure without duplicating output.
    """

    def __init__(self, config: Optional[BasinStatsConfig] = None, debug_mode: bool = False):
        self.config = config or BasinStatsConfig()
        self.debug_mode = debug_mode
        self.logger = self.setup_logging()

    @property
    def level(self) -> int:
        if self.debug_mode:
            return logging.DEBUG
        return getattr(logging, self.config.logging.log_level)

    def setup_logging(self) -> logging.Logger:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.setLevel(self.level)

        for handler in list(logger.handlers):
            if getattr(handler, '_basinstats_managed', False):
                logger.removeHandler(handler)
                handler.close()

        formatter = logging.Formatter(FORMATS[self.config.logging.log_format])

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler._basinstats_managed = True
        logger.addHandler(stream_handler)

        log_file = self.config.logging.log_file
        if log_file is not None:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            # File logs always carry full context
            file_handler.setFormatter(logging.Formatter(FORMATS['detailed']))
            file_handler._basinstats_managed = True
            logger.addHandler(file_handler)

        # Silence noisy libraries
        for noisy_logger in NOISY_LOGGERS:
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

        logger.debug(f"Logging configured at level {logging.getLevelName(self.level)}")
        return logger
