# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Timing mixin for basinstats components.
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator


class TimingMixin:
    """
    Mixin providing phase timing.

    Uses ``self.logger`` when the host class has one.
    """

    @contextmanager
    def time_limit(self, task_name: str) -> Iterator[None]:
        """
        Context manager to time a task and log the duration.
        """
        start_time = time.time()
        logger = getattr(self, 'logger', None) or logging.getLogger(__name__)
        logger.debug(f"Starting task: {task_name}")
        try:
            yield
        finally:
            duration = time.time() - start_time
            logger.info(f"Completed task: {task_name} in {duration:.2f} seconds")
