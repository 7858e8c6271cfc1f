"""
Unit test fixtures and configuration.

Provides an in-process raster engine double so executor and pipeline tests
run without GRASS.
"""

import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from basinstats.core.exceptions import EngineUnavailableError
from basinstats.engine.base import RasterEngine
from basinstats.engine.subprocess_execution import ExecutionResult

UNIVAR_TEXT = """n=100
null_cells=5
cells=95
min=1.0
max=9.0
range=8.0
mean=4.5
mean_of_abs=1.2
stddev=2.1
variance=4.41
skip=0
sum=427.5
"""


def univar_text(n=100, total=427.5):
    """Statistics document in r.univar -g layout with a chosen count and sum."""
    return UNIVAR_TEXT.replace("n=100", f"n={n}").replace("sum=427.5", f"sum={total}")


class FakeEngine(RasterEngine):
    """
    Engine double.

    UIDs named in ``fail_delineate`` / ``fail_summarize`` fail that phase,
    ``no_output`` succeed at summarizing without writing a file and
    ``malformed`` write a truncated document. Every successful summary
    writes ``n`` equal to the job's submission index.
    """

    def __init__(self, fail_delineate=(), fail_summarize=(), no_output=(), malformed=(),
                 delay=0.0, unavailable=False):
        super().__init__(logger=MagicMock())
        self.fail_delineate = set(fail_delineate)
        self.fail_summarize = set(fail_summarize)
        self.no_output = set(no_output)
        self.malformed = set(malformed)
        self.delay = delay
        self.unavailable = unavailable
        self.delineated = []
        self.summarized = []
        self.discarded = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    @staticmethod
    def _matches(label, uids):
        return any(str(label).endswith(f"_{uid}") for uid in uids)

    def _enter(self):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

    def _leave(self):
        with self._lock:
            self.in_flight -= 1

    def check_session(self):
        if self.unavailable:
            raise EngineUnavailableError("GRASS session not initialized")

    def delineate(self, x, y, output_label, direction_raster=None):
        self._enter()
        try:
            time.sleep(self.delay)
            with self._lock:
                self.delineated.append(output_label)
            if self._matches(output_label, self.fail_delineate):
                return ExecutionResult(success=False, return_code=1, error_message="outlet outside region")
            return ExecutionResult(success=True)
        finally:
            self._leave()

    def zonal_stats(self, raster_name, zone_label, output_path):
        self._enter()
        try:
            time.sleep(self.delay)
            with self._lock:
                self.summarized.append(zone_label)
                index = len(self.summarized)
            if self._matches(zone_label, self.fail_summarize):
                return ExecutionResult(success=False, return_code=1, error_message="zones raster missing")
            if self._matches(zone_label, self.no_output):
                return ExecutionResult(success=True)
            text = univar_text(n=index)
            if self._matches(zone_label, self.malformed):
                text = "\n".join(text.splitlines()[:4])
            Path(output_path).write_text(text, encoding="utf-8")
            return ExecutionResult(success=True)
        finally:
            self._leave()

    def discard(self, label_pattern):
        self.discarded.append(label_pattern)
        return ExecutionResult(success=True)


@pytest.fixture
def mock_logger():
    """Create a mock logger for unit tests."""
    return MagicMock()


@pytest.fixture
def make_engine():
    """Factory for FakeEngine instances."""
    return FakeEngine


@pytest.fixture
def sample_univar_text():
    return UNIVAR_TEXT
