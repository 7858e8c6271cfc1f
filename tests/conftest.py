"""
Root conftest.py - Session-scoped fixtures shared across all tests.

This file sets up the Python path so the package is importable from a
source checkout without installation.
"""

from pathlib import Path
import sys

import pytest

BASINSTATS_SRC_DIR = Path(__file__).parent.parent.resolve() / 'src'
if str(BASINSTATS_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(BASINSTATS_SRC_DIR))
TESTS_DIR = Path(__file__).parent.resolve()


@pytest.fixture(scope="session")
def tests_dir():
    """Path to tests directory."""
    return TESTS_DIR
