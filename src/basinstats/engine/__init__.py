"""
Raster engine collaborators.
"""

from .base import RasterEngine
from .grass import GrassEngine
from .subprocess_execution import ExecutionResult, SubprocessExecutionMixin

__all__ = [
    "ExecutionResult",
    "GrassEngine",
    "RasterEngine",
    "SubprocessExecutionMixin",
]
