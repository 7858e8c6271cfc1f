"""
Core infrastructure: exceptions, configuration, logging.
"""

from .config import BasinStatsConfig, ExecutionConfig, GrassConfig, LoggingConfig
from .exceptions import BasinStatsError
from .logging_manager import LoggingManager

__all__ = [
    "BasinStatsConfig",
    "BasinStatsError",
    "ExecutionConfig",
    "GrassConfig",
    "LoggingConfig",
    "LoggingManager",
]
