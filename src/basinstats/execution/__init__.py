"""
Job construction, workspace lifecycle and bounded-parallel execution.
"""

from .executor import BatchResult, ParallelExecutor, validate_concurrency
from .jobs import EngineContext, JobBuilder, JobDescription, JobOutcome, JobPhase
from .workspace import Workspace

__all__ = [
    "BatchResult",
    "EngineContext",
    "JobBuilder",
    "JobDescription",
    "JobOutcome",
    "JobPhase",
    "ParallelExecutor",
    "Workspace",
    "validate_concurrency",
]
