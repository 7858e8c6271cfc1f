# src/basinstats/__init__.py
try:
    from .basinstats_version import __version__
except ImportError:
    try:
        from importlib.metadata import version, PackageNotFoundError
        __version__ = version("basinstats")
    except (ImportError, PackageNotFoundError):
        __version__ = "0.0.0"

from .pipeline import BasinStatsPipeline, PipelineResult, RecordFailure

__all__ = ["BasinStatsPipeline", "PipelineResult", "RecordFailure", "__version__"]
