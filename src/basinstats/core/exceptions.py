# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Custom exception hierarchy for basinstats.

Errors fall into two groups. Fatal errors (invalid input table, invalid
concurrency, unreachable engine session, unusable workspace) abort a run.
Per-record errors (a failed engine job, a missing or malformed result file)
are collected by the pipeline and reported next to the partial results.
"""

import logging
from contextlib import contextmanager
from typing import Optional, TypeVar


class BasinStatsError(Exception):
    """
    Base exception for all basinstats-specific errors.

    All custom exceptions in basinstats inherit from this class so callers
    can catch every library error with a single except clause.
    """
    pass


class ConfigurationError(BasinStatsError):
    """
    Configuration-related errors.

    Raised when:
    - The configuration file cannot be found or parsed
    - Configuration values are invalid
    - A job needs a context value that was not supplied
    """
    pass


class ValidationError(BasinStatsError):
    """
    Input validation failures.

    Raised when:
    - The pour point table is malformed
    - Batch parameters are out of range
    """
    pass


class InvalidPourPointError(ValidationError):
    """
    A pour point row cannot be turned into an engine job.

    Raised when:
    - UID is empty or not usable as a raster / file name
    - Coordinates are missing or non-finite
    - UIDs are duplicated within a table
    """
    pass


class InvalidConcurrencyError(ValidationError):
    """Concurrency limit is not a positive integer."""
    pass


class EmptyInputError(ValidationError):
    """The pour point table has no rows."""
    pass


class JobExecutionError(BasinStatsError):
    """Failures while running engine jobs."""
    pass


class JobFailure(JobExecutionError):
    """
    One engine invocation failed.

    Per-record and non-fatal to the batch: the executor records it as a
    failed JobOutcome instead of propagating it.
    """

    def __init__(self, job_id, message: str):
        super().__init__(f"Job {job_id} failed: {message}")
        self.job_id = job_id
        self.detail = message


class ResultParsingError(BasinStatsError):
    """Problems reading a per-record result document."""
    pass


class MissingResultFileError(ResultParsingError):
    """
    The result file for a record does not exist.

    Signals that the corresponding summarize job never produced output.
    """
    pass


class UnexpectedFormatError(ResultParsingError):
    """
    The result document does not match the positional layout.

    Raised when:
    - Fewer lines are present than the layout requires
    - A key does not match the expected name at its position
    - A value is non-numeric where a number is required
    """
    pass


class EngineUnavailableError(BasinStatsError):
    """
    The raster engine session cannot be reached.

    Fatal: the whole batch is meaningless without the engine.
    """
    pass


class WorkspaceError(BasinStatsError):
    """
    Temporary storage cannot be created or cleaned.

    Fatal: the run cannot safely proceed or clean up after itself.
    """
    pass


# =============================================================================
# Validation Helpers
# =============================================================================

T = TypeVar('T')


def require(condition: bool, message: str, error_type: type = None) -> None:
    """
    Validate a condition, raising an exception if it fails.

    Args:
        condition: The condition that must be True
        message: Error message if condition is False
        error_type: Exception type to raise (default: ValidationError)

    Raises:
        ValidationError (or specified error_type) if condition is False

    Example:
        >>> require(concurrency >= 1, "Concurrency must be positive", InvalidConcurrencyError)
    """
    if error_type is None:
        error_type = ValidationError
    if not condition:
        raise error_type(message)


def require_not_none(value: Optional[T], name: str, error_type: type = None) -> T:
    """
    Validate that a value is not None, returning it if valid.

    Args:
        value: The value to check
        name: Name of the value (for error message)
        error_type: Exception type to raise (default: ValidationError)

    Returns:
        The value if it is not None

    Raises:
        ValidationError (or specified error_type) if value is None
    """
    if error_type is None:
        error_type = ValidationError
    if value is None:
        raise error_type(f"{name} must not be None")
    return value


@contextmanager
def basinstats_error_handler(
    operation: str,
    logger: Optional[logging.Logger] = None,
    reraise: bool = True,
    error_type: type = BasinStatsError
):
    """
    Context manager for standardized error handling.

    Library errors pass through unchanged; anything else is converted to
    ``error_type`` so callers only ever see the basinstats hierarchy.

    Args:
        operation: Description of the operation being performed (for logging)
        logger: Logger instance for error messages. If None, errors are not logged.
        reraise: Whether to re-raise the exception after handling (default: True)
        error_type: basinstats exception type to convert generic exceptions to

    Example:
        >>> with basinstats_error_handler("workspace cleanup", logger, error_type=WorkspaceError):
        ...     shutil.rmtree(path)
    """
    try:
        yield
    except BasinStatsError:
        if logger:
            logger.error(f"Error during {operation}", exc_info=True)
        if reraise:
            raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)
        if reraise:
            raise error_type(f"Failed during {operation}: {e}") from e


__all__ = [
    # Base
    'BasinStatsError',
    # Fatal
    'ConfigurationError',
    'ValidationError',
    'InvalidPourPointError',
    'InvalidConcurrencyError',
    'EmptyInputError',
    'EngineUnavailableError',
    'WorkspaceError',
    # Per-record
    'JobExecutionError',
    'JobFailure',
    'ResultParsingError',
    'MissingResultFileError',
    'UnexpectedFormatError',
    # Helpers
    'require',
    'require_not_none',
    'basinstats_error_handler',
]
