# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Bounded-parallel execution of engine jobs.

The executor runs a batch of independent JobDescriptions against a raster
engine with at most ``concurrency`` invocations in flight and reports exactly
one JobOutcome per submitted job. Completion order is unspecified; outcomes
are returned in submission order so callers can re-associate them with their
input.

Execution strategies:

- ``sequential``: one job at a time in the calling thread
- ``threads``: a ThreadPoolExecutor of ``concurrency`` workers, each blocking
  on one external engine process
- ``gnu_parallel``: the jobs are written to a command list in the workspace,
  a generated run script feeds them to GNU parallel inside the engine
  session, and the GNU parallel joblog is read back to derive outcomes
"""

import logging
import shlex
import shutil
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from basinstats.core.exceptions import (
    ConfigurationError,
    EngineUnavailableError,
    InvalidConcurrencyError,
    JobFailure,
    ValidationError,
)
from basinstats.execution.jobs import JobDescription, JobOutcome

if TYPE_CHECKING:
    from basinstats.engine.base import RasterEngine
    from basinstats.execution.workspace import Workspace

logger = logging.getLogger(__name__)

STRATEGIES = ('auto', 'sequential', 'threads', 'gnu_parallel')

# Columns of a GNU parallel --joblog file
JOBLOG_COLUMNS = ('Seq', 'Host', 'Starttime', 'JobRuntime', 'Send', 'Receive', 'Exitval', 'Signal', 'Command')


def validate_concurrency(concurrency) -> int:
    """
    Check a concurrency limit.

    No upper bound is enforced; staying below the number of available cores
    is left to the caller.

    Raises:
        InvalidConcurrencyError: If the limit is not an integer >= 1
    """
    if isinstance(concurrency, bool) or not isinstance(concurrency, int):
        raise InvalidConcurrencyError(
            f"Concurrency must be a positive integer, got {concurrency!r}"
        )
    if concurrency < 1:
        raise InvalidConcurrencyError(f"Concurrency must be >= 1, got {concurrency}")
    return concurrency


@dataclass(frozen=True)
class BatchResult:
    """Outcomes of one batch, in submission order."""
    outcomes: Tuple[JobOutcome, ...]

    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self):
        return iter(self.outcomes)

    def by_id(self) -> Dict[str, JobOutcome]:
        return {str(outcome.id): outcome for outcome in self.outcomes}

    @property
    def failed_ids(self) -> List:
        return [outcome.id for outcome in self.outcomes if not outcome.succeeded]

    @property
    def succeeded_ids(self) -> List:
        return [outcome.id for outcome in self.outcomes if outcome.succeeded]

    @property
    def partially_failed(self) -> bool:
        return any(not outcome.succeeded for outcome in self.outcomes)


def run_job(engine: 'RasterEngine', job: JobDescription, log: logging.Logger) -> JobOutcome:
    """
    Execute one job and describe its outcome.

    Engine errors become a failed outcome. Only an unreachable engine
    propagates, since it makes the whole batch meaningless.
    """
    start_time = time.time()
    try:
        result = engine.execute(job)
        if not result.success:
            raise JobFailure(job.id, result.error_message or f"exit code {result.return_code}")
    except EngineUnavailableError:
        raise
    except JobFailure as e:
        log.warning(str(e))
        return JobOutcome(id=job.id, succeeded=False, error_detail=e.detail,
                          duration_seconds=time.time() - start_time)
    except Exception as e:  # noqa: BLE001
        log.warning(f"Job {job.id} raised {type(e).__name__}: {e}")
        return JobOutcome(id=job.id, succeeded=False, error_detail=f"{type(e).__name__}: {e}",
                          duration_seconds=time.time() - start_time)
    return JobOutcome(id=job.id, succeeded=True, duration_seconds=time.time() - start_time)


# =============================================================================
# Strategies
# =============================================================================

class ExecutionStrategy:
    """Runs a validated batch and returns outcomes in submission order."""

    name = 'base'

    def __init__(self, engine: 'RasterEngine', logger: Optional[logging.Logger] = None):
        self.engine = engine
        self.logger = logger or logging.getLogger(__name__)

    def execute(self, jobs: Sequence[JobDescription], concurrency: int) -> List[JobOutcome]:
        raise NotImplementedError


class SequentialStrategy(ExecutionStrategy):
    name = 'sequential'

    def execute(self, jobs, concurrency):
        return [run_job(self.engine, job, self.logger) for job in jobs]


class ThreadPoolStrategy(ExecutionStrategy):
    name = 'threads'

    def execute(self, jobs, concurrency):
        max_workers = min(concurrency, len(jobs))
        # map preserves submission order
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='basinstats') as pool:
            return list(pool.map(lambda job: run_job(self.engine, job, self.logger), jobs))


class GnuParallelStrategy(ExecutionStrategy):
    """
    Batch-file execution through GNU parallel.

    Requires an engine implementing ``command_for`` and ``run_script`` and an
    open Workspace to hold the command list, script and joblog. A missing
    GNU parallel executable, or a batch that leaves no joblog behind, means
    no job could run at all and raises EngineUnavailableError.
    """

    name = 'gnu_parallel'

    def __init__(
        self,
        engine: 'RasterEngine',
        workspace: 'Workspace',
        parallel_executable: str = 'parallel',
        logger: Optional[logging.Logger] = None,
        job_timeout: Optional[int] = None,
    ):
        super().__init__(engine, logger)
        if workspace is None:
            raise ConfigurationError("The gnu_parallel strategy needs a workspace")
        self.workspace = workspace
        self.parallel_executable = parallel_executable
        self.job_timeout = job_timeout
        self._batch_count = 0

    def check_available(self) -> None:
        if shutil.which(self.parallel_executable) is None:
            raise EngineUnavailableError(
                f"GNU parallel executable not found: {self.parallel_executable}"
            )

    def render(self, job: JobDescription) -> str:
        return shlex.join(str(part) for part in self.engine.command_for(job))

    def execute(self, jobs, concurrency):
        self.check_available()
        self._batch_count += 1
        name = f"{jobs[0].phase.value}_{self._batch_count}"

        cmd_list = self.workspace.write_job_list(jobs, self.render, name=name)
        joblog = self.workspace.path / f"{name}_joblog.tsv"
        script = self.workspace.write_run_script(
            cmd_list, concurrency, joblog,
            parallel_executable=self.parallel_executable, name=name,
            timeout=self.job_timeout,
        )

        self.logger.debug(f"Running {len(jobs)} jobs through {self.parallel_executable} ({script.name})")
        result = self.engine.run_script(script)
        # GNU parallel writes the joblog header before starting any job
        if not joblog.exists():
            raise EngineUnavailableError(
                f"Batch script {script.name} ran no jobs (no joblog written): "
                f"{result.error_message or 'GNU parallel did not start'}"
            )
        if not result.success:
            self.logger.warning(f"Batch script {script.name} reported failure: {result.error_message}")

        return outcomes_from_joblog(jobs, joblog, self.logger)


def read_joblog(joblog: Path) -> pd.DataFrame:
    """
    Read a GNU parallel joblog.

    Returns an empty frame with the joblog columns if the log is missing or
    holds no entries.
    """
    if not joblog.exists() or joblog.stat().st_size == 0:
        return pd.DataFrame(columns=list(JOBLOG_COLUMNS))
    return pd.read_csv(joblog, sep='\t')


def outcomes_from_joblog(
    jobs: Sequence[JobDescription],
    joblog: Path,
    log: Optional[logging.Logger] = None,
) -> List[JobOutcome]:
    """
    Derive one outcome per job from a GNU parallel joblog.

    ``Seq`` is the 1-based line of the command list, i.e. submission order.
    A job with no joblog entry never ran and is reported as failed.
    """
    log = log or logger
    entries = read_joblog(joblog)
    by_seq = {}
    for row in entries.itertuples(index=False):
        by_seq[int(row.Seq)] = row

    outcomes = []
    for seq, job in enumerate(jobs, start=1):
        row = by_seq.get(seq)
        if row is None:
            outcomes.append(JobOutcome(id=job.id, succeeded=False, error_detail="No joblog entry; job did not run"))
            continue
        exit_val = int(row.Exitval)
        signal = int(row.Signal)
        runtime = float(row.JobRuntime)
        if exit_val == 0 and signal == 0:
            outcomes.append(JobOutcome(id=job.id, succeeded=True, duration_seconds=runtime))
        else:
            detail = f"Exit code: {exit_val}" if signal == 0 else f"Killed by signal {signal}"
            log.warning(f"Job {job.id} failed: {detail}")
            outcomes.append(JobOutcome(id=job.id, succeeded=False, error_detail=detail, duration_seconds=runtime))
    return outcomes


# =============================================================================
# Executor
# =============================================================================

class ParallelExecutor:
    """
    Runs batches of engine jobs with a caller-specified concurrency ceiling.

    Args:
        engine: Raster engine collaborator
        strategy: One of ``auto``, ``sequential``, ``threads``, ``gnu_parallel``;
            ``auto`` runs sequentially for concurrency 1 and on threads otherwise
        workspace: Open workspace, required by ``gnu_parallel``
        parallel_executable: GNU parallel executable name
        logger: Logger instance
        job_timeout: Seconds after which GNU parallel kills a job; the other
            strategies leave timeouts to the engine

    Example:
        >>> executor = ParallelExecutor(engine)
        >>> batch = executor.run(jobs, concurrency=4)
        >>> batch.failed_ids
        []
    """

    def __init__(
        self,
        engine: 'RasterEngine',
        strategy: str = 'auto',
        workspace: Optional['Workspace'] = None,
        parallel_executable: str = 'parallel',
        logger: Optional[logging.Logger] = None,
        job_timeout: Optional[int] = None,
    ):
        if strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown execution strategy '{strategy}'. Valid options: {', '.join(STRATEGIES)}"
            )
        self.engine = engine
        self.strategy = strategy
        self.logger = logger or logging.getLogger(__name__)
        self._sequential = SequentialStrategy(engine, self.logger)
        self._threads = ThreadPoolStrategy(engine, self.logger)
        self._gnu_parallel = None
        if strategy == 'gnu_parallel':
            self._gnu_parallel = GnuParallelStrategy(
                engine, workspace, parallel_executable, self.logger, job_timeout=job_timeout,
            )

    def select_strategy(self, concurrency: int) -> ExecutionStrategy:
        if self.strategy == 'gnu_parallel':
            return self._gnu_parallel
        if self.strategy == 'threads':
            return self._threads
        if self.strategy == 'sequential' or concurrency == 1:
            return self._sequential
        return self._threads

    def run(self, jobs: Sequence[JobDescription], concurrency: int) -> BatchResult:
        """
        Execute a batch.

        Args:
            jobs: Jobs in submission order; ids must be unique
            concurrency: Maximum number of engine invocations in flight

        Returns:
            BatchResult with one outcome per job, in submission order

        Raises:
            InvalidConcurrencyError: If concurrency is not an integer >= 1
            ValidationError: If two jobs share an id
            EngineUnavailableError: If the engine cannot be reached
        """
        validate_concurrency(concurrency)
        jobs = list(jobs)
        ids = [str(job.id) for job in jobs]
        if len(set(ids)) != len(ids):
            raise ValidationError("Job ids within a batch must be unique")
        if not jobs:
            return BatchResult(outcomes=())

        strategy = self.select_strategy(concurrency)
        self.logger.info(
            f"Running {len(jobs)} {jobs[0].phase.value} job(s) with concurrency {concurrency} ({strategy.name})"
        )
        outcomes = strategy.execute(jobs, concurrency)

        if len(outcomes) != len(jobs):
            raise JobFailure('batch', f"expected {len(jobs)} outcomes, got {len(outcomes)}")

        batch = BatchResult(outcomes=tuple(outcomes))
        if batch.partially_failed:
            self.logger.warning(
                f"Batch partially failed: {len(batch.failed_ids)} of {len(batch)} job(s) failed"
            )
        return batch


__all__ = [
    'BatchResult',
    'ExecutionStrategy',
    'GnuParallelStrategy',
    'ParallelExecutor',
    'SequentialStrategy',
    'ThreadPoolStrategy',
    'outcomes_from_joblog',
    'read_joblog',
    'validate_concurrency',
]
