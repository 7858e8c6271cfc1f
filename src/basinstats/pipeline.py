# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Two-phase basin statistics pipeline.

Runs, for every pour point, a delineation job and then a zonal statistics
job against a raster engine, parses each record's result document and
assembles one statistics table in input order. Each phase is a barrier:
zonal statistics need every delineation raster of the batch to exist.

Per-record problems (a failed engine job, a missing or malformed result
file) never abort the run; they are returned as RecordFailure entries next
to the table of records that did succeed. Only conditions that make the
whole batch meaningless are raised:

- EmptyInputError: no pour points
- InvalidConcurrencyError: concurrency is not an integer >= 1
- EngineUnavailableError: the engine session cannot be reached
- WorkspaceError: temporary storage cannot be created or removed

Example:
    >>> pipeline = BasinStatsPipeline(GrassEngine(config.grass), config)
    >>> result = pipeline.run(PourPointTable.from_csv("gauges.csv"), 8, "precip@PERMANENT")
    >>> result.records.to_dataframe()
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple, Union

import pandas as pd

from basinstats.core.config import BasinStatsConfig
from basinstats.core.exceptions import (
    BasinStatsError,
    EmptyInputError,
    ResultParsingError,
    require,
)
from basinstats.core.mixins import TimingMixin
from basinstats.execution.executor import ParallelExecutor, validate_concurrency
from basinstats.execution.jobs import EngineContext, JobBuilder, JobPhase, result_file_name
from basinstats.execution.workspace import Workspace
from basinstats.geospatial.pour_points import PourPoint, PourPointTable
from basinstats.stats.parser import StatRecordParser
from basinstats.stats.records import StatRecordTable

if TYPE_CHECKING:
    from basinstats.engine.base import RasterEngine

PourPointInput = Union[PourPointTable, pd.DataFrame, Iterable[PourPoint]]


class PipelinePhase(Enum):
    """Stage at which a record was lost."""
    DELINEATE = "delineate"
    SUMMARIZE = "summarize"
    COLLECT = "collect"


@dataclass(frozen=True)
class RecordFailure:
    """Why one pour point has no statistics record.

    Attributes:
        uid: Pour point identifier
        phase: ``delineate``, ``summarize`` or ``collect``
        reason: Engine or parser error detail
    """
    uid: Union[str, int]
    phase: str
    reason: str


@dataclass(frozen=True)
class PipelineResult:
    """Statistics for the records that succeeded plus per-UID failures."""
    records: StatRecordTable
    failures: Tuple[RecordFailure, ...] = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return not self.failures

    @property
    def failed_uids(self) -> List[Union[str, int]]:
        return [failure.uid for failure in self.failures]

    def failures_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{'UID': f.uid, 'phase': f.phase, 'reason': f.reason} for f in self.failures],
            columns=['UID', 'phase', 'reason'],
        )


def as_pour_point_table(pour_points: PourPointInput) -> PourPointTable:
    """Accept a PourPointTable, a DataFrame or an iterable of PourPoint."""
    if isinstance(pour_points, PourPointTable):
        return pour_points
    if isinstance(pour_points, pd.DataFrame):
        return PourPointTable.from_dataframe(pour_points)
    return PourPointTable.from_points(pour_points)


class BasinStatsPipeline(TimingMixin):
    """
    Orchestrates delineation, zonal statistics and result collection.

    Args:
        engine: Raster engine collaborator
        config: Configuration; defaults apply when omitted
        strategy: Execution strategy overriding ``EXECUTION_STRATEGY``
        workspace_root: Parent directory for run workspaces overriding
            ``WORKSPACE_ROOT`` (system temp directory when unset)
        logger: Logger instance
    """

    def __init__(
        self,
        engine: 'RasterEngine',
        config: Optional[BasinStatsConfig] = None,
        strategy: Optional[str] = None,
        workspace_root: Optional[Union[str, Path]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.engine = engine
        self.config = config or BasinStatsConfig()
        self.strategy = strategy or self.config.execution.strategy
        self.workspace_root = workspace_root or self.config.execution.workspace_root
        self.logger = logger or logging.getLogger(__name__)
        self.builder = JobBuilder()
        self.parser = StatRecordParser()

    def run(
        self,
        pour_points: PourPointInput,
        concurrency: Optional[int] = None,
        stat_raster: Optional[str] = None,
        context: Optional[EngineContext] = None,
    ) -> PipelineResult:
        """
        Compute zonal statistics of ``stat_raster`` over the basin of every pour point.

        Args:
            pour_points: Input table (UID, x, y)
            concurrency: Maximum engine invocations in flight
                (``NUM_PROCESSES`` when omitted)
            stat_raster: Name of the raster layer to summarize
            context: Engine session identifiers; the flow direction raster
                comes from configuration when omitted

        Returns:
            PipelineResult with records in input order and per-UID failures

        Raises:
            EmptyInputError: If there are no pour points
            InvalidConcurrencyError: If concurrency is not an integer >= 1
            EngineUnavailableError: If the engine session cannot be reached
            WorkspaceError: If the run workspace cannot be created or removed
        """
        table = as_pour_point_table(pour_points)
        if len(table) == 0:
            raise EmptyInputError("Pour point table is empty; nothing to delineate")
        if concurrency is None:
            concurrency = self.config.execution.num_processes
        validate_concurrency(concurrency)
        require(bool(stat_raster), "A statistics raster name is required")

        self.engine.check_session()

        context = context or EngineContext(direction_raster=self.config.grass.direction_raster)
        self.logger.info(
            f"Computing statistics of {stat_raster} for {len(table)} pour point(s) "
            f"with concurrency {concurrency}"
        )

        with Workspace(root=self.workspace_root, logger=self.logger) as workspace:
            run_context = replace(
                context,
                stat_raster=stat_raster,
                output_dir=workspace.results_dir,
                label_prefix=f"{self.config.execution.label_prefix}{workspace.run_id}_",
            )
            executor = ParallelExecutor(
                self.engine,
                strategy=self.strategy,
                workspace=workspace,
                parallel_executable=self.config.execution.parallel_executable,
                logger=self.logger,
                job_timeout=self.config.execution.job_timeout,
            )
            try:
                failures, records = self._run_phases(table, concurrency, run_context, executor)
            finally:
                self._discard_rasters(run_context)

        result = PipelineResult(records=records, failures=tuple(failures))
        if result.is_complete:
            self.logger.info(f"Statistics computed for all {len(records)} pour point(s)")
        else:
            self.logger.warning(
                f"Statistics computed for {len(records)} of {len(table)} pour point(s); "
                f"{len(failures)} failed: {', '.join(str(uid) for uid in result.failed_uids)}"
            )
        return result

    def _run_phases(
        self,
        table: PourPointTable,
        concurrency: int,
        context: EngineContext,
        executor: ParallelExecutor,
    ) -> Tuple[List[RecordFailure], StatRecordTable]:
        failures: List[RecordFailure] = []

        with self.time_limit("Basin delineation"):
            delineated = self._run_batch(
                list(table), JobPhase.DELINEATE, PipelinePhase.DELINEATE,
                concurrency, context, executor, failures,
            )

        with self.time_limit("Zonal statistics"):
            summarized = self._run_batch(
                delineated, JobPhase.SUMMARIZE, PipelinePhase.SUMMARIZE,
                concurrency, context, executor, failures,
            )

        with self.time_limit("Result collection"):
            parsed = {}
            for point in summarized:
                path = Path(context.output_dir) / result_file_name(point.uid)
                try:
                    parsed[point.key] = self.parser.parse(path, point.uid)
                except ResultParsingError as e:
                    self.logger.warning(f"Could not collect statistics for {point.key}: {e}")
                    failures.append(RecordFailure(point.uid, PipelinePhase.COLLECT.value, str(e)))

        # Input order, not completion order
        records = StatRecordTable(parsed[point.key] for point in table if point.key in parsed)
        position = {uid: index for index, uid in enumerate(table.uids)}
        failures.sort(key=lambda failure: position[str(failure.uid).strip()])
        return failures, records

    def _run_batch(
        self,
        points: List[PourPoint],
        job_phase: JobPhase,
        failure_phase: PipelinePhase,
        concurrency: int,
        context: EngineContext,
        executor: ParallelExecutor,
        failures: List[RecordFailure],
    ) -> List[PourPoint]:
        """Run one phase for ``points`` and return the points whose job succeeded."""
        if not points:
            self.logger.info(f"No pour points left for the {job_phase.value} phase")
            return []

        jobs = [self.builder.build(point, job_phase, context) for point in points]
        outcomes = executor.run(jobs, concurrency).outcomes

        succeeded = []
        for point, outcome in zip(points, outcomes):
            if outcome.succeeded:
                succeeded.append(point)
            else:
                failures.append(RecordFailure(
                    point.uid, failure_phase.value, outcome.error_detail or "job failed",
                ))
        return succeeded

    def _discard_rasters(self, context: EngineContext) -> None:
        """Ask the engine to remove this run's basin rasters; failure is only logged."""
        try:
            result = self.engine.discard(context.discard_pattern)
        except BasinStatsError as e:
            self.logger.warning(f"Could not discard rasters matching {context.discard_pattern}: {e}")
            return
        if not result.success:
            self.logger.warning(
                f"Could not discard rasters matching {context.discard_pattern}: {result.error_message}"
            )


__all__ = [
    'BasinStatsPipeline',
    'PipelinePhase',
    'PipelineResult',
    'RecordFailure',
    'as_pour_point_table',
]
