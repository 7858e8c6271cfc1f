# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Raster engine capability interface.

The pipeline never talks to a GIS directly. It needs exactly three
capabilities from an engine (delineate a basin, compute zonal statistics,
discard intermediate rasters) plus a session check. Engines that can render
a job as a shell command line additionally support the batch-script
execution strategy.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from basinstats.core.exceptions import ConfigurationError
from basinstats.engine.subprocess_execution import ExecutionResult
from basinstats.execution.jobs import JobDescription, JobPhase


class RasterEngine(ABC):
    """
    Abstract raster engine collaborator.

    Implementations must be safe to call from several worker threads at
    once; each call is an independent engine invocation.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def check_session(self) -> None:
        """
        Verify the engine session can be reached.

        Raises:
            EngineUnavailableError: If the session is not initialized
        """

    @abstractmethod
    def delineate(self, x: float, y: float, output_label: str, direction_raster: Optional[str] = None) -> ExecutionResult:
        """Compute the upstream contributing area of (x, y) and store it as ``output_label``."""

    @abstractmethod
    def zonal_stats(self, raster_name: str, zone_label: str, output_path: Path) -> ExecutionResult:
        """Write the statistics document of ``raster_name`` over ``zone_label`` to ``output_path``."""

    @abstractmethod
    def discard(self, label_pattern: str) -> ExecutionResult:
        """Remove intermediate rasters whose names match ``label_pattern``."""

    def execute(self, job: JobDescription) -> ExecutionResult:
        """Dispatch a job to the capability matching its phase."""
        params = job.parameters
        if job.phase is JobPhase.DELINEATE:
            return self.delineate(
                params['x'],
                params['y'],
                params['output_label'],
                direction_raster=params.get('direction_raster'),
            )
        if job.phase is JobPhase.SUMMARIZE:
            return self.zonal_stats(params['raster_name'], params['zone_label'], Path(params['output_path']))
        raise ConfigurationError(f"Unknown job phase: {job.phase!r}")

    # =========================================================================
    # Batch-script support (optional)
    # =========================================================================

    def command_for(self, job: JobDescription) -> List[str]:
        """Engine command for a job, to be run inside the engine session."""
        raise NotImplementedError(f"{type(self).__name__} cannot render jobs as commands")

    def run_script(self, script_path: Path) -> ExecutionResult:
        """Run a generated shell script inside the engine session."""
        raise NotImplementedError(f"{type(self).__name__} cannot run batch scripts")


__all__ = ['RasterEngine']
