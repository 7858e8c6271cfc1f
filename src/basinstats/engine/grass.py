# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
GRASS GIS engine.

Every module call is launched through the GRASS start-up script in
non-interactive mode so each invocation is an independent process attached
to an existing mapset::

    grass <gisdbase>/<location>/<mapset> --exec r.water.outlet ...

Capabilities map to GRASS modules as follows:

- delineate:   ``r.water.outlet`` on the flow direction raster
- zonal_stats: ``r.univar -g`` with the basin raster as zones, one
  ``key=value`` statistic per line
- discard:     ``g.remove -f type=raster pattern=...``
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from basinstats.core.config import GrassConfig
from basinstats.core.exceptions import EngineUnavailableError
from basinstats.engine.base import RasterEngine
from basinstats.engine.subprocess_execution import ExecutionResult, SubprocessExecutionMixin
from basinstats.execution.jobs import JobDescription, JobPhase


class GrassEngine(SubprocessExecutionMixin, RasterEngine):
    """
    Runs delineation and zonal statistics as GRASS modules.

    Args:
        config: GRASS session settings (executable, database, location, mapset)
        timeout: Optional per-invocation timeout in seconds; a timed-out
            invocation is reported as a failed job
        logger: Logger instance
    """

    def __init__(
        self,
        config: GrassConfig,
        timeout: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger=logger or logging.getLogger(__name__))
        self.config = config
        self.timeout = timeout

    @property
    def mapset_path(self) -> Path:
        path = self.config.mapset_path
        if path is None:
            raise EngineUnavailableError(
                "GRASS session is not configured: GRASS_GISDBASE and GRASS_LOCATION are required"
            )
        return path

    def check_session(self) -> None:
        if shutil.which(self.config.executable) is None:
            raise EngineUnavailableError(
                f"GRASS executable '{self.config.executable}' not found on PATH"
            )
        mapset = self.mapset_path
        if not mapset.is_dir():
            raise EngineUnavailableError(f"GRASS mapset does not exist: {mapset}")
        self.logger.debug(f"GRASS session available at {mapset}")

    def session_command(self, module_command: List[str]) -> List[str]:
        """Wrap a GRASS module call so it runs inside the configured mapset."""
        return [self.config.executable, str(self.mapset_path), '--exec', *module_command]

    # =========================================================================
    # Module commands
    # =========================================================================

    def delineate_command(self, x: float, y: float, output_label: str, direction_raster: Optional[str] = None) -> List[str]:
        return [
            'r.water.outlet',
            f'input={direction_raster or self.config.direction_raster}',
            f'coordinates={x!r},{y!r}',
            f'output={output_label}',
            '--overwrite',
            '--quiet',
        ]

    def zonal_stats_command(self, raster_name: str, zone_label: str, output_path: Path) -> List[str]:
        return [
            'r.univar',
            '-g',
            '--overwrite',
            f'map={raster_name}',
            f'zones={zone_label}',
            f'output={output_path}',
            'separator=newline',
        ]

    def discard_command(self, label_pattern: str) -> List[str]:
        return ['g.remove', '-f', 'type=raster', f'pattern={label_pattern}']

    def command_for(self, job: JobDescription) -> List[str]:
        params = job.parameters
        if job.phase is JobPhase.DELINEATE:
            return self.delineate_command(
                params['x'], params['y'], params['output_label'], params.get('direction_raster')
            )
        return self.zonal_stats_command(params['raster_name'], params['zone_label'], Path(params['output_path']))

    # =========================================================================
    # Capabilities
    # =========================================================================

    def delineate(self, x: float, y: float, output_label: str, direction_raster: Optional[str] = None) -> ExecutionResult:
        return self.execute_subprocess(
            self.session_command(self.delineate_command(x, y, output_label, direction_raster)),
            timeout=self.timeout,
            success_message=f"Delineated {output_label}",
        )

    def zonal_stats(self, raster_name: str, zone_label: str, output_path: Path) -> ExecutionResult:
        return self.execute_subprocess(
            self.session_command(self.zonal_stats_command(raster_name, zone_label, output_path)),
            timeout=self.timeout,
            success_message=f"Summarized {raster_name} over {zone_label}",
        )

    def discard(self, label_pattern: str) -> ExecutionResult:
        return self.execute_subprocess(
            self.session_command(self.discard_command(label_pattern)),
            timeout=self.timeout,
            success_message=f"Removed rasters matching {label_pattern}",
            success_log_level=logging.INFO,
        )

    def run_script(self, script_path: Path) -> ExecutionResult:
        # No overall timeout; the script passes --timeout to GNU parallel per job
        return self.execute_subprocess(
            self.session_command(['sh', str(script_path)]),
            success_message=f"Batch script {script_path.name} finished",
        )


__all__ = ['GrassEngine']
