# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Engine job descriptions and the builder that creates them.

A job is one engine invocation for one pour point in one phase. Building a
job is pure: no I/O, no engine calls. The engine session itself is addressed
through an explicit :class:`EngineContext` rather than ambient state, so two
pipelines can target different sessions side by side.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from basinstats.core.exceptions import ConfigurationError, require, require_not_none
from basinstats.geospatial.pour_points import PourPoint, validate_coordinate, validate_uid

RESULT_FILE_TEMPLATE = 'basin_stats_{uid}.txt'


def result_file_name(uid) -> str:
    """File name of the statistics document for a UID."""
    return RESULT_FILE_TEMPLATE.format(uid=str(uid).strip())


class JobPhase(Enum):
    """Pipeline phase a job belongs to."""
    DELINEATE = "delineate"
    SUMMARIZE = "summarize"


@dataclass(frozen=True)
class EngineContext:
    """Engine session identifiers needed to parameterize jobs.

    Attributes:
        direction_raster: Flow direction raster used for delineation
        stat_raster: Raster layer summarized over each basin
        output_dir: Directory receiving per-UID statistics documents
        label_prefix: Prefix of the basin rasters created by delineation
    """
    direction_raster: str = 'dir@PERMANENT'
    stat_raster: Optional[str] = None
    output_dir: Optional[Path] = None
    label_prefix: str = 'basin_'

    def basin_label(self, uid) -> str:
        return f"{self.label_prefix}{str(uid).strip()}"

    @property
    def discard_pattern(self) -> str:
        """Name pattern matching every basin raster created with this context."""
        return f"{self.label_prefix}*"


@dataclass(frozen=True)
class JobDescription:
    """One engine invocation: which pour point, which phase, with what arguments."""
    id: Union[str, int]
    phase: JobPhase
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JobOutcome:
    """Result of executing one JobDescription."""
    id: Union[str, int]
    succeeded: bool
    error_detail: Optional[str] = None
    duration_seconds: float = 0.0


class JobBuilder:
    """Converts pour points into engine job descriptions."""

    def build(self, pour_point: PourPoint, phase: JobPhase, context: EngineContext) -> JobDescription:
        """
        Build the job for one pour point and phase.

        Raises:
            InvalidPourPointError: If the UID is empty or coordinates are non-finite
            ConfigurationError: If a summarize job lacks a raster or output directory
        """
        uid = validate_uid(pour_point.uid)
        x = validate_coordinate(pour_point.x, 'x', uid)
        y = validate_coordinate(pour_point.y, 'y', uid)

        label = context.basin_label(uid)

        if phase is JobPhase.DELINEATE:
            parameters = {
                'direction_raster': context.direction_raster,
                'x': x,
                'y': y,
                'output_label': label,
            }
        elif phase is JobPhase.SUMMARIZE:
            require(bool(context.stat_raster), "Summarize jobs need a statistics raster name", ConfigurationError)
            output_dir = require_not_none(context.output_dir, "Summarize output directory", ConfigurationError)
            parameters = {
                'raster_name': context.stat_raster,
                'zone_label': label,
                'output_path': Path(output_dir) / result_file_name(uid),
            }
        else:
            raise ConfigurationError(f"Unknown job phase: {phase!r}")

        return JobDescription(id=pour_point.uid, phase=phase, parameters=parameters)


__all__ = [
    'EngineContext',
    'JobBuilder',
    'JobDescription',
    'JobOutcome',
    'JobPhase',
    'result_file_name',
]
