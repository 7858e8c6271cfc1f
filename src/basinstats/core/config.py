# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Typed configuration for basinstats.

Configuration files are flat YAML mappings with UPPER_CASE keys, e.g.::

    GRASS_GISDBASE: /data/grassdata
    GRASS_LOCATION: utm17n
    FLOW_DIRECTION_RASTER: dir@PERMANENT
    NUM_PROCESSES: 8
    LOG_LEVEL: INFO

Each section model picks the keys it knows from the flat mapping and ignores
the rest.
"""

from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError

# Standard ConfigDict for all config models
FROZEN_CONFIG = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)

ExecutionStrategyName = Literal['auto', 'sequential', 'threads', 'gnu_parallel']


class GrassConfig(BaseModel):
    """GRASS GIS session settings: executable, database, location, mapset"""
    model_config = FROZEN_CONFIG

    executable: str = Field(default='grass', alias='GRASS_EXECUTABLE')
    gisdbase: Optional[Path] = Field(default=None, alias='GRASS_GISDBASE')
    location: Optional[str] = Field(default=None, alias='GRASS_LOCATION')
    mapset: str = Field(default='PERMANENT', alias='GRASS_MAPSET')
    direction_raster: str = Field(default='dir@PERMANENT', alias='FLOW_DIRECTION_RASTER')

    @field_validator('gisdbase')
    @classmethod
    def expand_gisdbase(cls, v):
        """Expand user home in the GRASS database path."""
        if v is None:
            return v
        return Path(v).expanduser()

    @property
    def mapset_path(self) -> Optional[Path]:
        """Full path of the mapset directory, if the session is configured."""
        if self.gisdbase is None or not self.location:
            return None
        return self.gisdbase / self.location / self.mapset


class ExecutionConfig(BaseModel):
    """Batch execution settings: parallelism, strategy, workspace"""
    model_config = FROZEN_CONFIG

    num_processes: int = Field(default=1, alias='NUM_PROCESSES')
    strategy: ExecutionStrategyName = Field(default='auto', alias='EXECUTION_STRATEGY')
    parallel_executable: str = Field(default='parallel', alias='GNU_PARALLEL_EXECUTABLE')
    job_timeout: Optional[int] = Field(default=None, alias='JOB_TIMEOUT')
    workspace_root: Optional[Path] = Field(default=None, alias='WORKSPACE_ROOT')
    label_prefix: str = Field(default='basin_', alias='BASIN_LABEL_PREFIX')

    @field_validator('num_processes')
    @classmethod
    def validate_positive_integers(cls, v, info):
        """Ensure positive integers"""
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1, got {v}")
        return v

    @field_validator('job_timeout')
    @classmethod
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError(f"job_timeout must be positive seconds, got {v}")
        return v

    @field_validator('workspace_root')
    @classmethod
    def expand_workspace_root(cls, v):
        if v is None:
            return v
        return Path(v).expanduser()


class LoggingConfig(BaseModel):
    """Logging settings"""
    model_config = FROZEN_CONFIG

    log_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(default='INFO', alias='LOG_LEVEL')
    log_file: Optional[Path] = Field(default=None, alias='LOG_FILE')
    log_format: Literal['detailed', 'simple'] = Field(default='detailed', alias='LOG_FORMAT')

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class BasinStatsConfig(BaseModel):
    """Root configuration: one section per concern."""
    model_config = FROZEN_CONFIG

    grass: GrassConfig = Field(default_factory=GrassConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_flat(cls, values: Dict[str, Any]) -> 'BasinStatsConfig':
        """
        Build a configuration from a flat UPPER_CASE mapping.

        Raises:
            ConfigurationError: If any value fails validation
        """
        try:
            return cls(
                grass=GrassConfig.model_validate(values),
                execution=ExecutionConfig.model_validate(values),
                logging=LoggingConfig.model_validate(values),
            )
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> 'BasinStatsConfig':
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file
            overrides: Optional flat overrides applied on top of the file values

        Returns:
            Validated BasinStatsConfig

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse config file {path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Config file {path} must contain a mapping, got {type(file_config).__name__}"
            )

        values = {str(k).upper(): v for k, v in file_config.items()}
        if overrides:
            values.update({str(k).upper(): v for k, v in overrides.items() if v is not None})
        return cls.from_flat(values)

    def with_overrides(self, overrides: Dict[str, Any]) -> 'BasinStatsConfig':
        """Return a new configuration with flat overrides applied; None values are skipped."""
        values = self.to_flat()
        values.update({str(k).upper(): v for k, v in overrides.items() if v is not None})
        return self.from_flat(values)

    def to_flat(self) -> Dict[str, Any]:
        """Flatten back to the UPPER_CASE key layout used in files."""
        flat: Dict[str, Any] = {}
        for section in (self.grass, self.execution, self.logging):
            flat.update(section.model_dump(by_alias=True))
        return flat


__all__ = [
    'BasinStatsConfig',
    'GrassConfig',
    'ExecutionConfig',
    'LoggingConfig',
    'ExecutionStrategyName',
]
