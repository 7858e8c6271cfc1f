# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Base command class for basinstats CLI commands.

Provides configuration loading from ``--config`` plus command-line
overrides and the shared message helpers used by all handlers.
"""

import sys
from abc import ABC, abstractmethod
from argparse import Namespace
from typing import Any, Dict

from basinstats.core.config import BasinStatsConfig

# Command-line option -> configuration key
CONFIG_OVERRIDES = {
    'gisdbase': 'GRASS_GISDBASE',
    'location': 'GRASS_LOCATION',
    'mapset': 'GRASS_MAPSET',
    'direction_raster': 'FLOW_DIRECTION_RASTER',
    'grass_executable': 'GRASS_EXECUTABLE',
    'strategy': 'EXECUTION_STRATEGY',
    'timeout': 'JOB_TIMEOUT',
    'workspace_root': 'WORKSPACE_ROOT',
    'log_file': 'LOG_FILE',
}


class BaseCommand(ABC):
    """Base class for all CLI command handlers."""

    @staticmethod
    def get_overrides(args: Namespace) -> Dict[str, Any]:
        """Configuration overrides given on the command line."""
        overrides = {}
        for option, key in CONFIG_OVERRIDES.items():
            value = getattr(args, option, None)
            if value is not None:
                overrides[key] = value
        return overrides

    @staticmethod
    def load_config(args: Namespace) -> BasinStatsConfig:
        """
        Load configuration from ``--config`` (if given) with CLI overrides applied.

        Raises:
            ConfigurationError: If the file is missing or any value is invalid
        """
        overrides = BaseCommand.get_overrides(args)
        config_path = getattr(args, 'config', None)
        if config_path:
            config = BasinStatsConfig.from_file(config_path)
        else:
            config = BasinStatsConfig()
        return config.with_overrides(overrides)

    @classmethod
    def print_error(cls, message: str) -> None:
        print(f"Error: {message}", file=sys.stderr)

    @classmethod
    def print_warning(cls, message: str) -> None:
        print(f"Warning: {message}", file=sys.stderr)

    @classmethod
    def print_info(cls, message: str) -> None:
        print(message, file=sys.stderr)

    @staticmethod
    @abstractmethod
    def execute(args: Namespace) -> int:
        """
        Execute the command.

        Args:
            args: Parsed arguments namespace

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        pass
