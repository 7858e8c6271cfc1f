# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
basinstats CLI Argument Parser.

Commands:
    - run: Delineate every pour point and summarize a raster over each basin
    - check-session: Verify the configured GRASS session can be reached
"""

import argparse
from typing import List, Optional

try:
    from basinstats.basinstats_version import __version__
except ImportError:
    __version__ = "0+unknown"

EXECUTION_STRATEGIES = ['auto', 'sequential', 'threads', 'gnu_parallel']


class CLIParser:
    """
    Main CLI parser.

    Attributes:
        common_parser: Parent parser with global options (--config, --debug)
        session_parser: Parent parser with GRASS session options
        parser: Main argument parser with all subcommands registered
    """

    def __init__(self):
        self.common_parser = self._create_common_parser()
        self.session_parser = self._create_session_parser()
        self.parser = self._create_parser()

    def _create_common_parser(self) -> argparse.ArgumentParser:
        """Create a parent parser with common arguments."""
        # Use SUPPRESS to avoid overwriting global flags with subcommand defaults
        parser = argparse.ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)
        parser.add_argument('--config', type=str,
                            help='Path to YAML configuration file')
        parser.add_argument('--debug', action='store_true',
                            help='Enable debug output')
        return parser

    def _create_session_parser(self) -> argparse.ArgumentParser:
        """Create a parent parser with GRASS session overrides."""
        parser = argparse.ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)
        parser.add_argument('--gisdbase', type=str,
                            help='GRASS database directory (GRASS_GISDBASE)')
        parser.add_argument('--location', type=str,
                            help='GRASS location (GRASS_LOCATION)')
        parser.add_argument('--mapset', type=str,
                            help='GRASS mapset (GRASS_MAPSET, default: PERMANENT)')
        parser.add_argument('--grass-executable', type=str, dest='grass_executable',
                            help='GRASS start-up executable (GRASS_EXECUTABLE, default: grass)')
        return parser

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main parser with global options and subparsers."""
        parser = argparse.ArgumentParser(
            prog='basinstats',
            description='basinstats - Batch basin delineation and zonal statistics',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            parents=[self.common_parser],
            epilog="""
Examples:
  basinstats run gauges.csv --stat-raster precip@PERMANENT --procs 8 --output stats.csv
  basinstats run gauges.csv --stat-raster elev --config basinstats.yaml --failures failed.csv
  basinstats check-session --gisdbase ~/grassdata --location utm17n

For more help on a specific command:
  basinstats <command> --help
"""
        )

        parser.add_argument('--version', action='version',
                            version=f'basinstats {__version__}')

        subparsers = parser.add_subparsers(
            dest='command',
            required=True,
            help='Command',
            metavar='<command>'
        )

        self._register_run_command(subparsers)
        self._register_check_session_command(subparsers)

        return parser

    def _register_run_command(self, subparsers):
        from .commands import RunCommands

        run_parser = subparsers.add_parser(
            'run',
            help='Compute zonal statistics for every pour point',
            parents=[self.common_parser, self.session_parser]
        )
        run_parser.add_argument('pour_points', type=str,
                                help='CSV file with UID, x and y columns')
        run_parser.add_argument('--stat-raster', type=str, dest='stat_raster', required=True,
                                help='Name of the raster summarized over each basin')
        run_parser.add_argument('--procs', type=int,
                                help='Maximum concurrent engine jobs (NUM_PROCESSES); '
                                     'keep below the number of available cores')
        run_parser.add_argument('--direction-raster', type=str, dest='direction_raster',
                                help='Flow direction raster (FLOW_DIRECTION_RASTER)')
        run_parser.add_argument('--strategy', choices=EXECUTION_STRATEGIES,
                                help='Execution strategy (EXECUTION_STRATEGY)')
        run_parser.add_argument('--timeout', type=int,
                                help='Per-job timeout in seconds (JOB_TIMEOUT)')
        run_parser.add_argument('--workspace-root', type=str, dest='workspace_root',
                                help='Parent directory for the temporary run workspace')
        run_parser.add_argument('--log-file', type=str, dest='log_file',
                                help='Also write the log to this file')
        run_parser.add_argument('--output', '-o', type=str,
                                help='Write the statistics table to this CSV (default: stdout)')
        run_parser.add_argument('--failures', type=str,
                                help='Write per-UID failures to this CSV')
        run_parser.set_defaults(func=RunCommands.run)

    def _register_check_session_command(self, subparsers):
        from .commands import RunCommands

        check_parser = subparsers.add_parser(
            'check-session',
            help='Verify the GRASS session can be reached',
            parents=[self.common_parser, self.session_parser]
        )
        check_parser.set_defaults(func=RunCommands.check_session)

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """
        Parse command-line arguments.

        Args:
            args: List of argument strings (for testing). If None, uses sys.argv.

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)
