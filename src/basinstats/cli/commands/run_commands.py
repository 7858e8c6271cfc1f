# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Pipeline command handlers for the basinstats CLI.
"""

import sys
from argparse import Namespace

from .base import BaseCommand
from ..exit_codes import ExitCode


class RunCommands(BaseCommand):
    """Handlers for ``basinstats run`` and ``basinstats check-session``."""

    @staticmethod
    def run(args: Namespace) -> int:
        """
        Execute: basinstats run POUR_POINTS_CSV --stat-raster NAME

        Args:
            args: Parsed arguments namespace

        Returns:
            Exit code (0 also when some pour points failed)
        """
        from basinstats.core.exceptions import BasinStatsError, ConfigurationError
        from basinstats.core.logging_manager import LoggingManager
        from basinstats.engine.grass import GrassEngine
        from basinstats.geospatial.pour_points import PourPointTable
        from basinstats.pipeline import BasinStatsPipeline

        debug = getattr(args, 'debug', False)
        try:
            config = BaseCommand.load_config(args)
        except ConfigurationError as e:
            BaseCommand.print_error(f"Configuration error: {e}")
            return ExitCode.CONFIG_ERROR

        logger = LoggingManager(config, debug_mode=debug).logger

        try:
            pour_points = PourPointTable.from_csv(args.pour_points)
            engine = GrassEngine(config.grass, timeout=config.execution.job_timeout, logger=logger)
            pipeline = BasinStatsPipeline(engine, config, logger=logger)

            concurrency = getattr(args, 'procs', None)
            if concurrency is None:
                concurrency = config.execution.num_processes
            result = pipeline.run(pour_points, concurrency=concurrency, stat_raster=args.stat_raster)

        except ConfigurationError as e:
            BaseCommand.print_error(f"Configuration error: {e}")
            return ExitCode.CONFIG_ERROR
        except BasinStatsError as e:
            BaseCommand.print_error(f"Basin statistics run failed: {e}")
            if debug:
                import traceback
                traceback.print_exc()
            return ExitCode.PIPELINE_ERROR

        records = result.records.to_dataframe()
        output = getattr(args, 'output', None)
        if output:
            records.to_csv(output, index=False)
            BaseCommand.print_info(f"Wrote {len(records)} record(s) to {output}")
        else:
            records.to_csv(sys.stdout, index=False)

        if not result.is_complete:
            failures_path = getattr(args, 'failures', None)
            if failures_path:
                result.failures_dataframe().to_csv(failures_path, index=False)
                BaseCommand.print_warning(
                    f"{len(result.failures)} pour point(s) failed; details in {failures_path}"
                )
            else:
                BaseCommand.print_warning(f"{len(result.failures)} pour point(s) failed:")
                for failure in result.failures:
                    BaseCommand.print_info(f"  {failure.uid} [{failure.phase}] {failure.reason}")

        return ExitCode.SUCCESS

    @staticmethod
    def check_session(args: Namespace) -> int:
        """
        Execute: basinstats check-session

        Returns:
            SUCCESS if the GRASS session is reachable, PIPELINE_ERROR otherwise
        """
        from basinstats.core.exceptions import ConfigurationError, EngineUnavailableError
        from basinstats.engine.grass import GrassEngine

        try:
            config = BaseCommand.load_config(args)
        except ConfigurationError as e:
            BaseCommand.print_error(f"Configuration error: {e}")
            return ExitCode.CONFIG_ERROR

        try:
            GrassEngine(config.grass).check_session()
        except EngineUnavailableError as e:
            BaseCommand.print_error(str(e))
            return ExitCode.PIPELINE_ERROR

        BaseCommand.print_info(f"GRASS session available: {config.grass.mapset_path}")
        return ExitCode.SUCCESS

    @staticmethod
    def execute(args: Namespace) -> int:
        return RunCommands.run(args)
