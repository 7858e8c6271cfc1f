# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""Subprocess execution for engine invocations.

Provides ExecutionResult and the SubprocessExecutionMixin used by engines
that drive an external command-line program.
"""

import logging
import os
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from basinstats.core.exceptions import EngineUnavailableError

# Characters of stderr kept in a failed result's error message
ERROR_TAIL_CHARS = 2000


def augment_conda_library_paths(run_env: Dict[str, str]) -> None:
    """Prepend ``$CONDA_PREFIX/lib`` to the platform library search path in *run_env*.

    GRASS installed from conda-forge needs its shared libraries on the loader
    path when launched from a non-activated shell. No-op when ``CONDA_PREFIX``
    is unset; never adds duplicates; mutates *run_env* only.
    """
    conda_prefix = run_env.get('CONDA_PREFIX', '')
    if not conda_prefix:
        return

    if sys.platform == 'win32':
        conda_lib = os.path.join(conda_prefix, 'Library', 'bin')
        env_var = 'PATH'
    elif sys.platform == 'darwin':
        conda_lib = os.path.join(conda_prefix, 'lib')
        env_var = 'DYLD_LIBRARY_PATH'
    else:  # linux / other posix
        conda_lib = os.path.join(conda_prefix, 'lib')
        env_var = 'LD_LIBRARY_PATH'

    current = run_env.get(env_var, '')
    if conda_lib not in current.split(os.pathsep):
        run_env[env_var] = f"{conda_lib}{os.pathsep}{current}" if current else conda_lib


@dataclass
class ExecutionResult:
    """Result of one engine invocation.

    Attributes:
        success: Whether the invocation completed successfully
        return_code: Process return code (0 = success, -1 = timeout)
        duration_seconds: Wall-clock duration
        error_message: Error description if the invocation failed
        metadata: Additional details (captured stdout/stderr, command)
    """
    success: bool
    return_code: int = 0
    duration_seconds: float = 0.0
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class SubprocessExecutionMixin:
    """Mixin providing subprocess execution for engines.

    Requires ``self.logger``.
    """

    def execute_subprocess(
        self,
        command: Union[List[str], str],
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
        success_message: Optional[str] = None,
        success_log_level: int = logging.DEBUG,
    ) -> ExecutionResult:
        """Run a command and describe its outcome; never raises on a non-zero exit.

        Args:
            command: Command to execute (argument list preferred)
            cwd: Working directory for execution
            env: Environment variables (merged with os.environ)
            timeout: Timeout in seconds (None = no timeout)
            success_message: Custom message to log on success
            success_log_level: Log level for the success message

        Returns:
            ExecutionResult with success status, return code and captured output

        Raises:
            EngineUnavailableError: If the executable cannot be found
        """
        start_time = time.time()

        run_env = os.environ.copy()
        augment_conda_library_paths(run_env)
        if env:
            run_env.update(env)

        cmd_str = command if isinstance(command, str) else ' '.join(str(part) for part in command)
        self.logger.debug(f"Executing: {cmd_str}")

        try:
            result = subprocess.run(
                command,
                check=False,
                capture_output=True,
                cwd=cwd,
                env=run_env,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            duration = time.time() - start_time
            self.logger.error(f"Process timed out after {timeout}s: {cmd_str}")
            return ExecutionResult(
                success=False,
                return_code=-1,
                duration_seconds=duration,
                error_message=f"Timeout after {timeout}s",
                metadata={'command': cmd_str},
            )
        except FileNotFoundError as e:
            raise EngineUnavailableError(f"Executable not found for command {cmd_str!r}: {e}") from e

        duration = time.time() - start_time
        exec_result = ExecutionResult(
            success=(result.returncode == 0),
            return_code=result.returncode,
            duration_seconds=duration,
            metadata={'command': cmd_str, 'stdout': result.stdout, 'stderr': result.stderr},
        )

        if exec_result.success:
            msg = success_message or f"Process completed successfully in {duration:.1f}s"
            self.logger.log(success_log_level, msg)
        else:
            stderr_tail = (result.stderr or '').strip()[-ERROR_TAIL_CHARS:]
            exec_result.error_message = f"Exit code: {result.returncode}"
            if stderr_tail:
                exec_result.error_message += f": {stderr_tail}"
            self.logger.debug(f"Process exited with code {result.returncode}: {cmd_str}")

        return exec_result


__all__ = ['ExecutionResult', 'SubprocessExecutionMixin', 'augment_conda_library_paths']
