# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Ephemeral workspace for one pipeline run.

The workspace is a uniquely named temporary directory holding every file a
run creates: command lists, generated run scripts, GNU parallel job logs and
per-record statistics documents. It is removed as a whole when the run ends,
whether the run succeeded, failed or was interrupted.

Layout::

    basinstats_<run_id>/
        delineate_cmds.txt
        delineate.sh
        delineate_joblog.tsv
        basin_stats/
            basin_stats_<UID>.txt
"""

import logging
import shlex
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from basinstats.core.exceptions import WorkspaceError, basinstats_error_handler
from basinstats.execution.jobs import JobDescription, result_file_name

RESULTS_SUBDIR = 'basin_stats'


class Workspace:
    """
    Owns the lifecycle of a run's temporary directory tree.

    Usable as a context manager; ``close()`` is idempotent.

    Example:
        >>> with Workspace() as ws:
        ...     path = ws.result_path("gauge_01")
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        prefix: str = 'basinstats_',
        logger: Optional[logging.Logger] = None,
    ):
        self.root = Path(root) if root is not None else None
        self.prefix = prefix
        self.logger = logger or logging.getLogger(__name__)
        self._path: Optional[Path] = None
        self._closed = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> 'Workspace':
        """
        Create the workspace directory.

        Raises:
            WorkspaceError: If the directory cannot be created or the
                workspace was already opened
        """
        if self._path is not None or self._closed:
            raise WorkspaceError("Workspace has already been opened")
        try:
            if self.root is not None:
                self.root.mkdir(parents=True, exist_ok=True)
            self._path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root))
        except OSError as e:
            raise WorkspaceError(f"Could not create workspace under {self.root or tempfile.gettempdir()}: {e}") from e
        self.logger.debug(f"Opened workspace {self._path}")
        return self

    def close(self) -> None:
        """
        Remove everything the workspace created.

        Raises:
            WorkspaceError: If the directory tree cannot be removed
        """
        if self._closed:
            return
        self._closed = True
        path, self._path = self._path, None
        if path is None or not path.exists():
            return
        with basinstats_error_handler(f"removing workspace {path}", self.logger, error_type=WorkspaceError):
            shutil.rmtree(path)
        self.logger.debug(f"Removed workspace {path}")

    def __enter__(self) -> 'Workspace':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.close()
        except WorkspaceError:
            if exc_type is None:
                raise
            # Keep the original error; cleanup failure is secondary
            self.logger.error("Workspace cleanup failed after an earlier error", exc_info=True)

    # =========================================================================
    # Paths
    # =========================================================================

    @property
    def is_open(self) -> bool:
        return self._path is not None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise WorkspaceError("Workspace is not open")
        return self._path

    @property
    def run_id(self) -> str:
        """Unique suffix of the workspace directory name."""
        return self.path.name[len(self.prefix):]

    def subdir(self, name: str) -> Path:
        """Create (if needed) and return a sub-area of the workspace."""
        target = self.path / name
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Could not create workspace area {target}: {e}") from e
        return target

    @property
    def results_dir(self) -> Path:
        return self.subdir(RESULTS_SUBDIR)

    def result_path(self, uid) -> Path:
        """Deterministic path of the statistics document for ``uid``."""
        return self.results_dir / result_file_name(uid)

    # =========================================================================
    # Batch artifacts
    # =========================================================================

    def write_job_list(
        self,
        jobs: Sequence[JobDescription],
        render: Callable[[JobDescription], str],
        name: str = 'jobs',
    ) -> Path:
        """
        Write one rendered command per line, in submission order.

        Args:
            jobs: Jobs to serialize
            render: Turns a job into a single shell command line
            name: Base name of the command list file

        Returns:
            Path to the command list
        """
        cmd_path = self.path / f'{name}_cmds.txt'
        lines = [render(job) for job in jobs]
        self._write(cmd_path, '\n'.join(lines) + '\n')
        self.logger.debug(f"Wrote {len(lines)} commands to {cmd_path}")
        return cmd_path

    def write_run_script(
        self,
        job_list: Path,
        concurrency: int,
        joblog: Path,
        parallel_executable: str = 'parallel',
        name: str = 'jobs',
        timeout: Optional[int] = None,
    ) -> Path:
        """
        Generate an executable script feeding ``job_list`` to GNU parallel.

        With ``timeout`` set, GNU parallel kills any job running longer than
        that many seconds and logs it as failed.

        Returns:
            Path to the script (owner-executable)
        """
        script_path = self.path / f'{name}.sh'
        options = f"--jobs {int(concurrency)}"
        if timeout is not None:
            options += f" --timeout {int(timeout)}"
        script = '\n'.join([
            '#!/bin/bash',
            f"{parallel_executable} {options} --joblog {shlex.quote(str(joblog))} < {shlex.quote(str(job_list))}",
            'exit 0',
        ]) + '\n'
        self._write(script_path, script)
        try:
            script_path.chmod(script_path.stat().st_mode | stat.S_IXUSR)
        except OSError as e:
            raise WorkspaceError(f"Could not make {script_path} executable: {e}") from e
        return script_path

    def _write(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise WorkspaceError(f"Could not write {path}: {e}") from e

    def __repr__(self) -> str:
        state = 'closed' if self._closed else (str(self._path) if self._path else 'unopened')
        return f"Workspace({state})"


__all__ = ['Workspace', 'RESULTS_SUBDIR']
