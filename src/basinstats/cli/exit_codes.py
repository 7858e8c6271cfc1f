# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Process exit codes of the basinstats CLI.

A run that produced statistics for only some pour points still exits with
SUCCESS; the failures are written or reported next to the records.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    PIPELINE_ERROR = 1
    CONFIG_ERROR = 2
    INTERRUPTED = 130


__all__ = ['ExitCode']
