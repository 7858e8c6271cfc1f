# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Parser for zonal statistics result documents.

The engine writes one ``key=value`` line per statistic in a fixed order
(GRASS ``r.univar -g ... separator=newline``)::

    zone=1;            <- optional, present when a zones raster is used
    n=100
    null_cells=5
    cells=95
    min=1.0
    max=9.0
    range=8.0
    mean=4.5
    mean_of_abs=1.2
    stddev=2.1
    variance=4.41
    coeff_var=46.6     <- not collected
    sum=427.5

The format is positional, so values are read by line index. Key names are
still checked at every collected position so a layout change fails loudly
instead of shifting values into the wrong fields.
"""

import logging
import math
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from basinstats.core.exceptions import MissingResultFileError, UnexpectedFormatError
from basinstats.stats.records import StatRecord

logger = logging.getLogger(__name__)

# (expected key, StatRecord attribute); None marks a position that is skipped
RESULT_LAYOUT: Tuple[Tuple[Optional[str], Optional[str]], ...] = (
    ('n', 'n'),
    ('null_cells', 'null_cells'),
    ('cells', 'cells'),
    ('min', 'min'),
    ('max', 'max'),
    ('range', 'range'),
    ('mean', 'mean'),
    ('mean_of_abs', 'mae'),
    ('stddev', 'stddev'),
    ('variance', 'var'),
    (None, None),
    ('sum', 'sum'),
)

ZONE_HEADER_KEY = 'zone'


class StatRecordParser:
    """Turns one result document into a StatRecord."""

    def __init__(self, layout: Sequence[Tuple[Optional[str], Optional[str]]] = RESULT_LAYOUT):
        self.layout = tuple(layout)

    def parse(self, path: Union[str, Path], uid) -> StatRecord:
        """
        Parse the result file written for ``uid``.

        Raises:
            MissingResultFileError: If the file does not exist
            UnexpectedFormatError: If the document does not match the layout
        """
        path = Path(path)
        if not path.is_file():
            raise MissingResultFileError(f"No result file for {uid}: {path}")
        text = path.read_text(encoding='utf-8')
        return self.parse_text(text, uid, source=str(path))

    def parse_text(self, text: str, uid, source: str = '<string>') -> StatRecord:
        """Parse document content already read into memory."""
        lines = text.splitlines()
        while lines and not lines[-1].strip():
            lines.pop()

        offset = 1 if lines and self._key_of(lines[0]) == ZONE_HEADER_KEY else 0
        required = offset + len(self.layout)
        if len(lines) < required:
            raise UnexpectedFormatError(
                f"{source}: expected at least {required} lines, found {len(lines)}"
            )

        values = {}
        for index, (expected_key, attr) in enumerate(self.layout):
            if expected_key is None:
                continue
            line_no = offset + index
            key, raw_value = self._split(lines[line_no], line_no, source)
            if key != expected_key:
                raise UnexpectedFormatError(
                    f"{source}: line {line_no + 1} has key {key!r}, expected {expected_key!r}"
                )
            values[attr] = self._to_float(raw_value, key, line_no, source)

        logger.debug(f"Parsed statistics for {uid} from {source}")
        return StatRecord(uid=uid, **values)

    @staticmethod
    def _key_of(line: str) -> str:
        return line.split('=', 1)[0].strip().lower()

    @staticmethod
    def _split(line: str, line_no: int, source: str) -> Tuple[str, str]:
        if '=' not in line:
            raise UnexpectedFormatError(
                f"{source}: line {line_no + 1} is not a key=value pair: {line!r}"
            )
        key, value = line.split('=', 1)
        return key.strip().lower(), value.strip()

    @staticmethod
    def _to_float(raw_value: str, key: str, line_no: int, source: str) -> float:
        # An empty value means the zone had no valid cells
        if raw_value == '':
            return math.nan
        try:
            return float(raw_value)
        except ValueError as e:
            raise UnexpectedFormatError(
                f"{source}: line {line_no + 1} value for {key!r} is not numeric: {raw_value!r}"
            ) from e


__all__ = ['StatRecordParser', 'RESULT_LAYOUT']
