# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
Pour point input records.

A pour point table is a caller-supplied table with a unique identifier column
``UID`` and coordinate columns ``x`` and ``y`` in the engine session's
projection. The table is read once at pipeline start and never modified.
"""

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Tuple, Union

import pandas as pd

from basinstats.core.exceptions import InvalidPourPointError

# UIDs become raster names and file names
UID_PATTERN = re.compile(r'^[A-Za-z0-9_.\-]+$')

REQUIRED_COLUMNS = ('UID', 'x', 'y')


def validate_uid(uid: Any) -> str:
    """
    Return the string form of a UID, rejecting values unusable as names.

    Raises:
        InvalidPourPointError: If the UID is empty or has unsupported characters
    """
    if uid is None or (isinstance(uid, float) and math.isnan(uid)):
        raise InvalidPourPointError("Pour point UID is empty")
    text = str(uid).strip()
    if not text:
        raise InvalidPourPointError("Pour point UID is empty")
    if not UID_PATTERN.match(text):
        raise InvalidPourPointError(
            f"Pour point UID {text!r} may only contain letters, digits, '_', '.' and '-'"
        )
    return text


def validate_coordinate(value: Any, axis: str, uid: Any) -> float:
    """
    Coerce a coordinate to a finite float.

    Raises:
        InvalidPourPointError: If the value is missing, non-numeric or non-finite
    """
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidPourPointError(
            f"Pour point {uid}: {axis} coordinate {value!r} is not numeric"
        ) from e
    if not math.isfinite(number):
        raise InvalidPourPointError(
            f"Pour point {uid}: {axis} coordinate {value!r} is not finite"
        )
    return number


@dataclass(frozen=True)
class PourPoint:
    """A watershed outlet to delineate.

    Attributes:
        uid: Caller-defined identifier, unique within its table
        x: Easting (or longitude) in the engine session's projection
        y: Northing (or latitude) in the engine session's projection
    """
    uid: Union[str, int]
    x: float
    y: float

    @property
    def key(self) -> str:
        """String form of the UID used for labels and file names."""
        return str(self.uid).strip()


class PourPointTable:
    """
    Ordered, read-only collection of pour points with unique UIDs.

    Order is significant: the final statistics table is assembled in the
    same order as this table.
    """

    def __init__(self, points: Iterable[PourPoint]):
        self._points: Tuple[PourPoint, ...] = tuple(points)
        seen = set()
        duplicates = []
        for point in self._points:
            if point.key in seen:
                duplicates.append(point.key)
            seen.add(point.key)
        if duplicates:
            raise InvalidPourPointError(
                f"Duplicate pour point UIDs: {', '.join(sorted(set(duplicates)))}"
            )

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[PourPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> PourPoint:
        return self._points[index]

    def __repr__(self) -> str:
        return f"PourPointTable({len(self)} points)"

    @property
    def uids(self) -> Tuple[str, ...]:
        return tuple(point.key for point in self._points)

    @classmethod
    def from_points(cls, points: Iterable[PourPoint]) -> 'PourPointTable':
        """
        Build a table from PourPoint objects, checking every UID and coordinate.

        Raises:
            InvalidPourPointError: If a point has an unusable UID or coordinate
        """
        checked = []
        for point in points:
            validate_uid(point.uid)
            checked.append(PourPoint(
                uid=point.uid,
                x=validate_coordinate(point.x, 'x', point.uid),
                y=validate_coordinate(point.y, 'y', point.uid),
            ))
        return cls(checked)

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> 'PourPointTable':
        """Build a table from mappings with ``UID``, ``x`` and ``y`` keys."""
        return cls.from_dataframe(pd.DataFrame(list(records)))

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> 'PourPointTable':
        """
        Build a table from a DataFrame.

        Column names are matched case-insensitively; extra columns are ignored.

        Raises:
            InvalidPourPointError: If a required column is missing or a row is invalid
        """
        columns = {str(col).strip().lower(): col for col in df.columns}
        missing = [name for name in REQUIRED_COLUMNS if name.lower() not in columns]
        if missing:
            raise InvalidPourPointError(
                f"Pour point table is missing required column(s): {', '.join(missing)}"
            )

        uid_col = columns['uid']
        x_col = columns['x']
        y_col = columns['y']

        points = []
        for uid, x, y in zip(df[uid_col], df[x_col], df[y_col]):
            validate_uid(uid)
            points.append(PourPoint(
                uid=uid.item() if hasattr(uid, 'item') else uid,
                x=validate_coordinate(x, 'x', uid),
                y=validate_coordinate(y, 'y', uid),
            ))
        return cls(points)

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> 'PourPointTable':
        """
        Read a pour point table from CSV.

        UIDs are read as strings so identifiers such as ``007`` keep their
        leading zeros.
        """
        path = Path(path)
        if not path.exists():
            raise InvalidPourPointError(f"Pour point file not found: {path}")
        df = pd.read_csv(path, dtype={'UID': str, 'uid': str})
        return cls.from_dataframe(df)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{'UID': p.uid, 'x': p.x, 'y': p.y} for p in self._points],
            columns=list(REQUIRED_COLUMNS),
        )


__all__ = ['PourPoint', 'PourPointTable', 'validate_uid', 'validate_coordinate']
