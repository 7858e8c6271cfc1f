# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""Per-basin statistics records and the ordered result table."""

from dataclasses import asdict, dataclass
from typing import Iterable, Iterator, Optional, Tuple, Union

import pandas as pd

# Output column name -> StatRecord attribute
STAT_COLUMNS = {
    'N': 'n',
    'NULL_CELLS': 'null_cells',
    'CELLS': 'cells',
    'MIN': 'min',
    'MAX': 'max',
    'RANGE': 'range',
    'MEAN': 'mean',
    'MAE': 'mae',
    'STDDEV': 'stddev',
    'VAR': 'var',
    'SUM': 'sum',
}

TABLE_COLUMNS = ['UID'] + list(STAT_COLUMNS)


@dataclass(frozen=True)
class StatRecord:
    """Zonal statistics of one raster over one delineated basin.

    All statistics are floats. A basin without valid cells yields NaN for
    the value statistics.
    """
    uid: Union[str, int]
    n: float
    null_cells: float
    cells: float
    min: float
    max: float
    range: float
    mean: float
    mae: float
    stddev: float
    var: float
    sum: float

    def to_row(self) -> dict:
        values = asdict(self)
        row = {'UID': values.pop('uid')}
        row.update({column: values[attr] for column, attr in STAT_COLUMNS.items()})
        return row


class StatRecordTable:
    """
    Ordered sequence of StatRecord, one per successfully processed pour point.

    Records appear in the order of the input pour point table.
    """

    def __init__(self, records: Iterable[StatRecord] = ()):
        self._records: Tuple[StatRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[StatRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> StatRecord:
        return self._records[index]

    def __repr__(self) -> str:
        return f"StatRecordTable({len(self)} records)"

    @property
    def uids(self) -> Tuple[str, ...]:
        return tuple(str(record.uid) for record in self._records)

    def get(self, uid) -> Optional[StatRecord]:
        """Look up a record by UID (compared as strings)."""
        key = str(uid)
        for record in self._records:
            if str(record.uid) == key:
                return record
        return None

    def to_dataframe(self) -> pd.DataFrame:
        """Return the table as a DataFrame with UID and the eleven statistic columns."""
        return pd.DataFrame([r.to_row() for r in self._records], columns=TABLE_COLUMNS)


__all__ = ['StatRecord', 'StatRecordTable', 'STAT_COLUMNS', 'TABLE_COLUMNS']
