"""
Zonal statistics records and result document parsing.
"""

from .parser import RESULT_LAYOUT, StatRecordParser
from .records import STAT_COLUMNS, TABLE_COLUMNS, StatRecord, StatRecordTable

__all__ = [
    "RESULT_LAYOUT",
    "STAT_COLUMNS",
    "TABLE_COLUMNS",
    "StatRecord",
    "StatRecordParser",
    "StatRecordTable",
]
