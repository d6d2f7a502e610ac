"""Batched CSV output for scan matches."""

from entroscan.output.records import COLUMNS, format_size, record_to_row
from entroscan.output.sink import BatchedRecordSink, sort_csv

__all__ = [
    "BatchedRecordSink",
    "COLUMNS",
    "format_size",
    "record_to_row",
    "sort_csv",
]
