"""Batched CSV output for scan matches.

Records are buffered up to a fixed batch size and appended to the CSV in
one write per batch, so a scan of any length holds at most one batch in
memory and a killed scan leaves every flushed batch readable on disk.
Ordering is applied once at the end by finalize(), which sorts the file
on disk with an external merge sort instead of loading it whole.
"""

import csv
import heapq
import os
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Literal

from entroscan.core import logging as log
from entroscan.core.errors import SinkWriteError
from entroscan.models.scan import MatchRecord
from entroscan.output.records import COLUMNS, CREATED_COLUMN, ENTROPY_COLUMN, record_to_row

SortBy = Literal["entropy", "created"]


def _entropy_key(row: list[str]) -> float:
    try:
        return float(row[ENTROPY_COLUMN])
    except (IndexError, ValueError):
        return -1.0


def _created_key(row: list[str]) -> str:
    # ISO timestamps share one offset, so string order is time order; "-" sorts last
    return row[CREATED_COLUMN] if len(row) > CREATED_COLUMN else ""


SORT_KEYS: dict[str, Callable[[list[str]], object]] = {
    "entropy": _entropy_key,
    "created": _created_key,
}


class BatchedRecordSink:
    """Buffers MatchRecords and appends them to a CSV in batches."""

    def __init__(
        self,
        output_path: Path,
        batch_size_limit: int = 100,
        sort_by: SortBy = "entropy",
        sort_run_size: int = 50_000,
    ) -> None:
        """Initialize the sink.

        Args:
            output_path: CSV file to write (truncated when opened)
            batch_size_limit: Records held before a flush
            sort_by: Final descending order, by entropy or creation time
            sort_run_size: Rows sorted in memory per run in finalize()
        """
        if batch_size_limit <= 0:
            raise ValueError("batch_size_limit must be positive")
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")

        self.output_path = Path(output_path)
        self.batch_size_limit = batch_size_limit
        self.sort_by = sort_by
        self.sort_run_size = sort_run_size

        self._batch: list[MatchRecord] = []
        self._opened = False
        self.batches_flushed = 0
        self.records_written = 0

    @property
    def items_in_memory(self) -> int:
        """Records buffered and not yet flushed."""
        return len(self._batch)

    @property
    def batch_number(self) -> int:
        """Number of the batch currently being filled (1-based)."""
        return self.batches_flushed + 1

    def open(self) -> None:
        """Create the output file with its header row."""
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(COLUMNS)
        except OSError as e:
            raise SinkWriteError(f"Cannot create output file: {e}", path=str(self.output_path))
        self._opened = True

    def append(self, record: MatchRecord) -> None:
        """Buffer a record, flushing when the batch is full."""
        if not self._opened:
            self.open()
        self._batch.append(record)
        if len(self._batch) >= self.batch_size_limit:
            self.flush()

    def flush(self) -> None:
        """Append the buffered batch to the CSV and clear it.

        Raises:
            SinkWriteError: If the batch cannot be written
        """
        if not self._batch:
            return
        if not self._opened:
            self.open()

        rows = [record_to_row(record) for record in self._batch]
        try:
            with open(self.output_path, "a", newline="", encoding="utf-8") as f:
                csv.writer(f).writerows(rows)
        except (OSError, csv.Error) as e:
            raise SinkWriteError(f"Cannot write batch to output: {e}", path=str(self.output_path))

        self.records_written += len(rows)
        self.batches_flushed += 1
        log.debug(
            f"Flushed batch {self.batches_flushed} ({len(rows)} records)",
            batch=self.batches_flushed,
            records=len(rows),
        )
        self._batch = []

    def close(self) -> None:
        """Flush any partial batch."""
        if not self._opened:
            self.open()
        self.flush()

    def finalize(self) -> int:
        """Flush remaining records and rewrite the CSV sorted descending.

        Returns:
            Number of data rows in the final file
        """
        self.close()
        return sort_csv(self.output_path, self.sort_by, self.sort_run_size)

    def __enter__(self) -> "BatchedRecordSink":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Leave already-flushed data readable even when the scan failed
        if exc_type is None or not issubclass(exc_type, SinkWriteError):
            self.close()


def _iter_rows(path: Path) -> Iterator[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        yield from csv.reader(f)


def _write_rows(path: Path, header: list[str] | None, rows) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        if header is not None:
            writer.writerow(header)
        writer.writerows(rows)


def sort_csv(path: Path, sort_by: SortBy = "entropy", run_size: int = 50_000) -> int:
    """Sort a CSV file in place, descending, using bounded memory.

    Rows are read in runs of at most run_size, each run is sorted and
    spilled to a temporary file, and the runs are k-way merged into a
    replacement file. A file that fits in one run skips the spill.

    Args:
        path: CSV with a header row
        sort_by: "entropy" or "created"
        run_size: Maximum rows held in memory at once

    Returns:
        Number of data rows

    Raises:
        SinkWriteError: If the file cannot be read back or rewritten
    """
    key = SORT_KEYS[sort_by]
    path = Path(path)
    directory = path.parent
    run_paths: list[Path] = []
    total = 0

    try:
        rows = _iter_rows(path)
        header = next(rows, None)
        if header is None:
            return 0

        run: list[list[str]] = []
        for row in rows:
            if not row:
                continue
            run.append(row)
            total += 1
            if len(run) >= run_size:
                run.sort(key=key, reverse=True)
                run_paths.append(_spill(directory, run))
                run = []
        run.sort(key=key, reverse=True)

        fd, tmp_name = tempfile.mkstemp(prefix=".entroscan-", suffix=".csv", dir=directory)
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            if run_paths:
                if run:
                    run_paths.append(_spill(directory, run))
                    run = []
                merged = heapq.merge(
                    *(_iter_rows(p) for p in run_paths), key=key, reverse=True
                )
                _write_rows(tmp_path, header, merged)
            else:
                _write_rows(tmp_path, header, run)
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
    except (OSError, csv.Error) as e:
        raise SinkWriteError(f"Cannot sort output file: {e}", path=str(path))
    finally:
        for run_path in run_paths:
            try:
                run_path.unlink()
            except OSError:
                log.debug(f"Could not remove sort run {run_path}")

    log.debug(f"Sorted {total} rows by {sort_by}", runs=len(run_paths))
    return total


def _spill(directory: Path, rows: list[list[str]]) -> Path:
    """Write a sorted run to a temporary file and return its path."""
    fd, name = tempfile.mkstemp(prefix=".entroscan-run-", suffix=".csv", dir=directory)
    os.close(fd)
    run_path = Path(name)
    _write_rows(run_path, None, rows)
    return run_path
