"""Tests for BatchedRecordSink and the on-disk sort."""

import csv
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from entroscan.core.errors import SinkWriteError
from entroscan.models.scan import EntropyMethod, MatchRecord
from entroscan.output.records import COLUMNS, format_size, record_to_row
from entroscan.output.sink import BatchedRecordSink, sort_csv

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def make_record(index: int, entropy: float) -> MatchRecord:
    return MatchRecord(
        file_path=f"/evidence/file{index:04d}.bin",
        entropy_value=entropy,
        method=EntropyMethod.TRUE,
        size_bytes=1024 * index,
        size_display=format_size(1024 * index),
        created=BASE_TIME + timedelta(hours=index),
    )


def read_rows(path: Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_format_size():
    assert format_size(0) == "0 bytes"
    assert format_size(1023) == "1023 bytes"
    assert format_size(1536) == "1.50 KB"
    assert format_size(1024**2) == "1.00 MB"
    assert format_size(5 * 1024**5) == "5120.00 TB"


def test_record_to_row_uses_placeholders():
    row = record_to_row(make_record(1, 7.91234))
    assert len(row) == len(COLUMNS)
    assert row[COLUMNS.index("Entropy")] == "7.912"
    assert row[COLUMNS.index("Method")] == "True Entropy"
    assert row[COLUMNS.index("Owner")] == "-"
    assert row[COLUMNS.index("LastWriteTime")] == "-"
    assert row[COLUMNS.index("CreationTime")] == "2024-01-01T01:00:00+00:00"


def test_memory_never_exceeds_batch_limit(tmp_path):
    sink = BatchedRecordSink(tmp_path / "out.csv", batch_size_limit=5)
    sink.open()
    for i in range(23):
        sink.append(make_record(i, 7.6))
        assert sink.items_in_memory <= 5
        assert sink.items_in_memory < 5  # a full batch is flushed immediately

    assert sink.batches_flushed == 4
    assert sink.records_written == 20
    assert sink.items_in_memory == 3
    assert len(read_rows(tmp_path / "out.csv")) == 1 + 20

    sink.close()
    assert sink.records_written == 23
    assert sink.items_in_memory == 0
    assert len(read_rows(tmp_path / "out.csv")) == 1 + 23


def test_each_flush_appends_one_full_batch(tmp_path):
    out = tmp_path / "out.csv"
    sink = BatchedRecordSink(out, batch_size_limit=3)
    sink.open()
    for i in range(3):
        sink.append(make_record(i, 7.6))
    assert sink.batch_number == 2
    assert len(read_rows(out)) == 1 + 3


def test_header_written_without_matches(tmp_path):
    out = tmp_path / "nested" / "out.csv"
    with BatchedRecordSink(out) as sink:
        pass
    assert sink.finalize() == 0
    assert read_rows(out) == [COLUMNS]


def test_open_truncates_previous_output(tmp_path):
    out = tmp_path / "out.csv"
    out.write_text("stale\n", encoding="utf-8")
    BatchedRecordSink(out).open()
    assert read_rows(out) == [COLUMNS]


def test_finalize_sorts_by_entropy_descending(tmp_path):
    out = tmp_path / "out.csv"
    sink = BatchedRecordSink(out, batch_size_limit=4)
    values = [7.6, 7.99, 7.7, 8.0, 7.51, 7.85, 7.9, 7.55, 7.65]
    for i, value in enumerate(values):
        sink.append(make_record(i, value))

    assert sink.finalize() == len(values)
    rows = read_rows(out)
    assert rows[0] == COLUMNS
    entropies = [float(row[1]) for row in rows[1:]]
    assert entropies == sorted(values, reverse=True)


def test_external_sort_with_many_runs(tmp_path):
    out = tmp_path / "out.csv"
    sink = BatchedRecordSink(out, batch_size_limit=7, sort_run_size=10)
    values = [7.5 + ((i * 37) % 50) / 100 for i in range(95)]
    for i, value in enumerate(values):
        sink.append(make_record(i, value))

    assert sink.finalize() == 95
    entropies = [float(row[1]) for row in read_rows(out)[1:]]
    assert entropies == sorted(entropies, reverse=True)
    assert sorted(entropies) == sorted(round(v, 3) for v in values)
    # Spilled runs are cleaned up
    assert sorted(p.name for p in tmp_path.iterdir()) == ["out.csv"]


def test_sort_by_created_descending(tmp_path):
    out = tmp_path / "out.csv"
    sink = BatchedRecordSink(out, batch_size_limit=2, sort_by="created", sort_run_size=3)
    for i in (3, 1, 4, 0, 2):
        sink.append(make_record(i, 7.6 + i / 100))
    sink.finalize()

    paths = [row[0] for row in read_rows(out)[1:]]
    assert paths == [f"/evidence/file{i:04d}.bin" for i in (4, 3, 2, 1, 0)]


def test_sort_csv_on_partial_output(tmp_path):
    # Output left behind by an interrupted scan can be sorted afterwards
    out = tmp_path / "out.csv"
    sink = BatchedRecordSink(out, batch_size_limit=2)
    for i, value in enumerate([7.6, 7.9, 7.7]):
        sink.append(make_record(i, value))
    # last record never flushed
    assert sort_csv(out) == 2
    assert [row[1] for row in read_rows(out)[1:]] == ["7.900", "7.600"]


def test_unwritable_output_is_fatal(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    sink = BatchedRecordSink(blocker / "out.csv")
    with pytest.raises(SinkWriteError) as exc_info:
        sink.open()
    assert exc_info.value.to_structured().code == "SINK_WRITE_ERROR"


def test_invalid_batch_size():
    with pytest.raises(ValueError):
        BatchedRecordSink(Path("out.csv"), batch_size_limit=0)
