"""Tests for FileClassifier routing, limits and pre-filters."""

import random

import pytest

from entroscan.entropy.classifier import FileClassifier, SkipReason
from entroscan.models.config import ScanConfig
from entroscan.models.scan import EntropyMethod, EntropyResult, FileEntry


@pytest.fixture
def classifier() -> FileClassifier:
    config = ScanConfig(sample_size_bytes=1000, chunk_size_bytes=100)
    return FileClassifier(config, rng=random.Random(0))


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, EntropyMethod.TRUE),
        (999, EntropyMethod.TRUE),
        (1000, EntropyMethod.ESTIMATED),
        (1001, EntropyMethod.ESTIMATED),
        (10**12, EntropyMethod.ESTIMATED),
    ],
)
def test_select_method_by_threshold(classifier, size, expected):
    assert classifier.select_method(size) is expected


def test_explicit_threshold_overrides_sample_size():
    config = ScanConfig(sample_size_bytes=1000, size_threshold_bytes=50)
    classifier = FileClassifier(config)
    assert classifier.select_method(49) is EntropyMethod.TRUE
    assert classifier.select_method(50) is EntropyMethod.ESTIMATED


def test_match_is_strictly_greater_than_limit():
    classifier = FileClassifier(ScanConfig(entropy_limit=7.5))

    def result(value: float) -> EntropyResult:
        return EntropyResult(value=value, method=EntropyMethod.TRUE)

    assert classifier.is_match(result(7.5)) is False
    assert classifier.is_match(result(7.4999)) is False
    assert classifier.is_match(result(7.5001)) is True
    assert classifier.is_match(result(8.0)) is True


def test_zero_entropy_never_matches_even_at_zero_limit():
    classifier = FileClassifier(ScanConfig(entropy_limit=0.0))
    assert not classifier.is_match(EntropyResult(value=0.0, method=EntropyMethod.TRUE))


def test_measure_uses_reader_matching_size(classifier, write_file):
    small = write_file("small.bin", bytes(range(256)) * 2)
    large = write_file("large.bin", bytes(range(256)) * 8)

    assert classifier.measure(str(small), 512).method is EntropyMethod.TRUE
    estimated = classifier.measure(str(large), 2048)
    assert estimated.method is EntropyMethod.ESTIMATED
    assert estimated.bytes_processed == 1000


def test_classify_returns_result_and_verdict(write_file):
    classifier = FileClassifier(ScanConfig(sample_size_bytes=1000))
    path = write_file("uniform.bin", bytes(range(256)) * 2)
    entry = FileEntry(path=str(path), size_bytes=512, extension=".bin")
    result, matched = classifier.classify(entry)
    assert result.value == pytest.approx(8.0)
    assert matched is True


def test_skip_reasons():
    config = ScanConfig(excluded_extensions=["ISO", ".vhdx"], max_file_size_bytes=100)
    classifier = FileClassifier(config)

    def entry(ext: str, size: int) -> FileEntry:
        return FileEntry(path=f"/x/file{ext}", size_bytes=size, extension=ext)

    assert classifier.skip_reason(entry(".iso", 10)) is SkipReason.EXCLUDED_EXTENSION
    assert classifier.skip_reason(entry(".VHDX", 10)) is SkipReason.EXCLUDED_EXTENSION
    assert classifier.skip_reason(entry(".bin", 101)) is SkipReason.TOO_LARGE
    assert classifier.skip_reason(entry(".bin", 100)) is None
    assert classifier.skip_reason(entry(".bin", 0)) is SkipReason.EMPTY
    assert classifier.skip_reason(entry("", 5)) is None


def test_empty_files_kept_when_configured():
    classifier = FileClassifier(ScanConfig(skip_empty_files=False))
    assert classifier.skip_reason(FileEntry(path="/x/e", size_bytes=0)) is None
