"""Tests for ByteHistogram and the entropy formula."""

import math
import os

import pytest

from entroscan.entropy.histogram import ByteHistogram, shannon_entropy, string_entropy


def test_empty_buffer_has_zero_entropy():
    assert shannon_entropy(b"") == 0.0
    assert ByteHistogram().entropy() == 0.0


@pytest.mark.parametrize("value", [0, 0x41, 255])
def test_single_repeated_byte_has_zero_entropy(value):
    assert shannon_entropy(bytes([value]) * 4096) == 0.0


def test_uniform_cycle_is_eight_bits():
    data = bytes(range(256)) * 64
    assert shannon_entropy(data) == pytest.approx(8.0)
    assert shannon_entropy(data) <= 8.0


def test_two_equiprobable_values_is_one_bit():
    assert shannon_entropy(b"\x00\xff" * 500) == pytest.approx(1.0)


def test_matches_reference_formula():
    data = b"hello, high entropy world" * 3
    expected = 0.0
    for value in set(data):
        p = data.count(value) / len(data)
        expected -= p * math.log2(p)
    assert shannon_entropy(data) == pytest.approx(expected)


def test_entropy_is_bounded_for_random_buffers():
    for size in (1, 17, 1000, 65536):
        value = shannon_entropy(os.urandom(size))
        assert 0.0 <= value <= 8.0


def test_counter_invariant_holds():
    histogram = ByteHistogram()
    histogram.add(b"abcabc")
    histogram.add(bytearray(b"\x00\x00"))
    histogram.add(memoryview(b"z"))
    assert sum(histogram.counts) == histogram.total == 9
    assert len(histogram.counts) == 256
    assert all(count >= 0 for count in histogram.counts)
    assert histogram.counts[ord("a")] == 2
    assert histogram.counts[0] == 2


def test_update_merges_counts_and_reset_clears():
    left = ByteHistogram.from_bytes(b"aaaa")
    right = ByteHistogram.from_bytes(b"bbbb")
    left.update(right)
    assert left.total == 8
    assert left.entropy() == pytest.approx(1.0)

    left.reset()
    assert left.total == 0
    assert sum(left.counts) == 0
    assert left.entropy() == 0.0


def test_string_entropy():
    assert string_entropy("") == 0.0
    assert string_entropy("aaaa") == 0.0
    assert string_entropy("abcd") == pytest.approx(2.0)
    assert string_entropy("x7Qk9ZpL2vRt") > string_entropy("report_final")


def test_buffer_types_count_identically():
    data = os.urandom(4096) + b"\x00\xff" * 100
    expected = ByteHistogram.from_bytes(data)
    for buffer in (bytearray(data), memoryview(data), memoryview(bytearray(data))[10:]):
        histogram = ByteHistogram.from_bytes(buffer)
        assert histogram.total == len(buffer)
        assert sum(histogram.counts) == histogram.total
    assert ByteHistogram.from_bytes(memoryview(data)).counts == expected.counts
    assert expected.counts[0x00] >= 100
    assert expected.counts[0xFF] >= 100
