"""Byte frequency histogram and Shannon entropy.

Counts live in a fixed 256-slot list indexed by byte value. A histogram
is filled from one buffer (a chunk or a sample) and discarded afterwards.
"""

import math
from collections import Counter
from collections.abc import Iterable

ALPHABET_SIZE = 256
MAX_ENTROPY = 8.0


class ByteHistogram:
    """Frequency table over the byte alphabet.

    Invariant: sum(counts) == total and every counter is non-negative.
    """

    __slots__ = ("counts", "total")

    def __init__(self) -> None:
        self.counts: list[int] = [0] * ALPHABET_SIZE
        self.total = 0

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> "ByteHistogram":
        """Build a histogram for a single buffer."""
        histogram = cls()
        histogram.add(data)
        return histogram

    def add(self, data: bytes | bytearray | memoryview) -> None:
        """Accumulate the bytes of a buffer.

        Args:
            data: Buffer to count
        """
        if not data:
            return
        buffer = data if isinstance(data, (bytes, bytearray)) else data.tobytes()
        counts = self.counts
        for value in range(ALPHABET_SIZE):
            counts[value] += buffer.count(value)
        self.total += len(buffer)

    def update(self, other: "ByteHistogram") -> None:
        """Merge another histogram's counts into this one."""
        for value, count in enumerate(other.counts):
            self.counts[value] += count
        self.total += other.total

    def reset(self) -> None:
        """Zero all counters."""
        self.counts = [0] * ALPHABET_SIZE
        self.total = 0

    def entropy(self) -> float:
        """Shannon entropy in bits per byte, full precision."""
        return entropy_from_counts(self.counts, self.total)

    def __len__(self) -> int:
        return self.total


def entropy_from_counts(counts: Iterable[int], total: int) -> float:
    """Compute -sum(p * log2(p)) over the non-zero counters.

    Args:
        counts: Occurrence count per symbol
        total: Sum of all counts

    Returns:
        Entropy in bits per symbol (0.0 when total is 0)
    """
    if total <= 0:
        return 0.0

    entropy = 0.0
    for count in counts:
        if count == 0:
            continue
        p = count / total
        entropy -= p * math.log2(p)

    # Float error can push a uniform distribution a hair past the bound
    return min(max(entropy, 0.0), MAX_ENTROPY)


def shannon_entropy(data: bytes | bytearray | memoryview) -> float:
    """Shannon entropy of a buffer on a 0.0 - 8.0 scale.

    An empty buffer has entropy 0.0. A buffer made of one repeated byte
    value has entropy 0.0 and a buffer containing every byte value the
    same number of times has entropy 8.0.
    """
    return ByteHistogram.from_bytes(data).entropy()


def string_entropy(text: str) -> float:
    """Shannon entropy over the characters of a string.

    Used for file names. The alphabet is not limited to bytes, so the
    result is not capped at 8.0.
    """
    if not text:
        return 0.0
    total = len(text)
    entropy = 0.0
    for count in Counter(text).values():
        p = count / total
        entropy -= p * math.log2(p)
    return entropy
