"""File entropy readers.

chunked_entropy() streams every byte of a file ("True Entropy") while
holding at most one chunk in memory. sampled_entropy() reads a single
randomly placed window ("Estimated Entropy") so that very large files
cost the same as a small one.

Both readers swallow I/O failures and report 0.0: a file that cannot be
read is simply not a match, and one locked file must not stop the scan.
"""

import os
import random
from pathlib import Path

from entroscan.core import logging as log
from entroscan.entropy.histogram import ByteHistogram
from entroscan.models.config import MIB
from entroscan.models.scan import EntropyMethod, EntropyResult

DEFAULT_CHUNK_SIZE = 5 * MIB
DEFAULT_SAMPLE_SIZE = 10 * MIB


def _unreadable(method: EntropyMethod) -> EntropyResult:
    return EntropyResult(value=0.0, method=method, bytes_processed=0)


def chunked_entropy(
    path: str | Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> EntropyResult:
    """Entropy of a whole file as a size-weighted average of chunk entropies.

    Each chunk gets its own histogram, so memory stays bounded by
    chunk_size regardless of file size. The weighted average is not
    identical to the entropy of a global histogram; with chunk_size at
    least the file size the two are equal.

    Args:
        path: File to read
        chunk_size: Maximum bytes per read

    Returns:
        EntropyResult with method TRUE (value 0.0 on any I/O error)
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    weighted_sum = 0.0
    total_bytes = 0
    chunks = 0
    last_entropy = 0.0

    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                histogram = ByteHistogram.from_bytes(chunk)
                last_entropy = histogram.entropy()
                weighted_sum += last_entropy * histogram.total
                total_bytes += histogram.total
                chunks += 1
    except OSError as e:
        log.debug(f"Unreadable file skipped: {path}", error=str(e))
        return _unreadable(EntropyMethod.TRUE)

    if total_bytes == 0:
        return EntropyResult(value=0.0, method=EntropyMethod.TRUE, bytes_processed=0)

    # A single chunk is the whole file; skip the multiply/divide round trip
    value = last_entropy if chunks == 1 else weighted_sum / total_bytes

    return EntropyResult(
        value=min(value, 8.0),
        method=EntropyMethod.TRUE,
        bytes_processed=total_bytes,
    )


def whole_file_entropy(path: str | Path) -> EntropyResult:
    """Entropy of a single global histogram over the entire file.

    Streams in default-size chunks but merges the counts instead of
    averaging, so the result is exact. Used by the single-file command
    and as a reference for the chunked approximation.
    """
    total = ByteHistogram()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(DEFAULT_CHUNK_SIZE), b""):
                total.add(chunk)
    except OSError as e:
        log.debug(f"Unreadable file skipped: {path}", error=str(e))
        return _unreadable(EntropyMethod.TRUE)

    return EntropyResult(
        value=total.entropy(),
        method=EntropyMethod.TRUE,
        bytes_processed=total.total,
    )


def _read_exact(f, size: int) -> bytes:
    """Read up to size bytes, looping over short reads until EOF."""
    parts = []
    remaining = size
    while remaining > 0:
        data = f.read(remaining)
        if not data:
            break
        parts.append(data)
        remaining -= len(data)
    return b"".join(parts)


def sampled_entropy(
    path: str | Path,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    rng: random.Random | None = None,
    file_size: int | None = None,
) -> EntropyResult:
    """Entropy of one uniformly placed window of a file.

    Files no larger than the window are read whole, which makes the
    result identical to whole-file entropy. Otherwise the window start
    is drawn from [0, file_size - sample_size]; without an injected rng
    every call draws a fresh offset, so repeated runs may differ.

    Args:
        path: File to read
        sample_size: Window size in bytes
        rng: Random source (tests pass a seeded one)
        file_size: Size if already known from enumeration

    Returns:
        EntropyResult with method ESTIMATED (value 0.0 on any I/O error)
    """
    if sample_size <= 0:
        raise ValueError("sample_size must be positive")

    rng = rng or random.Random()

    try:
        with open(path, "rb") as f:
            size = file_size if file_size is not None else os.fstat(f.fileno()).st_size
            if size > sample_size:
                offset = rng.randint(0, size - sample_size)
                f.seek(offset)
            data = _read_exact(f, sample_size)
    except OSError as e:
        log.debug(f"Unreadable file skipped: {path}", error=str(e))
        return _unreadable(EntropyMethod.ESTIMATED)

    histogram = ByteHistogram.from_bytes(data)
    return EntropyResult(
        value=histogram.entropy(),
        method=EntropyMethod.ESTIMATED,
        bytes_processed=histogram.total,
    )
