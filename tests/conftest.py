"""Shared fixtures for Entroscan tests."""

from pathlib import Path

import pytest

from entroscan.core import logging as log
from entroscan.models.config import MIB

UNIFORM_CYCLE = bytes(range(256))


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep stderr clean and reset global log switches between tests."""
    log.configure_logging(log_format="text", quiet=True)
    log.set_verbose(False)
    yield
    log.configure_logging(log_format="text", quiet=False)


@pytest.fixture
def write_file(tmp_path: Path):
    """Write bytes to a file under tmp_path and return its path."""

    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def uniform_mib() -> bytes:
    """1 MiB repeating every byte value in order."""
    return UNIFORM_CYCLE * (MIB // 256)


@pytest.fixture
def zeros_mib() -> bytes:
    """1 MiB of zero bytes."""
    return bytes(MIB)
