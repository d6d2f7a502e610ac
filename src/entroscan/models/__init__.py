"""Pydantic models for Entroscan."""

from entroscan.models.config import ScanConfig
from entroscan.models.error import StructuredError
from entroscan.models.scan import (
    EntropyMethod,
    EntropyResult,
    FileEntry,
    MatchRecord,
    ScanProgress,
    ScanSummary,
    ScanTarget,
)

__all__ = [
    "EntropyMethod",
    "EntropyResult",
    "FileEntry",
    "MatchRecord",
    "ScanConfig",
    "ScanProgress",
    "ScanSummary",
    "ScanTarget",
    "StructuredError",
]
