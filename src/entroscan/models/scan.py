"""Scan result models for Entroscan."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

PLACEHOLDER = "-"


class EntropyMethod(str, Enum):
    """How an entropy value was obtained."""

    TRUE = "True Entropy"  # every byte of the file, chunk by chunk
    ESTIMATED = "Estimated Entropy"  # one random sample window
    FILENAME = "Filename Entropy"  # characters of the file name


class EntropyResult(BaseModel):
    """Entropy of a single file."""

    value: float = Field(
        ...,
        ge=0.0,
        le=8.0,
        description="Shannon entropy in bits per byte (full precision)",
    )

    method: EntropyMethod = Field(
        ...,
        description="True (chunked) or Estimated (sampled)",
    )

    bytes_processed: int = Field(
        default=0,
        ge=0,
        description="Bytes fed into the histogram",
    )

    model_config = {"frozen": True}

    @property
    def rounded(self) -> float:
        """Entropy rounded for reporting."""
        return round(self.value, 3)


class ScanTarget(BaseModel):
    """A volume root selected for traversal."""

    root_path: str = Field(
        ...,
        description="Mount point or root directory",
    )

    is_excluded: bool = Field(
        default=False,
        description="Excluded by drive letter or root path",
    )

    used_bytes: int = Field(
        default=0,
        ge=0,
        description="Used space reported by the volume",
    )

    fstype: str = Field(
        default="",
        description="Filesystem type reported by the OS",
    )

    model_config = {"frozen": True}


class FileEntry(BaseModel):
    """A regular file yielded by the directory walker."""

    path: str
    size_bytes: int = Field(..., ge=0)
    extension: str = ""
    created: datetime | None = None
    modified: datetime | None = None
    accessed: datetime | None = None

    model_config = {"frozen": True}


class MatchRecord(BaseModel):
    """A file whose entropy exceeded the configured limit."""

    file_path: str
    entropy_value: float = Field(..., ge=0.0, le=8.0)
    method: EntropyMethod
    size_bytes: int = Field(..., ge=0)
    size_display: str
    created: datetime | None = None
    modified: datetime | None = None
    accessed: datetime | None = None
    owner: str = PLACEHOLDER
    signature_status: str = PLACEHOLDER
    signer: str = PLACEHOLDER
    zone_id: str = PLACEHOLDER
    referrer_url: str = PLACEHOLDER
    host_url: str = PLACEHOLDER
    company_name: str = PLACEHOLDER
    product_name: str = PLACEHOLDER
    file_description: str = PLACEHOLDER
    file_version: str = PLACEHOLDER
    original_filename: str = PLACEHOLDER

    model_config = {"frozen": True, "extra": "forbid"}


class ScanProgress(BaseModel):
    """Advisory progress snapshot, never persisted."""

    files_processed: int = 0
    matches_found: int = 0
    batch_number: int = 0
    items_in_memory: int = 0
    estimated_total_files: int = 0

    @property
    def percent_complete(self) -> float:
        """Percent complete against the estimate, held below 100 while running."""
        if self.estimated_total_files <= 0:
            return 0.0
        return min(99.9, self.files_processed * 100.0 / self.estimated_total_files)


class ScanSummary(BaseModel):
    """Outcome of a completed scan."""

    run_id: UUID
    started_at: datetime
    completed_at: datetime
    duration_seconds: float = Field(..., ge=0)
    targets: list[str] = Field(default_factory=list)
    files_processed: int = Field(default=0, ge=0)
    files_skipped: int = Field(default=0, ge=0)
    matches_found: int = Field(default=0, ge=0)
    batches_flushed: int = Field(default=0, ge=0)
    bytes_read: int = Field(default=0, ge=0)
    output_path: str

    model_config = {"extra": "forbid"}
