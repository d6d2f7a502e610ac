"""Scan configuration model for Entroscan."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

MIB = 1024 * 1024


class ScanConfig(BaseModel):
    """Options recognised by a scan.

    Validation happens on construction, so a bad limit or size is
    rejected before any volume is touched.
    """

    excluded_drive_letters: list[str] = Field(
        default_factory=list,
        description="Drive letters to skip (e.g., 'D', 'E:')",
    )

    excluded_root_paths: list[str] = Field(
        default_factory=list,
        description="Volume roots to skip (e.g., '\\\\corp\\dfs')",
    )

    root_paths: list[str] = Field(
        default_factory=list,
        description="Explicit roots to scan instead of enumerating volumes",
    )

    entropy_limit: float = Field(
        default=7.5,
        ge=0.0,
        le=8.0,
        description="Files strictly above this entropy are reported",
    )

    chunk_size_bytes: int = Field(
        default=5 * MIB,
        gt=0,
        description="Read size for true-entropy streaming",
    )

    sample_size_bytes: int = Field(
        default=10 * MIB,
        gt=0,
        description="Window size for estimated entropy",
    )

    size_threshold_bytes: int | None = Field(
        default=None,
        gt=0,
        description="Files at or above this size are sampled (defaults to sample size)",
    )

    batch_size_limit: int = Field(
        default=100,
        gt=0,
        description="Records held in memory before a flush",
    )

    excluded_extensions: list[str] = Field(
        default_factory=list,
        description="File extensions to skip (case-insensitive)",
    )

    max_file_size_bytes: int | None = Field(
        default=None,
        gt=0,
        description="Files larger than this are skipped entirely",
    )

    skip_empty_files: bool = Field(
        default=True,
        description="Skip zero-length files without opening them",
    )

    files_per_tb: int = Field(
        default=1_000_000,
        gt=0,
        description="Assumed file density for the progress estimate",
    )

    progress_interval: int = Field(
        default=1000,
        gt=0,
        description="Files between progress updates",
    )

    sort_by: Literal["entropy", "created"] = Field(
        default="entropy",
        description="Final ordering of the output (descending)",
    )

    sort_run_size: int = Field(
        default=50_000,
        gt=0,
        description="Rows sorted in memory per run during finalization",
    )

    enrich: bool = Field(
        default=True,
        description="Look up owner, signature, zone and version fields for matches",
    )

    model_config = {"extra": "forbid"}

    @field_validator("excluded_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Store extensions lowercase with a leading dot."""
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @field_validator("excluded_drive_letters")
    @classmethod
    def normalize_drive_letters(cls, v: list[str]) -> list[str]:
        """Reduce 'd', 'D:' and 'D:\\' to 'D'."""
        letters = []
        for letter in v:
            letter = letter.strip().rstrip("\\/").rstrip(":").upper()
            if letter:
                letters.append(letter)
        return letters

    @property
    def effective_threshold(self) -> int:
        """Size at which sampling takes over from chunked reading."""
        return self.size_threshold_bytes or self.sample_size_bytes
