"""Scan orchestration.

The driver walks each selected volume in order, scores every file with
the FileClassifier, enriches matches and hands them to the batched sink.
Everything runs on the calling thread; one file is fully handled before
the next one is looked at.
"""

import random
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import uuid4

from entroscan.collectors.enrichment import enrich
from entroscan.collectors.volumes import ScanPolicy
from entroscan.collectors.walker import walk_files
from entroscan.core import logging as log
from entroscan.entropy.classifier import FileClassifier, SkipReason
from entroscan.entropy.histogram import string_entropy
from entroscan.models.config import ScanConfig
from entroscan.models.scan import (
    EntropyMethod,
    EntropyResult,
    FileEntry,
    MatchRecord,
    ScanProgress,
    ScanSummary,
    ScanTarget,
)
from entroscan.output.records import format_size
from entroscan.output.sink import BatchedRecordSink

Enricher = Callable[[str], dict[str, Any]]
ProgressCallback = Callable[[ScanProgress], None]
FileSource = Callable[..., Iterable[FileEntry]]


class ScanState(str, Enum):
    """Driver lifecycle states."""

    IDLE = "idle"
    ENUMERATING_VOLUMES = "enumerating_volumes"
    SCANNING_VOLUME = "scanning_volume"
    SCANNING_FILE = "scanning_file"
    MATCHED = "matched"
    SKIPPED = "skipped"
    FINALIZING = "finalizing"
    DONE = "done"


def _no_enrichment(path: str) -> dict[str, Any]:
    return {}


def build_match_record(
    entry: FileEntry,
    result: EntropyResult,
    enrichment: dict[str, Any] | None = None,
) -> MatchRecord:
    """Combine a file, its entropy and enrichment fields into a record."""
    fields = {
        key: str(value)
        for key, value in (enrichment or {}).items()
        if key in MatchRecord.model_fields and value not in (None, "")
    }
    return MatchRecord(
        file_path=entry.path,
        entropy_value=round(result.value, 3),
        method=result.method,
        size_bytes=entry.size_bytes,
        size_display=format_size(entry.size_bytes),
        created=entry.created,
        modified=entry.modified,
        accessed=entry.accessed,
        **fields,
    )


class ScanDriver:
    """Runs a full entropy scan and writes matches to a CSV."""

    def __init__(
        self,
        config: ScanConfig,
        output_path: Path,
        policy: ScanPolicy | None = None,
        classifier: FileClassifier | None = None,
        enricher: Enricher | None = None,
        file_source: FileSource = walk_files,
        progress_callback: ProgressCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Validated scan configuration
            output_path: CSV to produce
            policy: Volume selection (defaults to one built from config)
            classifier: File classifier (defaults to one built from config)
            enricher: Metadata lookup for matches (defaults to enrich()
                when config.enrich is set, otherwise none)
            file_source: Function yielding FileEntry objects under a root;
                called with the root and a skip_roots keyword
            progress_callback: Called every config.progress_interval files
            rng: Random source for sampled entropy
        """
        self.config = config
        self.output_path = Path(output_path)
        self.policy = policy or ScanPolicy(config)
        self.classifier = classifier or FileClassifier(config, rng=rng)
        if enricher is None:
            enricher = enrich if config.enrich else _no_enrichment
        self.enricher = enricher
        self.file_source = file_source
        self.progress_callback = progress_callback
        self.sink = BatchedRecordSink(
            self.output_path,
            batch_size_limit=config.batch_size_limit,
            sort_by=config.sort_by,
            sort_run_size=config.sort_run_size,
        )

        self.state = ScanState.IDLE
        self.targets: list[ScanTarget] = []
        self.all_targets: list[ScanTarget] = []
        self.estimated_total_files = 0
        self.files_processed = 0
        self.files_skipped = 0
        self.matches_found = 0
        self.bytes_read = 0

    def progress(self) -> ScanProgress:
        """Current counters as a ScanProgress snapshot."""
        return ScanProgress(
            files_processed=self.files_processed,
            matches_found=self.matches_found,
            batch_number=self.sink.batch_number,
            items_in_memory=self.sink.items_in_memory,
            estimated_total_files=self.estimated_total_files,
        )

    def _report(self) -> None:
        if self.progress_callback and self.files_processed % self.config.progress_interval == 0:
            self.progress_callback(self.progress())

    def enumerate_volumes(self) -> list[ScanTarget]:
        """Resolve the targets and the advisory file-count estimate."""
        self.state = ScanState.ENUMERATING_VOLUMES
        self.all_targets = self.policy.enumerate_targets()
        self.targets = [t for t in self.all_targets if not t.is_excluded]
        self.estimated_total_files = self.policy.estimate_total_files(self.targets)
        log.info(
            f"Scanning {len(self.targets)} volume(s), ~{self.estimated_total_files} files estimated",
            targets=[t.root_path for t in self.targets],
        )
        return self.targets

    def scan_entry(self, entry: FileEntry) -> MatchRecord | None:
        """Score one file; return its record if it matched.

        Per-file failures are contained here: the file counts as skipped
        and the scan moves on.
        """
        self.state = ScanState.SCANNING_FILE
        self.files_processed += 1
        try:
            if self.classifier.skip_reason(entry) is not None:
                self.files_skipped += 1
                self.state = ScanState.SKIPPED
                return None

            result, matched = self.classifier.classify(entry)
            self.bytes_read += result.bytes_processed
            if not matched:
                self.state = ScanState.SKIPPED
                return None

            record = build_match_record(entry, result, self._safe_enrich(entry.path))
        except (OSError, ValueError) as e:
            log.debug(f"Skipping {entry.path}", error=str(e))
            self.files_skipped += 1
            self.state = ScanState.SKIPPED
            return None
        finally:
            self._report()

        self.state = ScanState.MATCHED
        self.matches_found += 1
        self.sink.append(record)
        return record

    def _safe_enrich(self, path: str) -> dict[str, Any]:
        try:
            return self.enricher(path)
        except (OSError, ValueError) as e:
            log.debug(f"Enrichment failed for {path}", error=str(e))
            return {}

    def scan_volume(self, target: ScanTarget) -> None:
        """Walk one volume and score every file on it."""
        self.state = ScanState.SCANNING_VOLUME
        log.info(f"Scanning volume {target.root_path}")
        skip_roots = self.policy.skip_roots(self.all_targets, target.root_path)
        for entry in self.file_source(target.root_path, skip_roots=skip_roots):
            self.scan_entry(entry)

    def run(self) -> ScanSummary:
        """Run the scan to completion.

        Returns:
            ScanSummary with counters and the output path

        Raises:
            SinkWriteError: If matches cannot be written
        """
        run_id = uuid4()
        started_at = datetime.now(UTC)
        start = time.perf_counter()

        self.enumerate_volumes()
        self.sink.open()
        try:
            for target in self.targets:
                self.scan_volume(target)
        except KeyboardInterrupt:
            log.warning("Scan interrupted; output left unsorted")
            self.sink.close()
            raise

        self.state = ScanState.FINALIZING
        self.sink.finalize()
        if self.progress_callback:
            self.progress_callback(self.progress())
        self.state = ScanState.DONE

        return ScanSummary(
            run_id=run_id,
            started_at=started_at,
            completed_at=datetime.now(UTC),
            duration_seconds=round(time.perf_counter() - start, 3),
            targets=[t.root_path for t in self.targets],
            files_processed=self.files_processed,
            files_skipped=self.files_skipped,
            matches_found=self.matches_found,
            batches_flushed=self.sink.batches_flushed,
            bytes_read=self.bytes_read,
            output_path=str(self.output_path),
        )


class FilenameScanDriver(ScanDriver):
    """Scores file names instead of file contents.

    Randomly generated names (dropped payloads, ransom notes with
    victim IDs) stand out by character entropy. No file is opened.
    """

    def __init__(self, config: ScanConfig, output_path: Path, name_limit: float = 3.5, **kwargs: Any) -> None:
        super().__init__(config, output_path, **kwargs)
        self.name_limit = name_limit

    def scan_entry(self, entry: FileEntry) -> MatchRecord | None:
        self.state = ScanState.SCANNING_FILE
        self.files_processed += 1
        try:
            reason = self.classifier.skip_reason(entry)
            if reason is not None and reason is not SkipReason.EMPTY:
                self.files_skipped += 1
                self.state = ScanState.SKIPPED
                return None

            stem = Path(entry.path).stem
            value = string_entropy(stem)
            if value <= self.name_limit:
                self.state = ScanState.SKIPPED
                return None

            result = EntropyResult(
                value=min(value, 8.0),
                method=EntropyMethod.FILENAME,
                bytes_processed=0,
            )
            record = build_match_record(entry, result, self._safe_enrich(entry.path))
        finally:
            self._report()

        self.state = ScanState.MATCHED
        self.matches_found += 1
        self.sink.append(record)
        return record
