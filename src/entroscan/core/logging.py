"""Logging and progress utilities for Entroscan.

All progress and log output goes to stderr so that stdout carries only
the scan summary (JSON or human-readable).
"""

import json
import sys
import time
from datetime import UTC, datetime
from typing import Any, Literal

from entroscan.models.scan import ScanProgress

_verbose = False
_quiet = False
_log_format: Literal["text", "json"] = "text"


def set_verbose(verbose: bool) -> None:
    """Set verbose mode."""
    global _verbose
    _verbose = verbose


def configure_logging(
    log_format: Literal["text", "json"] = "text",
    quiet: bool = False,
) -> None:
    """Configure logging settings.

    Args:
        log_format: Output format for log messages
        quiet: Suppress progress output
    """
    global _log_format, _quiet
    _log_format = log_format
    _quiet = quiet


def log(
    message: str,
    level: Literal["debug", "info", "warning", "error"] = "info",
    **context: Any,
) -> None:
    """Log a message to stderr.

    Args:
        message: Log message
        level: Log level
        **context: Additional context to include
    """
    if _quiet and level in ("debug", "info"):
        return

    if level == "debug" and not _verbose:
        return

    if _log_format == "json":
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "message": message,
            **context,
        }
        print(json.dumps(log_entry, default=str), file=sys.stderr)
    else:
        prefix = f"[{level.upper()}]" if level != "info" else ""
        if prefix:
            print(f"{prefix} {message}", file=sys.stderr)
        else:
            print(message, file=sys.stderr)


def debug(message: str, **context: Any) -> None:
    """Log a debug message."""
    log(message, level="debug", **context)


def info(message: str, **context: Any) -> None:
    """Log an info message."""
    log(message, level="info", **context)


def warning(message: str, **context: Any) -> None:
    """Log a warning message."""
    log(message, level="warning", **context)


def error(message: str, **context: Any) -> None:
    """Log an error message."""
    log(message, level="error", **context)


class ProgressReporter:
    """Reports scan progress to stderr.

    The total is only an estimate, so the percentage is advisory and
    never reaches 100 until finish() is called.
    """

    def __init__(self, description: str = "Scanning", unit: str = "files"):
        self.description = description
        self.unit = unit
        self.start_time = time.perf_counter()
        self._last_update = 0.0
        self._last: ScanProgress | None = None

    def update(self, progress: ScanProgress) -> None:
        """Record a progress snapshot and print it if enough time has passed.

        Args:
            progress: Current scan counters
        """
        self._last = progress
        if _quiet:
            return

        now = time.perf_counter()
        if now - self._last_update < 0.1:  # Max 10 updates/second
            return
        self._last_update = now

        self._print_progress(progress)

    def _print_progress(self, progress: ScanProgress) -> None:
        """Print current progress to stderr."""
        elapsed = time.perf_counter() - self.start_time
        rate = progress.files_processed / elapsed if elapsed > 0 else 0

        if _log_format == "json":
            payload = {
                "description": self.description,
                "files_processed": progress.files_processed,
                "matches_found": progress.matches_found,
                "batch_number": progress.batch_number,
                "items_in_memory": progress.items_in_memory,
                "percentage": round(progress.percent_complete, 1),
                "rate": round(rate, 1),
                "unit": self.unit,
            }
            print(json.dumps({"progress": payload}), file=sys.stderr)
        else:
            print(
                f"\r{self.description}: {progress.files_processed} {self.unit} "
                f"(~{progress.percent_complete:.1f}%) - matches: {progress.matches_found} "
                f"- batch: {progress.batch_number} - in memory: {progress.items_in_memory} "
                f"- {rate:.1f} {self.unit}/s",
                end="",
                file=sys.stderr,
            )

    def finish(self) -> None:
        """Mark progress as complete."""
        if _quiet:
            return

        elapsed = time.perf_counter() - self.start_time
        current = self._last.files_processed if self._last else 0
        matches = self._last.matches_found if self._last else 0
        rate = current / elapsed if elapsed > 0 else 0

        if _log_format == "json":
            complete = {
                "description": self.description,
                "total": current,
                "matches_found": matches,
                "duration_seconds": round(elapsed, 2),
                "rate": round(rate, 1),
                "unit": self.unit,
            }
            print(json.dumps({"complete": complete}), file=sys.stderr)
        else:
            print(
                f"\n{self.description}: Complete - {current} {self.unit}, "
                f"{matches} matches in {_format_duration(elapsed)} ({rate:.1f} {self.unit}/s)",
                file=sys.stderr,
            )


def _format_duration(seconds: float) -> str:
    """Format duration in human-readable form."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
