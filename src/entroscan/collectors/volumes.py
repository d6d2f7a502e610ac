"""Volume selection for a scan.

Resolves which roots get traversed: either every mounted local volume
reported by psutil or an explicit list of roots, minus the configured
drive-letter and root-path exclusions.
"""

import ntpath
import os
import sys
from collections.abc import Iterator

import psutil

from entroscan.core import logging as log
from entroscan.core.errors import VolumeEnumerationError
from entroscan.models.config import ScanConfig
from entroscan.models.scan import ScanTarget

BYTES_PER_TB = 1024**4


def normalize_root(path: str) -> str:
    """Canonical form of a root path for exact comparison.

    Trailing separators are dropped (except for a bare drive or '/'),
    and the comparison is case-insensitive on Windows-style paths.
    """
    path = path.strip()
    is_windows_style = "\\" in path or ntpath.splitdrive(path)[0] != ""
    if is_windows_style:
        path = path.replace("/", "\\")
        stripped = path.rstrip("\\")
        if len(stripped) == 2 and stripped[1] == ":":
            return stripped.upper() + "\\"
        return (stripped or "\\").lower()
    stripped = path.rstrip("/")
    return stripped or "/"


def drive_letter(root_path: str) -> str | None:
    """Drive letter of a root ('C:\\' -> 'C'), or None for non-drive roots."""
    drive, _ = ntpath.splitdrive(root_path)
    if len(drive) == 2 and drive[1] == ":" and drive[0].isalpha():
        return drive[0].upper()
    return None


class ScanPolicy:
    """Builds the ScanTarget list for a run."""

    def __init__(self, config: ScanConfig) -> None:
        self.config = config
        self._excluded_letters = {letter.upper() for letter in config.excluded_drive_letters}
        self._excluded_roots = {normalize_root(p) for p in config.excluded_root_paths}

    def is_excluded(self, root_path: str) -> bool:
        """Check a root against the letter and path exclusion lists."""
        letter = drive_letter(root_path)
        if letter and letter in self._excluded_letters:
            return True
        return normalize_root(root_path) in self._excluded_roots

    def _iter_mounted(self) -> Iterator[tuple[str, str]]:
        """Yield (mountpoint, fstype) for mounted local volumes."""
        try:
            partitions = psutil.disk_partitions(all=False)
        except (OSError, RuntimeError) as e:
            raise VolumeEnumerationError(f"Cannot list mounted volumes: {e}")

        seen = set()
        for part in partitions:
            if sys.platform == "win32" and "cdrom" in part.opts:
                continue
            if part.mountpoint in seen:
                continue
            seen.add(part.mountpoint)
            yield part.mountpoint, part.fstype

    def _used_bytes(self, root_path: str) -> int | None:
        try:
            return psutil.disk_usage(root_path).used
        except (PermissionError, OSError) as e:
            log.debug(f"Cannot query usage for {root_path}", error=str(e))
            return None

    def enumerate_targets(self) -> list[ScanTarget]:
        """Resolve every candidate root, flagging excluded ones.

        Volumes whose usage cannot be queried are left out entirely.
        """
        targets: list[ScanTarget] = []

        if self.config.root_paths:
            candidates = [(os.path.abspath(p), "") for p in self.config.root_paths]
        else:
            candidates = list(self._iter_mounted())

        for root_path, fstype in candidates:
            excluded = self.is_excluded(root_path)
            if excluded:
                targets.append(ScanTarget(root_path=root_path, is_excluded=True, fstype=fstype))
                continue

            if not os.path.isdir(root_path):
                log.warning(f"Skipping unavailable volume: {root_path}")
                continue

            used = self._used_bytes(root_path)
            if used is None:
                log.warning(f"Skipping unreadable volume: {root_path}")
                continue

            targets.append(
                ScanTarget(root_path=root_path, is_excluded=False, used_bytes=used, fstype=fstype)
            )

        return targets

    def resolve(self) -> list[ScanTarget]:
        """Targets that will actually be traversed, in enumeration order."""
        return [t for t in self.enumerate_targets() if not t.is_excluded]

    def skip_roots(self, targets: list[ScanTarget], root_path: str) -> set[str]:
        """Roots that a walk of root_path must not descend into.

        Every other enumerated root (scanned on its own or excluded) and
        every configured excluded root.
        """
        own = normalize_root(root_path)
        roots = {normalize_root(t.root_path) for t in targets} | self._excluded_roots
        roots.discard(own)
        return roots

    def estimate_total_files(self, targets: list[ScanTarget]) -> int:
        """Rough file count for progress display only.

        Used space in TB times the assumed files-per-TB density. This
        number may be far off and never decides when a scan stops.
        """
        used = sum(t.used_bytes for t in targets if not t.is_excluded)
        estimate = int(used / BYTES_PER_TB * self.config.files_per_tb)
        return max(estimate, 1)
