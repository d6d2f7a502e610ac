"""Lazy recursive file enumeration.

Directories are visited depth-first with entries sorted by name, so a
given tree is always walked in the same order. Nothing beyond the
current stack of directory listings is held in memory.
"""

import os
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime

from entroscan.collectors.volumes import normalize_root
from entroscan.core import logging as log
from entroscan.models.scan import FileEntry


def _timestamp(value: float | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def _creation_time(st: os.stat_result) -> float | None:
    """Birth time where the platform exposes it, else ctime."""
    birthtime = getattr(st, "st_birthtime", None)
    if birthtime is not None:
        return birthtime
    return st.st_ctime


def _scandir_sorted(path: str) -> list[os.DirEntry] | None:
    try:
        with os.scandir(path) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        log.debug(f"Cannot list directory: {path}", error=str(e))
        return None


def entry_from_stat(path: str, st: os.stat_result) -> FileEntry:
    """Build a FileEntry from a path and its stat result."""
    return FileEntry(
        path=path,
        size_bytes=st.st_size,
        extension=os.path.splitext(path)[1].lower(),
        created=_timestamp(_creation_time(st)),
        modified=_timestamp(st.st_mtime),
        accessed=_timestamp(st.st_atime),
    )


def walk_files(root: str, skip_roots: Iterable[str] = ()) -> Iterator[FileEntry]:
    """Yield every regular file under root.

    Symlinks are not followed. Directories that cannot be listed and
    files that vanish before they are stat'ed are skipped silently.
    Directories named in skip_roots (other volumes mounted below root,
    excluded roots) are not entered.

    Args:
        root: Directory to walk
        skip_roots: Root paths to prune, compared in normalized form

    Yields:
        FileEntry for each regular file
    """
    pruned = {normalize_root(p) for p in skip_roots}
    top = _scandir_sorted(root)
    if top is None:
        return

    # Stack of iterators over sorted listings
    stack: list[Iterator[os.DirEntry]] = [iter(top)]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue

        try:
            if entry.is_dir(follow_symlinks=False):
                if pruned and normalize_root(entry.path) in pruned:
                    log.debug(f"Not descending into separate root: {entry.path}")
                    continue
                children = _scandir_sorted(entry.path)
                if children:
                    stack.append(iter(children))
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            log.debug(f"Cannot stat entry: {entry.path}", error=str(e))
            continue

        yield entry_from_stat(entry.path, st)
