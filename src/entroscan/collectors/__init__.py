"""Scan inputs: volume selection, file enumeration and metadata enrichment.

Provides:
- ScanPolicy for choosing which volumes are traversed
- walk_files() for lazy, deterministic file enumeration
- enrich() for owner, signature, zone and version lookups on matches
"""

from entroscan.collectors.enrichment import enrich
from entroscan.collectors.volumes import ScanPolicy
from entroscan.collectors.walker import walk_files

__all__ = [
    "ScanPolicy",
    "enrich",
    "walk_files",
]
