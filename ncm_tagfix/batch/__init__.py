"""
Batch module for ncm-tagfix.

Usage:
    from ncm_tagfix.batch import run

    stats = run([Path("/music")], concurrency=16)
"""

from ncm_tagfix.batch.scheduler import (
    BatchRepairer,
    FileStatus,
    RepairStats,
    expand_paths,
    has_skip_marker,
    log_summary,
    run,
)

__all__ = [
    "BatchRepairer",
    "FileStatus",
    "RepairStats",
    "expand_paths",
    "has_skip_marker",
    "log_summary",
    "run",
]
