"""
file_scanner.py — Recursive folder scanner for the retention archiver.
Collects every file under the source root with its last-modified time and
groups the results by immediate parent directory.
"""
from __future__ import annotations

import fnmatch
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from log_store import LOG_FILE_PATTERNS
from models import DirectoryGroup, FileRecord
from utils import ensure_dir, normalize_path

logger = logging.getLogger(__name__)


def _is_own_log(name: str) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in LOG_FILE_PATTERNS)


def scan_folder(root_path: Path, exclude: Optional[Path] = None) -> List[FileRecord]:
    """
    Recursively scan *root_path* for files.

    Args:
        root_path: Top-level folder to scan.
        exclude:   Subtree to leave out entirely (the archive folder).

    Returns:
        A list of :class:`FileRecord` objects, sorted by file path.
    """
    root = ensure_dir(root_path)
    excluded = normalize_path(exclude) if exclude is not None else None

    records: List[FileRecord] = []
    for dirpath, dirnames, filenames in os.walk(root, topdown=True):
        current = Path(dirpath)
        if excluded is not None:
            # Prune in place so os.walk never descends into the archive
            dirnames[:] = [d for d in dirnames if normalize_path(current / d) != excluded]
        dirnames.sort()

        for name in sorted(filenames):
            if current == root and _is_own_log(name):
                continue
            file_path = current / name
            try:
                stat = file_path.stat()
            except OSError as exc:
                logger.warning("Skipping unreadable file '%s': %s", file_path, exc)
                continue
            records.append(
                FileRecord(
                    path=file_path,
                    parent=current,
                    last_modified=datetime.fromtimestamp(stat.st_mtime),
                )
            )

    logger.info("Scanning '%s' — found %d file(s).", root, len(records))
    return records


def group_by_directory(records: List[FileRecord]) -> List[DirectoryGroup]:
    """Group records by parent directory, in order of first appearance."""
    groups: Dict[Path, DirectoryGroup] = {}
    for rec in records:
        group = groups.get(rec.parent)
        if group is None:
            group = groups[rec.parent] = DirectoryGroup(directory=rec.parent)
        group.files.append(rec)
    return list(groups.values())
