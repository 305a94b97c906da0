"""
replicator.py — Copies the source directories named in an archive log
to another root, preserving their paths relative to the source root.

The copy reflects what is on disk *now*, not what the log recorded.
"""
from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import log_store
from log_store import LogValidationError
from models import ArchiveLogEntry, CopyLogEntry, OperationResult, ReplicationSummary
from utils import count_files, is_within, normalize_path, now_local, relative_to_root

logger = logging.getLogger(__name__)


def distinct_directories(entries: Sequence[ArchiveLogEntry]) -> List[Path]:
    """Parent directories of every entry's source, first appearance first."""
    # dict keeps insertion order, so it doubles as an ordered set
    seen = dict.fromkeys(Path(e.source).parent for e in entries)
    return list(seen)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    logger.info("Removed conflicting '%s' at the destination.", path)


def clear_type_conflicts(source: Path, destination: Path) -> None:
    """
    Remove entries under *destination* whose kind differs from the matching
    entry under *source* (a file where a directory is copied, or the reverse),
    so the copy can overwrite them.
    """
    if not (destination.exists() or destination.is_symlink()):
        return
    if destination.is_symlink() or not destination.is_dir():
        _remove(destination)
        return

    for dirpath, dirnames, filenames in os.walk(source):
        target_dir = destination / Path(dirpath).relative_to(source)
        for name in dirnames:
            target = target_dir / name
            if target.is_symlink() or (target.exists() and not target.is_dir()):
                _remove(target)
        for name in filenames:
            target = target_dir / name
            if target.is_dir() and not target.is_symlink():
                _remove(target)


class DirectoryReplicator:
    """
    Args:
        source_root: Root the logged paths were archived from.
        dest_root:   Where the mirrored directories are created.
        dry_run:     When True, only report intended copies.
        clock:       Returns the current time; used for ``CopyDate``.
    """

    def __init__(
        self,
        source_root: Path,
        dest_root: Path,
        dry_run: bool = False,
        clock: Callable[[], datetime] = now_local,
    ):
        self.source_root = normalize_path(source_root)
        self.dest_root = normalize_path(dest_root)
        self.dry_run = dry_run
        self.clock = clock

    def copy_one(self, directory: Path) -> Tuple[OperationResult, Optional[CopyLogEntry]]:
        item = str(directory)
        try:
            destination = self.dest_root / relative_to_root(directory, self.source_root)
        except ValueError:
            logger.warning("'%s' is not under '%s'; skipping.", directory, self.source_root)
            return OperationResult(item=item, status="failed", reason="Outside source root"), None

        if is_within(destination, directory):
            logger.warning("Refusing to copy '%s' into its own subtree '%s'.", directory, destination)
            return OperationResult(
                item=item, status="failed", destination=str(destination),
                reason="Destination is inside the source directory",
            ), None

        if self.dry_run:
            logger.info("[DRY RUN] Would copy '%s' → '%s'.", directory, destination)
            return OperationResult(item=item, status="dry_run", destination=str(destination)), None

        if not directory.is_dir():
            logger.warning("Source directory '%s' no longer exists; skipping.", directory)
            return OperationResult(
                item=item, status="failed", destination=str(destination),
                reason="Source directory not found",
            ), None

        try:
            clear_type_conflicts(directory, destination)
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(directory, destination, dirs_exist_ok=True)
        except (OSError, shutil.Error) as exc:
            logger.warning("Failed to copy '%s': %s", directory, exc)
            return OperationResult(
                item=item, status="failed", destination=str(destination), reason=str(exc)
            ), None

        files = count_files(directory)
        logger.info("Copied '%s' → '%s' (%d file(s)).", directory, destination, files)
        entry = CopyLogEntry(
            source_directory=item,
            destination_directory=str(destination),
            copy_date=self.clock(),
            files_in_directory=files,
        )
        return OperationResult(item=item, status="success", destination=str(destination)), entry

    def replicate(
        self, entries: Sequence[ArchiveLogEntry]
    ) -> Tuple[ReplicationSummary, List[CopyLogEntry]]:
        summary = ReplicationSummary()
        records: List[CopyLogEntry] = []
        for directory in distinct_directories(entries):
            result, record = self.copy_one(directory)
            summary.results.append(result)
            if result.status == "success":
                summary.copied += 1
            elif result.status == "dry_run":
                summary.planned += 1
            else:
                summary.failed += 1
            if record is not None:
                records.append(record)
        return summary, records


def run_replicate(
    log_path: Path,
    dest_root: Path,
    source_root: Optional[Path] = None,
    dry_run: bool = False,
    clock: Callable[[], datetime] = now_local,
) -> ReplicationSummary:
    """
    Copy every directory referenced by the archive log at *log_path*.
    *source_root* defaults to the folder holding the log, which is where
    archive runs write it.

    Raises:
        FileNotFoundError: the log file does not exist.
        LogValidationError: the log is unreadable, malformed or has no entries.
    """
    log_path = Path(log_path).expanduser().resolve()
    entries = log_store.read_archive_log(log_path)
    if not entries:
        raise LogValidationError(f"Archive log has no entries: {log_path}")

    root = normalize_path(source_root) if source_root is not None else log_path.parent
    logger.info(
        "Replicating directories from '%s' (root '%s') to '%s'.", log_path, root, dest_root
    )
    replicator = DirectoryReplicator(root, dest_root, dry_run=dry_run, clock=clock)
    summary, records = replicator.replicate(entries)

    if records:
        path = log_store.copy_log_path(log_path.parent, clock())
        summary.log_path = str(log_store.write_copy_log(path, records))
    elif not dry_run:
        logger.info("Nothing was copied; no copy log written.")

    mode = "DRY RUN" if dry_run else "APPLY"
    logger.info(
        "[%s] Replication complete: %d copied, %d planned, %d failed.",
        mode, summary.copied, summary.planned, summary.failed,
    )
    return summary
