"""
archiver.py — Moves whole eligible directories into the archive subtree.
Relative paths under the source root are preserved beneath the archive root.
Supports dry-run (preview) and apply (execute) modes.
"""
from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import log_store
from file_scanner import group_by_directory, scan_folder
from models import (
    ArchiveLogEntry,
    ArchiveSettings,
    ArchiveSummary,
    FileRecord,
    OperationResult,
    RetentionDecision,
)
from retention_engine import ARCHIVE, compute_cutoff, evaluate_all
from utils import ensure_dir, now_local, relative_to_root

logger = logging.getLogger(__name__)


class Archiver:
    """
    Moves the files of directories approved by the retention evaluator.

    Args:
        settings: Source root and archive folder for this run.
        dry_run:  When True, log intended moves without touching the filesystem.
        clock:    Returns the current time; used for ``MoveDate``.
    """

    def __init__(
        self,
        settings: ArchiveSettings,
        dry_run: bool = False,
        clock: Callable[[], datetime] = now_local,
    ):
        self.settings = settings
        self.dry_run = dry_run
        self.clock = clock

    # ── Internal helpers ──────────────────────────────────────────────────────

    def destination_for(self, source: Path) -> Path:
        """Mirror *source* below the archive root. Raises ValueError if outside the root."""
        return self.settings.archive_root / relative_to_root(source, self.settings.source_root)

    def _move_file(self, record: FileRecord) -> Tuple[OperationResult, Optional[ArchiveLogEntry]]:
        source = str(record.path)
        try:
            dest_path = self.destination_for(record.path)
        except ValueError:
            logger.warning("'%s' is not under '%s'; skipping.", source, self.settings.source_root)
            return OperationResult(item=source, status="failed", reason="Outside source root"), None

        try:
            # The log is UTF-8; a name it cannot hold could never be rolled back
            source.encode("utf-8")
            str(dest_path).encode("utf-8")
        except UnicodeEncodeError:
            logger.warning("%r has a name that is not valid UTF-8; skipping.", source)
            return OperationResult(
                item=source, status="failed", reason="File name is not valid UTF-8"
            ), None

        if dest_path.exists() or dest_path.is_symlink():
            logger.warning("Archive target already exists, not moving '%s' → '%s'.", source, dest_path)
            return OperationResult(
                item=source, status="failed", destination=str(dest_path),
                reason="Archive target already exists",
            ), None

        if self.dry_run:
            logger.info("[DRY RUN] Would move '%s' → '%s'.", source, dest_path)
            return OperationResult(item=source, status="dry_run", destination=str(dest_path)), None

        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(record.path), str(dest_path))
        except (OSError, shutil.Error) as exc:
            logger.warning("Failed to move '%s': %s", source, exc)
            return OperationResult(
                item=source, status="failed", destination=str(dest_path), reason=str(exc)
            ), None

        logger.info("Moved '%s' → '%s'.", source, dest_path)
        entry = ArchiveLogEntry(
            source=source,
            destination=str(dest_path),
            move_date=self.clock(),
            date_modified=record.last_modified.replace(microsecond=0),
        )
        return OperationResult(item=source, status="success", destination=str(dest_path)), entry

    # ── Public API ────────────────────────────────────────────────────────────

    def archive_directory(
        self, decision: RetentionDecision, files: Sequence[FileRecord]
    ) -> Tuple[List[OperationResult], List[ArchiveLogEntry]]:
        """
        Move every file of one approved directory.
        A failing file is reported and skipped; the rest still move.
        """
        if decision.verdict != ARCHIVE:
            raise ValueError(f"Directory was not approved for archiving: {decision.directory}")

        results: List[OperationResult] = []
        entries: List[ArchiveLogEntry] = []
        for record in files:
            result, entry = self._move_file(record)
            results.append(result)
            if entry is not None:
                entries.append(entry)
        return results, entries


def run_archive(
    settings: ArchiveSettings,
    dry_run: bool = False,
    clock: Callable[[], datetime] = now_local,
) -> ArchiveSummary:
    """
    Scan the source root, archive every directory with no recent file and
    persist the archive log.

    Raises:
        FileNotFoundError / NotADirectoryError: the source root is missing.
    """
    root = ensure_dir(settings.source_root)
    run_time = clock()
    cutoff = compute_cutoff(settings.retention_days, run_time)
    logger.info(
        "Archiving files under '%s' untouched since %s into '%s'.",
        root, cutoff, settings.archive_root,
    )

    records = scan_folder(root, exclude=settings.archive_root)
    summary = ArchiveSummary(cutoff=cutoff)
    if not records:
        logger.info("No files found under '%s'. Nothing to do.", root)
        return summary

    groups = group_by_directory(records)
    decisions = evaluate_all(groups, cutoff)
    files_by_dir = {g.directory: g.files for g in groups}
    summary.directories_scanned = len(decisions)

    archiver = Archiver(settings, dry_run=dry_run, clock=clock)
    entries: List[ArchiveLogEntry] = []
    for decision in decisions:
        if decision.verdict != ARCHIVE:
            summary.directories_skipped += 1
            continue
        summary.directories_archived += 1
        results, moved = archiver.archive_directory(decision, files_by_dir[decision.directory])
        summary.results.extend(results)
        entries.extend(moved)

    summary.files_moved = len(entries)
    summary.files_failed = sum(1 for r in summary.results if r.status == "failed")
    summary.planned = sum(1 for r in summary.results if r.status == "dry_run")

    if summary.directories_archived == 0:
        logger.info("No directories are eligible for archiving.")

    mode = "DRY RUN" if dry_run else "APPLY"
    logger.info(
        "[%s] %d director(ies) archived, %d skipped; %d file(s) moved, %d failed.",
        mode, summary.directories_archived, summary.directories_skipped,
        summary.files_moved, summary.files_failed,
    )

    if entries:
        path = log_store.write_archive_log(log_store.archive_log_path(root, run_time), entries)
        summary.log_path = str(path)
    elif not dry_run:
        logger.info("No files were moved; no archive log written.")
    return summary
