"""
rollback_engine.py — Restores archived files to their original locations.

Every entry is checked against the current filesystem before acting:
the archived file must still exist and nothing may sit at the original
path. Restorations are recorded in a new rollback log; the archive log
itself is never modified.
"""
from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import log_store
from log_store import LogValidationError
from models import ArchiveLogEntry, OperationResult, RollbackLogEntry, RollbackSummary
from utils import now_local

logger = logging.getLogger(__name__)


class RollbackEngine:
    """
    Replays an archive log backwards.

    Args:
        dry_run: When True, only report what would be restored.
        clock:   Returns the current time; used for ``RestoreDate``.
    """

    def __init__(self, dry_run: bool = False, clock: Callable[[], datetime] = now_local):
        self.dry_run = dry_run
        self.clock = clock

    def restore_one(
        self, entry: ArchiveLogEntry
    ) -> Tuple[OperationResult, Optional[RollbackLogEntry]]:
        archived = Path(entry.destination)
        original = Path(entry.source)

        if not archived.exists():
            logger.warning(
                "Archived file '%s' not found (already restored or moved?); skipping.", archived
            )
            return OperationResult(
                item=str(archived), status="failed", destination=str(original),
                reason="Archived file not found",
            ), None

        if original.exists() or original.is_symlink():
            logger.warning("'%s' already exists; would overwrite, skipping.", original)
            return OperationResult(
                item=str(archived), status="failed", destination=str(original),
                reason="Original path already exists",
            ), None

        if self.dry_run:
            if not original.parent.exists():
                logger.info("[DRY RUN] Would create directory '%s'.", original.parent)
            logger.info("[DRY RUN] Would restore '%s' → '%s'.", archived, original)
            return OperationResult(item=str(archived), status="dry_run", destination=str(original)), None

        try:
            original.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(archived), str(original))
        except (OSError, shutil.Error) as exc:
            logger.warning("Failed to restore '%s': %s", archived, exc)
            return OperationResult(
                item=str(archived), status="failed", destination=str(original), reason=str(exc)
            ), None

        logger.info("Restored '%s' → '%s'.", archived, original)
        record = RollbackLogEntry.from_archive_entry(entry, restore_date=self.clock())
        return OperationResult(item=str(archived), status="success", destination=str(original)), record

    def rollback(self, entries: Sequence[ArchiveLogEntry]) -> Tuple[RollbackSummary, List[RollbackLogEntry]]:
        """Process every entry independently; one failure never stops the batch."""
        summary = RollbackSummary()
        records: List[RollbackLogEntry] = []
        for entry in entries:
            result, record = self.restore_one(entry)
            summary.results.append(result)
            if result.status == "success":
                summary.restored += 1
            elif result.status == "dry_run":
                summary.planned += 1
            else:
                summary.failed += 1
            if record is not None:
                records.append(record)
        return summary, records


def run_rollback(
    log_path: Path,
    dry_run: bool = False,
    clock: Callable[[], datetime] = now_local,
) -> RollbackSummary:
    """
    Undo the archive run recorded in *log_path*.

    Raises:
        FileNotFoundError: the log file does not exist.
        LogValidationError: the log is unreadable, malformed or has no entries.
    """
    log_path = Path(log_path).expanduser().resolve()
    entries = log_store.read_archive_log(log_path)
    if not entries:
        raise LogValidationError(f"Archive log has no entries: {log_path}")

    logger.info("Rolling back %d entr(ies) from '%s'.", len(entries), log_path)
    engine = RollbackEngine(dry_run=dry_run, clock=clock)
    summary, records = engine.rollback(entries)

    if records:
        path = log_store.rollback_log_path(log_path.parent, clock())
        summary.log_path = str(log_store.write_rollback_log(path, records))
    elif not dry_run:
        logger.info("Nothing was restored; no rollback log written.")

    mode = "DRY RUN" if dry_run else "APPLY"
    logger.info(
        "[%s] Rollback complete: %d restored, %d planned, %d failed.",
        mode, summary.restored, summary.planned, summary.failed,
    )
    return summary
