"""
log_store.py — CSV persistence layer for archive, rollback and copy logs.
Uses pandas for reading and writing; every row is validated into its
typed pydantic model before any caller sees it.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Sequence, Type, TypeVar

import pandas as pd
from pydantic import ValidationError

from models import ArchiveLogEntry, CopyLogEntry, RollbackLogEntry, LogRow
from utils import DATE_STAMP_FORMAT, FILE_STAMP_FORMAT, unique_path

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=LogRow)

# ── File naming ───────────────────────────────────────────────────────────────

ARCHIVE_LOG_PREFIX = "archive_log_"
ROLLBACK_LOG_PREFIX = "rollback_log_"
COPY_LOG_PREFIX = "copy_log_"

# Glob patterns of files this tool writes into a scanned root
LOG_FILE_PATTERNS = (
    f"{ARCHIVE_LOG_PREFIX}*.csv",
    f"{ROLLBACK_LOG_PREFIX}*.csv",
    f"{COPY_LOG_PREFIX}*.csv",
)


class LogValidationError(ValueError):
    """A log file is unreadable, malformed or missing required columns."""


def archive_log_path(root: Path, run_date: datetime) -> Path:
    return root / f"{ARCHIVE_LOG_PREFIX}{run_date.strftime(DATE_STAMP_FORMAT)}.csv"


def rollback_log_path(directory: Path, run_time: datetime) -> Path:
    """Fresh rollback log name; never collides with an existing file."""
    return unique_path(
        directory / f"{ROLLBACK_LOG_PREFIX}{run_time.strftime(FILE_STAMP_FORMAT)}.csv"
    )


def copy_log_path(directory: Path, run_time: datetime) -> Path:
    """Fresh copy log name; never collides with an existing file."""
    return unique_path(
        directory / f"{COPY_LOG_PREFIX}{run_time.strftime(FILE_STAMP_FORMAT)}.csv"
    )


# ── Generic read / write ──────────────────────────────────────────────────────

def _write_rows(path: Path, model: Type[RowT], rows: Sequence[RowT], append: bool) -> Path:
    columns = model.columns()
    frame = pd.DataFrame(
        [row.model_dump(by_alias=True) for row in rows], columns=columns
    )
    exists = append and path.exists()
    frame.to_csv(
        path,
        mode="a" if exists else "w",
        header=not exists,
        index=False,
        encoding="utf-8",
    )
    logger.info("Wrote %d row(s) to '%s'.", len(rows), path)
    return path


def read_log_frame(path: Path) -> pd.DataFrame:
    """
    Load a log file as an all-string DataFrame.

    Raises:
        FileNotFoundError: the file does not exist.
        LogValidationError: the file is empty or cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")
    try:
        # utf-8-sig also accepts logs written with a byte-order mark
        frame = pd.read_csv(
            path, dtype=str, keep_default_na=False, encoding="utf-8-sig"
        )
    except pd.errors.EmptyDataError as exc:
        raise LogValidationError(f"Log file is empty: {path}") from exc
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as exc:
        raise LogValidationError(f"Cannot read log file '{path}': {exc}") from exc
    frame.columns = [str(c).strip() for c in frame.columns]
    return frame


def _read_rows(path: Path, model: Type[RowT]) -> List[RowT]:
    frame = read_log_frame(path)
    required = model.columns()
    missing = [c for c in required if c not in frame.columns]
    if missing:
        raise LogValidationError(
            f"Log file '{path}' is missing required column(s): {', '.join(missing)}"
        )

    rows: List[RowT] = []
    # Line 1 is the header
    for line_no, record in enumerate(frame[required].to_dict(orient="records"), start=2):
        try:
            rows.append(model.model_validate(record))
        except ValidationError as exc:
            raise LogValidationError(f"{path}: invalid row on line {line_no}: {exc}") from exc
    return rows


# ── Public API ────────────────────────────────────────────────────────────────

def write_archive_log(path: Path, entries: Iterable[ArchiveLogEntry]) -> Path:
    """Persist archive entries; appends when a same-day log already exists."""
    return _write_rows(path, ArchiveLogEntry, list(entries), append=True)


def write_rollback_log(path: Path, entries: Iterable[RollbackLogEntry]) -> Path:
    return _write_rows(path, RollbackLogEntry, list(entries), append=False)


def write_copy_log(path: Path, entries: Iterable[CopyLogEntry]) -> Path:
    return _write_rows(path, CopyLogEntry, list(entries), append=False)


def read_archive_log(path: Path) -> List[ArchiveLogEntry]:
    """Load and validate an archive log. The whole file is rejected on any error."""
    entries = _read_rows(Path(path), ArchiveLogEntry)
    duplicates = [src for src, n in Counter(e.source for e in entries).items() if n > 1]
    for src in duplicates:
        logger.warning("Source '%s' appears more than once in '%s'.", src, path)
    return entries


def read_rollback_log(path: Path) -> List[RollbackLogEntry]:
    return _read_rows(Path(path), RollbackLogEntry)


def read_copy_log(path: Path) -> List[CopyLogEntry]:
    return _read_rows(Path(path), CopyLogEntry)
