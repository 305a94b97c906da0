"""
utils.py — Shared helper utilities for the retention archiver.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

# Timestamp format used inside every log file
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
# Timestamp formats used in log file names
DATE_STAMP_FORMAT = "%Y-%m-%d"
FILE_STAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


# ── Paths ─────────────────────────────────────────────────────────────────────

def normalize_path(path: PathLike) -> Path:
    """
    Return an absolute, symlink-resolved path.
    Works for paths that do not exist (yet). Comparisons between resolved
    paths follow the platform rules (case-insensitive on Windows).
    """
    return Path(path).expanduser().resolve()


def ensure_dir(path_str: PathLike) -> Path:
    """Return a resolved Path and ensure it is an existing directory."""
    p = Path(path_str).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"Path does not exist: {p}")
    if not p.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {p}")
    return p


def relative_to_root(path: PathLike, root: PathLike) -> Path:
    """
    Return *path* relative to *root*, comparing normalised forms.
    Raises ValueError if *path* is not located under *root*.
    """
    p = Path(path).expanduser()
    # Resolve the parent only, so a symlinked file keeps its own name and place
    if p.name in ("", ".."):
        located = normalize_path(p)
    else:
        located = normalize_path(p.parent) / p.name
    return located.relative_to(normalize_path(root))


def is_within(path: PathLike, root: PathLike) -> bool:
    """True if *path* equals *root* or lies somewhere below it."""
    try:
        relative_to_root(path, root)
    except ValueError:
        return False
    return True


def unique_path(dest: Path) -> Path:
    """
    If dest exists, append ' (1)', ' (2)', ... before the suffix.
    Returns a Path that does not exist.
    """
    if not dest.exists():
        return dest

    stem = dest.stem
    suffix = dest.suffix
    parent = dest.parent
    i = 1
    while True:
        candidate = parent / f"{stem} ({i}){suffix}"
        if not candidate.exists():
            return candidate
        i += 1


def count_files(directory: Path) -> int:
    """Count regular files currently present anywhere under *directory*."""
    total = 0
    for _dirpath, _dirnames, filenames in os.walk(directory):
        total += len(filenames)
    return total


# ── Timestamps ────────────────────────────────────────────────────────────────

def now_local() -> datetime:
    """Current local time truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a ``YYYY-MM-DD HH:MM:SS`` string. Raises ValueError otherwise."""
    return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
