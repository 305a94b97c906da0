"""
models.py — Pydantic data models for the retention archiver.
All models use Pydantic v2 for strict validation.

Log row models carry the CSV column names as field aliases, so a row read
from disk validates straight into a typed entry and dumps back with
``model_dump(by_alias=True)``.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path, PurePath
from typing import Annotated, List, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from utils import format_timestamp, normalize_path, parse_timestamp


def _coerce_timestamp(value: object) -> object:
    if isinstance(value, str):
        return parse_timestamp(value)
    return value


# datetime stored as "YYYY-MM-DD HH:MM:SS" in every log file
LogTimestamp = Annotated[
    datetime,
    BeforeValidator(_coerce_timestamp),
    PlainSerializer(format_timestamp, return_type=str),
]


def _absolute_path(value: str) -> str:
    if not value.strip():
        raise ValueError("path must not be empty")
    if not PurePath(value).is_absolute():
        raise ValueError(f"path must be absolute: {value!r}")
    return value


# Paths in a log are replayed against the filesystem, so "" or "." must never pass
LogPath = Annotated[str, AfterValidator(_absolute_path)]


# ── Configuration ─────────────────────────────────────────────────────────────

class ArchiveSettings(BaseModel):
    """Explicit per-run configuration threaded into every component."""
    model_config = ConfigDict(frozen=True)

    source_root: Path
    archive_folder: str = "old"
    retention_days: int = Field(default=365, ge=1)

    @field_validator("source_root", mode="before")
    @classmethod
    def _resolve_root(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("source_root is required")
        if isinstance(value, (str, PurePath)):
            return normalize_path(value)
        return value

    @field_validator("archive_folder")
    @classmethod
    def _relative_folder(cls, value: str) -> str:
        value = value.strip()
        folder = PurePath(value)
        if not value or folder.is_absolute() or folder.anchor:
            raise ValueError("archive_folder must be a relative folder name")
        if ".." in folder.parts:
            raise ValueError("archive_folder must not contain '..'")
        return value

    @property
    def archive_root(self) -> Path:
        return self.source_root / self.archive_folder


# ── Scan / decision (transient) ───────────────────────────────────────────────

class FileRecord(BaseModel):
    """Snapshot of one file discovered during a scan."""
    model_config = ConfigDict(frozen=True)

    path: Path
    parent: Path
    last_modified: datetime


class DirectoryGroup(BaseModel):
    """All files observed directly inside one directory."""
    directory: Path
    files: List[FileRecord] = Field(default_factory=list)


class RetentionDecision(BaseModel):
    """Whole-directory verdict produced by the retention evaluator."""
    model_config = ConfigDict(frozen=True)

    directory: Path
    verdict: Literal["archive", "skip"]
    newest_modified: Optional[datetime] = None


# ── Persisted log rows ────────────────────────────────────────────────────────

class LogRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def columns(cls) -> List[str]:
        """CSV header for this log kind, in file order."""
        return [field.alias or name for name, field in cls.model_fields.items()]


class ArchiveLogEntry(LogRow):
    """One successfully archived file."""
    source: LogPath = Field(alias="Source")
    destination: LogPath = Field(alias="Destination")
    move_date: LogTimestamp = Field(alias="MoveDate")
    date_modified: LogTimestamp = Field(alias="DateModified")


class RollbackLogEntry(LogRow):
    """One successfully restored file, with the original archive metadata."""
    original_source: LogPath = Field(alias="OriginalSource")
    archived_path: LogPath = Field(alias="ArchivedPath")
    restore_date: LogTimestamp = Field(alias="RestoreDate")
    original_move_date: LogTimestamp = Field(alias="OriginalMoveDate")
    original_date_modified: LogTimestamp = Field(alias="OriginalDateModified")

    @classmethod
    def from_archive_entry(
        cls, entry: ArchiveLogEntry, restore_date: datetime
    ) -> "RollbackLogEntry":
        return cls(
            original_source=entry.source,
            archived_path=entry.destination,
            restore_date=restore_date,
            original_move_date=entry.move_date,
            original_date_modified=entry.date_modified,
        )


class CopyLogEntry(LogRow):
    """One directory replicated to the destination root."""
    source_directory: LogPath = Field(alias="SourceDirectory")
    destination_directory: LogPath = Field(alias="DestinationDirectory")
    copy_date: LogTimestamp = Field(alias="CopyDate")
    files_in_directory: int = Field(alias="FilesInDirectory", ge=0)


# ── Operation results ─────────────────────────────────────────────────────────

class OperationResult(BaseModel):
    """Outcome of one per-item operation (move, restore or copy)."""
    item: str
    status: Literal["success", "failed", "dry_run"]
    destination: str = ""
    reason: str = ""


class ArchiveSummary(BaseModel):
    cutoff: datetime
    directories_scanned: int = 0
    directories_archived: int = 0
    directories_skipped: int = 0
    files_moved: int = 0
    files_failed: int = 0
    planned: int = 0
    log_path: Optional[str] = None
    results: List[OperationResult] = Field(default_factory=list)


class RollbackSummary(BaseModel):
    restored: int = 0
    failed: int = 0
    planned: int = 0  # dry-run only
    log_path: Optional[str] = None
    results: List[OperationResult] = Field(default_factory=list)


class ReplicationSummary(BaseModel):
    copied: int = 0
    failed: int = 0
    planned: int = 0  # dry-run only
    log_path: Optional[str] = None
    results: List[OperationResult] = Field(default_factory=list)
