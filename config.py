"""
config.py — Central configuration loaded from environment variables.
Create a .env file in the project root or export variables before running.

Components never read this class directly: entry points call
:meth:`Config.settings` and pass the resulting ``ArchiveSettings`` down.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from models import ArchiveSettings

# Load variables from a .env file if present
load_dotenv()


class Config:
    # ── Archive run ──────────────────────────────────────────────────────────
    # Directory tree to scan (may be overridden on the command line)
    SOURCE_ROOT: str = os.getenv("ARCHIVE_SOURCE_ROOT", "")

    # Archive subfolder created under the source root
    ARCHIVE_FOLDER: str = os.getenv("ARCHIVE_FOLDER_NAME", "old")

    # Files untouched for this many days are eligible
    RETENTION_DAYS: int = int(os.getenv("ARCHIVE_RETENTION_DAYS", "365"))

    # ── Logging ──────────────────────────────────────────────────────────────
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> list[str]:
        """Return a list of validation error strings (empty = all good)."""
        errors: list[str] = []
        if not cls.SOURCE_ROOT:
            errors.append("ARCHIVE_SOURCE_ROOT is not set.")
        elif not Path(cls.SOURCE_ROOT).expanduser().is_dir():
            errors.append(f"ARCHIVE_SOURCE_ROOT is not a directory: {cls.SOURCE_ROOT}")
        if not cls.ARCHIVE_FOLDER.strip():
            errors.append("ARCHIVE_FOLDER_NAME is empty.")
        if cls.RETENTION_DAYS < 1:
            errors.append("ARCHIVE_RETENTION_DAYS must be at least 1.")
        return errors

    @classmethod
    def settings(
        cls,
        source_root: Optional[str] = None,
        archive_folder: Optional[str] = None,
        retention_days: Optional[int] = None,
    ) -> ArchiveSettings:
        """
        Build the explicit settings struct for one run.
        Arguments left as None fall back to the environment defaults.
        Raises pydantic.ValidationError on invalid values.
        """
        values: dict[str, Any] = {
            "source_root": source_root or cls.SOURCE_ROOT,
            "archive_folder": archive_folder or cls.ARCHIVE_FOLDER,
            "retention_days": retention_days if retention_days is not None else cls.RETENTION_DAYS,
        }
        return ArchiveSettings(**values)
