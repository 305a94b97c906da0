"""
cli.py — Command-line entry points for the retention archiver.

    retention-archiver archive   [--source DIR] [--folder NAME] [--days N] [--dry-run]
    retention-archiver rollback  LOG [--dry-run]
    retention-archiver replicate LOG DEST [--source-root DIR] [--dry-run]

Each sub-command is also installed as its own console script
(archive-run, rollback-run, replicate-run).
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import ValidationError

from archiver import run_archive
from config import Config
from log_store import LogValidationError
from replicator import run_replicate
from rollback_engine import run_rollback

logger = logging.getLogger("cli")

# Errors that stop a run before anything is touched
FATAL_ERRORS = (FileNotFoundError, NotADirectoryError, LogValidationError, ValidationError)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )


# ── Argument parsers ──────────────────────────────────────────────────────────

def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dry-run", "--whatif", dest="dry_run", action="store_true",
                        help="Report intended actions without touching any file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def _archive_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--source", default=None,
                        help="Root directory to scan (default: $ARCHIVE_SOURCE_ROOT)")
    parser.add_argument("--folder", default=None,
                        help="Archive subfolder under the root (default: $ARCHIVE_FOLDER_NAME or 'old')")
    parser.add_argument("--days", type=int, default=None,
                        help="Retention period in days (default: $ARCHIVE_RETENTION_DAYS or 365)")
    _add_common(parser)


def _rollback_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("log", help="Archive log CSV to roll back")
    _add_common(parser)


def _replicate_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("log", help="Archive log CSV naming the directories to copy")
    parser.add_argument("dest", help="Destination root for the copies")
    parser.add_argument("--source-root", default=None,
                        help="Root the log was archived from (default: the log's folder)")
    _add_common(parser)


# ── Command handlers ──────────────────────────────────────────────────────────

def _do_archive(args: argparse.Namespace) -> int:
    if args.source is None:
        # Everything comes from the environment; report all of its problems at once
        problems = Config.validate()
        if problems:
            for problem in problems:
                logger.error("Configuration: %s", problem)
            return 1
    settings = Config.settings(
        source_root=args.source, archive_folder=args.folder, retention_days=args.days
    )
    summary = run_archive(settings, dry_run=args.dry_run)
    print(
        f"Archived {summary.files_moved} file(s) from {summary.directories_archived} "
        f"director(ies); skipped {summary.directories_skipped}; failed {summary.files_failed}."
    )
    if args.dry_run:
        print(f"[DRY RUN] {summary.planned} file(s) would be moved.")
    print(f"Log: {summary.log_path}" if summary.log_path else "No archive log written.")
    return 0


def _do_rollback(args: argparse.Namespace) -> int:
    summary = run_rollback(Path(args.log), dry_run=args.dry_run)
    if args.dry_run:
        print(f"[DRY RUN] {summary.planned} file(s) would be restored; {summary.failed} would fail.")
    else:
        print(f"Restored {summary.restored} file(s); {summary.failed} failed.")
    if summary.log_path:
        print(f"Log: {summary.log_path}")
    return 0


def _do_replicate(args: argparse.Namespace) -> int:
    source_root = Path(args.source_root) if args.source_root else None
    summary = run_replicate(
        Path(args.log), Path(args.dest), source_root=source_root, dry_run=args.dry_run
    )
    if args.dry_run:
        print(f"[DRY RUN] {summary.planned} director(ies) would be copied; {summary.failed} would fail.")
    else:
        print(f"Copied {summary.copied} director(ies); {summary.failed} failed.")
    if summary.log_path:
        print(f"Log: {summary.log_path}")
    return 0


def _run(handler: Callable[[argparse.Namespace], int], args: argparse.Namespace) -> int:
    _setup_logging(args.verbose)
    try:
        return handler(args)
    except FATAL_ERRORS as exc:
        logger.error("%s", exc)
        return 1


# ── Entry points ──────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="retention-archiver",
        description="Archive stale directories, roll archives back, or replicate archived directories.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("archive", help="Move directories untouched for the retention period")
    _archive_args(p)
    p.set_defaults(handler=_do_archive)

    p = sub.add_parser("rollback", help="Restore files recorded in an archive log")
    _rollback_args(p)
    p.set_defaults(handler=_do_rollback)

    p = sub.add_parser("replicate", help="Copy directories referenced by an archive log")
    _replicate_args(p)
    p.set_defaults(handler=_do_replicate)

    args = parser.parse_args(argv)
    return _run(args.handler, args)


def archive_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="archive-run", description="Archive stale directories.")
    _archive_args(parser)
    return _run(_do_archive, parser.parse_args(argv))


def rollback_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="rollback-run", description="Undo an archive run.")
    _rollback_args(parser)
    return _run(_do_rollback, parser.parse_args(argv))


def replicate_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="replicate-run", description="Copy directories referenced by an archive log."
    )
    _replicate_args(parser)
    return _run(_do_replicate, parser.parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
