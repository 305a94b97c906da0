"""Tests for CSV log persistence and validation."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from log_store import (
    LogValidationError,
    archive_log_path,
    copy_log_path,
    read_archive_log,
    read_copy_log,
    read_rollback_log,
    rollback_log_path,
    write_archive_log,
    write_copy_log,
    write_rollback_log,
)
from models import ArchiveLogEntry, CopyLogEntry, RollbackLogEntry

MOVED = datetime(2024, 1, 31, 10, 15, 0)
MODIFIED = datetime(2022, 12, 1, 8, 0, 59)


def _entry(name="f.txt"):
    return ArchiveLogEntry(
        source=f"/data/a/{name}",
        destination=f"/data/old/a/{name}",
        move_date=MOVED,
        date_modified=MODIFIED,
    )


class TestFileNames:
    def test_archive_log_named_by_date(self, tmp_path):
        assert archive_log_path(tmp_path, MOVED).name == "archive_log_2024-01-31.csv"

    def test_rollback_log_named_by_timestamp(self, tmp_path):
        assert rollback_log_path(tmp_path, MOVED).name == "rollback_log_2024-01-31_10-15-00.csv"

    def test_copy_log_never_overwrites(self, tmp_path):
        first = copy_log_path(tmp_path, MOVED)
        first.write_text("taken")
        second = copy_log_path(tmp_path, MOVED)
        assert second != first
        assert second.name == "copy_log_2024-01-31_10-15-00 (1).csv"


class TestArchiveLog:
    def test_header_and_timestamp_format(self, tmp_path):
        path = write_archive_log(tmp_path / "log.csv", [_entry()])
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Source,Destination,MoveDate,DateModified"
        assert lines[1] == "/data/a/f.txt,/data/old/a/f.txt,2024-01-31 10:15:00,2022-12-01 08:00:59"

    def test_read_back_typed_entries(self, tmp_path):
        path = write_archive_log(tmp_path / "log.csv", [_entry("one"), _entry("two")])
        entries = read_archive_log(path)
        assert [e.source for e in entries] == ["/data/a/one", "/data/a/two"]
        assert entries[0].move_date == MOVED
        assert entries[0].date_modified == MODIFIED

    def test_existing_log_is_appended(self, tmp_path):
        path = tmp_path / "log.csv"
        write_archive_log(path, [_entry("one")])
        write_archive_log(path, [_entry("two")])
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 3
        assert lines.count("Source,Destination,MoveDate,DateModified") == 1

    def test_missing_column_rejects_whole_file(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text(
            "Source,Destination,MoveDate\n/data/a/f.txt,/data/old/a/f.txt,2024-01-31 10:15:00\n",
            encoding="utf-8",
        )
        with pytest.raises(LogValidationError, match="DateModified"):
            read_archive_log(path)

    def test_bad_timestamp_rejects_whole_file(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text(
            "Source,Destination,MoveDate,DateModified\n"
            "/a,/old/a,2024-01-31 10:15:00,2022-12-01 08:00:59\n"
            "/b,/old/b,yesterday,2022-12-01 08:00:59\n",
            encoding="utf-8",
        )
        with pytest.raises(LogValidationError, match="line 3"):
            read_archive_log(path)

    def test_empty_destination_rejects_whole_file(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text(
            "Source,Destination,MoveDate,DateModified\n"
            "/data/a/f.txt,,2024-01-31 10:15:00,2022-12-01 08:00:59\n",
            encoding="utf-8",
        )
        with pytest.raises(LogValidationError, match="line 2"):
            read_archive_log(path)

    @pytest.mark.parametrize("source, destination", [
        ("a/f.txt", "/data/old/a/f.txt"),
        ("/data/a/f.txt", "old/a/f.txt"),
        ("/data/a/f.txt", "."),
    ])
    def test_relative_paths_reject_whole_file(self, tmp_path, source, destination):
        path = tmp_path / "log.csv"
        path.write_text(
            "Source,Destination,MoveDate,DateModified\n"
            f"{source},{destination},2024-01-31 10:15:00,2022-12-01 08:00:59\n",
            encoding="utf-8",
        )
        with pytest.raises(LogValidationError, match="absolute"):
            read_archive_log(path)

    def test_extra_columns_and_bom_accepted(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text(
            "\ufeffSource,Destination,MoveDate,DateModified,Note\n"
            "/a,/old/a,2024-01-31 10:15:00,2022-12-01 08:00:59,hi\n",
            encoding="utf-8",
        )
        entries = read_archive_log(path)
        assert entries[0].source == "/a"

    def test_header_only_log_reads_empty(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("Source,Destination,MoveDate,DateModified\n", encoding="utf-8")
        assert read_archive_log(path) == []

    def test_empty_file_is_invalid(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(LogValidationError):
            read_archive_log(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_archive_log(tmp_path / "nope.csv")

    def test_duplicate_sources_warned(self, tmp_path, caplog):
        path = write_archive_log(tmp_path / "log.csv", [_entry(), _entry()])
        with caplog.at_level("WARNING"):
            entries = read_archive_log(path)
        assert len(entries) == 2
        assert "more than once" in caplog.text


class TestOtherLogs:
    def test_rollback_log_columns(self, tmp_path):
        record = RollbackLogEntry.from_archive_entry(_entry(), restore_date=datetime(2024, 2, 1, 0, 0, 0))
        path = write_rollback_log(tmp_path / "rb.csv", [record])
        header = path.read_text(encoding="utf-8").splitlines()[0]
        assert header == "OriginalSource,ArchivedPath,RestoreDate,OriginalMoveDate,OriginalDateModified"
        back = read_rollback_log(path)[0]
        assert back.original_source == "/data/a/f.txt"
        assert back.original_move_date == MOVED

    def test_copy_log_columns(self, tmp_path):
        record = CopyLogEntry(
            source_directory="/data/a",
            destination_directory="/backup/a",
            copy_date=MOVED,
            files_in_directory=3,
        )
        path = write_copy_log(tmp_path / "copy.csv", [record])
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "SourceDirectory,DestinationDirectory,CopyDate,FilesInDirectory"
        assert lines[1] == "/data/a,/backup/a,2024-01-31 10:15:00,3"
        assert read_copy_log(path)[0].files_in_directory == 3

    def test_copy_log_rejects_relative_directories(self, tmp_path):
        path = tmp_path / "copy.csv"
        path.write_text(
            "SourceDirectory,DestinationDirectory,CopyDate,FilesInDirectory\n"
            "/data/a,backup/a,2024-01-31 10:15:00,3\n",
            encoding="utf-8",
        )
        with pytest.raises(LogValidationError):
            read_copy_log(path)

    def test_rollback_entry_requires_paths(self):
        with pytest.raises(ValidationError):
            RollbackLogEntry(
                original_source="",
                archived_path="/data/old/a/f.txt",
                restore_date=MOVED,
                original_move_date=MOVED,
                original_date_modified=MODIFIED,
            )
