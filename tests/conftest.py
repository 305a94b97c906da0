"""Shared fixtures for the retention archiver tests."""

import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from models import ArchiveSettings


def age_file(path: Path, days: float) -> None:
    """Set both atime and mtime of *path* to *days* ago."""
    stamp = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (stamp, stamp))


@pytest.fixture
def make_file():
    """Create a file with content and an mtime *age_days* in the past."""

    def _make(path: Path, age_days: float = 0, content: str = "data") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        age_file(path, age_days)
        return path

    return _make


@pytest.fixture
def data_root(tmp_path):
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def settings(data_root):
    return ArchiveSettings(source_root=data_root, archive_folder="old", retention_days=365)


@pytest.fixture
def scenario(data_root, make_file):
    """a/ holds only stale files; b/ mixes a stale and a recent file."""
    make_file(data_root / "a" / "old.txt", age_days=400, content="a-old")
    make_file(data_root / "b" / "old2.txt", age_days=400, content="b-old")
    make_file(data_root / "b" / "new.txt", age_days=5, content="b-new")
    return data_root


def snapshot(root: Path, exclude: tuple = ("old",)) -> dict:
    """Map of relative path -> content for every file under *root*."""
    out = {}
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        if current == root:
            dirnames[:] = [d for d in dirnames if d not in exclude]
        for name in filenames:
            if current == root and name.endswith(".csv"):
                continue
            path = current / name
            out[str(path.relative_to(root))] = path.read_text(encoding="utf-8")
    return out


@pytest.fixture
def tree_snapshot():
    return snapshot
