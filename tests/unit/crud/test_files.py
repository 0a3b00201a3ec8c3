"""Unit tests for crud/files.py"""

import os

import pytest

from docstore.crud import files as files_mod
from docstore.crud.files import atomic_copy, atomic_write_text, is_temp, iter_files


def test_atomic_write_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "doc.txt"
    atomic_write_text(target, "hello")
    assert target.read_text() == "hello"


def test_atomic_write_replaces_existing(tmp_path):
    target = tmp_path / "doc.txt"
    target.write_text("old")
    atomic_write_text(target, "new")
    assert target.read_text() == "new"
    assert os.listdir(tmp_path) == ["doc.txt"]


def test_atomic_write_failure_keeps_old_file(tmp_path, monkeypatch):
    """If the rename fails the original file is untouched and the temp file is removed."""
    target = tmp_path / "doc.txt"
    target.write_text("old")

    def boom(src, dst):
        raise OSError("rename failed")

    monkeypatch.setattr(files_mod.os, "replace", boom)
    with pytest.raises(OSError, match="rename failed"):
        atomic_write_text(target, "new")
    assert target.read_text() == "old"
    assert os.listdir(tmp_path) == ["doc.txt"]


def test_atomic_copy(tmp_path):
    src = tmp_path / "src.txt"
    src.write_text("payload")
    dest = tmp_path / "out" / "dest.txt"
    atomic_copy(src, dest)
    assert dest.read_text() == "payload"
    assert os.listdir(dest.parent) == ["dest.txt"]


@pytest.mark.parametrize("name,expected", [
    (".doc.json.x1y2.tmp", True),
    ("doc.json", False),
    ("doc.tmp", False),
    (".hidden", False),
])
def test_is_temp(tmp_path, name, expected):
    assert is_temp(tmp_path / name) is expected


def test_iter_files_sorted_and_filtered(tmp_path):
    """iter_files skips temp files and the excluded subtree and yields in sorted order."""
    (tmp_path / "metadata").mkdir()
    (tmp_path / "backups" / "backup-x").mkdir(parents=True)
    (tmp_path / "metadata" / "b.json").write_text("{}")
    (tmp_path / "metadata" / "a.json").write_text("{}")
    (tmp_path / "metadata" / ".a.json.1.tmp").write_text("{}")
    (tmp_path / "backups" / "backup-x" / "a.json").write_text("{}")

    found = [p.relative_to(tmp_path).as_posix() for p in iter_files(tmp_path, exclude=tmp_path / "backups")]
    assert found == ["metadata/a.json", "metadata/b.json"]
