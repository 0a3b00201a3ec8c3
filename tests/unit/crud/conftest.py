"""Shared fixtures for crud unit tests"""

import pytest

from docstore.config import BackupConfig
from docstore.core.models import Category, DocMetadata
from docstore.crud.backups import BackupManager
from docstore.crud.documents import DocumentFiles


@pytest.fixture(name="root")
def root_fixture(tmp_path):
    """Empty store root."""
    root = tmp_path / "store"
    root.mkdir()
    return root


@pytest.fixture(name="files")
def files_fixture(root):
    return DocumentFiles(root)


@pytest.fixture(name="meta")
def meta_fixture():
    """Metadata for a document that has not been written yet."""
    return DocMetadata(
        name="guide",
        title="Guide",
        category=Category.tools,
        version="2026-10-19T12:00:00.000000+00:00",
        url="https://example.com/guide",
    )


@pytest.fixture(name="populated_root")
def populated_root_fixture(root):
    """Store root holding one metadata record and its body."""
    (root / "metadata").mkdir()
    (root / "content").mkdir()
    (root / "metadata" / "a.json").write_text('{"title": "A v1"}')
    (root / "content" / "a.0000000000000001.txt").write_text("body v1")
    return root


@pytest.fixture(name="manager")
def manager_fixture(populated_root):
    return BackupManager(populated_root, BackupConfig(max_backups=3))
