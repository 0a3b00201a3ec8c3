"""Root test configuration: shared metadata factory and cleanup of runtime artifacts"""

import shutil
from datetime import datetime, timezone
from pathlib import Path

import pytest

from docstore.core.models import Category, DocMetadata


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_DIRS = ["docs-data"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove store directories created during the test session."""
    yield
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


@pytest.fixture(name="make_metadata")
def make_metadata_fixture():
    """Factory for a fully populated DocMetadata; keyword arguments override fields."""
    def _make(**overrides) -> DocMetadata:
        now = datetime.now(timezone.utc)
        data = {
            "name": "test-doc",
            "title": "Test Doc",
            "description": "Test description",
            "category": Category.base_standards,
            "tags": ["test"],
            "version": "1.0.0",
            "content": "",
            "last_updated": now,
            "versions": [],
            "last_successful_update": now,
            "last_attempted_update": now,
            "last_checked": now,
        }
        data.update(overrides)
        return DocMetadata(**data)
    return _make
