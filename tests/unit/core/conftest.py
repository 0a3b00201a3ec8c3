"""Shared fixtures for core unit tests"""

from datetime import datetime, timezone

import pytest

from docstore.core.models import Category, DocMetadata


@pytest.fixture(name="now")
def now_fixture():
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(name="stored")
def stored_fixture():
    """Metadata as it would be read back from disk after one save."""
    saved_at = datetime(2026, 10, 1, 9, 30, 0, tzinfo=timezone.utc)
    return DocMetadata(
        name="guide",
        title="Style Guide",
        description="House style",
        category=Category.standards,
        tags=["style", "docs"],
        version=saved_at.isoformat(timespec="microseconds"),
        url="https://example.com/guide",
        content_file="example.com_guide-0123456789abcdef.aaaaaaaaaaaaaaaa.txt",
        content_hash="a" * 64,
        last_updated=saved_at,
        last_successful_update=saved_at,
        last_attempted_update=saved_at,
        last_checked=saved_at,
    )
