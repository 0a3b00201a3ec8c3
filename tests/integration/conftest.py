"""Shared fixtures for integration tests"""

import pytest
import pytest_asyncio

from docstore.config import BackupConfig
from docstore.core.store import DocsStore


@pytest.fixture(name="root")
def root_fixture(tmp_path):
    root = tmp_path / "docs"
    (root / "backups").mkdir(parents=True)
    return root


@pytest.fixture(name="backup_config")
def backup_config_fixture():
    return BackupConfig(enabled=False, interval=1000, max_backups=3, path="backups")


@pytest_asyncio.fixture(name="store")
async def store_fixture(root, backup_config):
    """A started store; destroyed at teardown unless the test already did."""
    store = DocsStore(root, backup_config)
    await store.start()
    yield store
    await store.destroy()
