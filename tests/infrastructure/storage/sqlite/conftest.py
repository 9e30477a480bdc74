"""Pytest fixtures for SQLite storage tests."""

from pathlib import Path

import pytest

from quickbill.infrastructure.storage.sqlite.bill_store import SQLiteBillStore
from quickbill.infrastructure.storage.sqlite.offline_store import SQLiteOfflineStore


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def bill_store(temp_db_path: Path):
    """Initialized relational store on a temp file."""
    store = SQLiteBillStore(db_path=temp_db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def offline_store(tmp_path: Path):
    """Offline store on a temp file."""
    store = SQLiteOfflineStore(db_path=tmp_path / "offline.db")
    await store.initialize()
    yield store
    await store.close()
