"""API test fixtures.

ASGITransport does not run the lifespan, so the orchestrator is built and
initialized here and injected through the get_storage override.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from quickbill.api.dependencies import get_storage
from quickbill.api.main import app
from quickbill.core.services import BillStorageOrchestrator
from quickbill.infrastructure.storage.sqlite.offline_store import SQLiteOfflineStore


@pytest.fixture
async def offline_store(tmp_path):
    store = SQLiteOfflineStore(db_path=tmp_path / "offline.db")
    yield store
    await store.close()


@pytest.fixture
async def storage(fake_backend, offline_store) -> BillStorageOrchestrator:
    """Orchestrator connected to the in-memory fake backend."""
    orchestrator = BillStorageOrchestrator(backend=fake_backend, offline_store=offline_store)
    await orchestrator.initialize()
    return orchestrator


@pytest.fixture
async def offline_storage(offline_store) -> BillStorageOrchestrator:
    """Orchestrator with no remote backend."""
    orchestrator = BillStorageOrchestrator(backend=None, offline_store=offline_store)
    await orchestrator.initialize()
    return orchestrator


def _client_for(orchestrator: BillStorageOrchestrator) -> AsyncClient:
    app.dependency_overrides[get_storage] = lambda: orchestrator
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
async def async_client(storage):
    async with _client_for(storage) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def offline_client(offline_storage):
    async with _client_for(offline_storage) as client:
        yield client
    app.dependency_overrides.clear()
