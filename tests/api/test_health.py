"""Tests for health endpoints."""

import pytest

from quickbill import __version__
from quickbill.core.exceptions import BackendUnavailableError


@pytest.mark.asyncio
async def test_health_connected(async_client):
    """Healthy while the remote backend answers."""
    response = await async_client.get("/api/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__
    assert data["uptime_seconds"] >= 0
    assert data["storage"]["state"] == "connected"
    assert data["storage"]["backend"] == "fake"


@pytest.mark.asyncio
async def test_health_offline(offline_client):
    """Degraded when bills are kept in local storage only."""
    response = await offline_client.get("/api/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "degraded"
    assert data["storage"]["status"] == "using local storage"
    assert data["storage"]["active_store"] == "offline"


@pytest.mark.asyncio
async def test_health_after_backend_drop(async_client, fake_backend):
    """A dropped backend shows up as degraded with the last error."""
    fake_backend.fail_with = BackendUnavailableError("fake", "timeout")
    await async_client.get("/api/bills")

    data = (await async_client.get("/api/health")).json()
    assert data["status"] == "degraded"
    assert "timeout" in data["storage"]["last_error"]
