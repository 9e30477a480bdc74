"""API tests for customer endpoints."""

from datetime import date

import pytest


@pytest.mark.asyncio
async def test_balance_from_latest_bill(async_client, fake_backend, make_record):
    fake_backend.records["0001"] = make_record(s_no="0001", on=date(2024, 1, 1))
    fake_backend.records["0002"] = make_record(
        s_no="0002", on=date(2024, 2, 1), old_balance=20, paid_amount=10
    )

    response = await async_client.get("/api/customers/alice/balance")

    assert response.status_code == 200
    assert response.json() == {"customerName": "alice", "oldBalance": 30, "found": True}


@pytest.mark.asyncio
async def test_unknown_customer(async_client):
    response = await async_client.get("/api/customers/Nobody/balance")

    assert response.status_code == 200
    assert response.json() == {"customerName": "Nobody", "oldBalance": 0, "found": False}


@pytest.mark.asyncio
async def test_balance_offline(offline_client, offline_store, sample_record):
    await offline_store.save_record(sample_record)

    response = await offline_client.get("/api/customers/Alice/balance")

    assert response.json()["oldBalance"] == 33
