"""Pytest configuration and fixtures."""

from datetime import date
from pathlib import Path

import pytest

from quickbill.config import reset_settings
from quickbill.core.entities.bill import (
    BillItem,
    BillRecord,
    matches_customer,
    next_sequence_number,
    sort_newest_first,
)
from quickbill.core.interfaces.storage import IBillStore
from quickbill.infrastructure.storage import reset_orchestrator

_BACKEND_ENV = (
    "STORAGE_BACKEND",
    "RELATIONAL_DB_PATH",
    "FIREBASE_DATABASE_URL",
    "FIREBASE_AUTH_TOKEN",
    "KV_REST_API_URL",
    "KV_REST_API_TOKEN",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point storage at a temp dir and clear backend connection variables."""
    for name in _BACKEND_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_orchestrator()
    yield
    reset_settings()
    reset_orchestrator()


class FakeBillStore(IBillStore):
    """In-memory backend with switchable failures."""

    name = "fake"

    def __init__(self) -> None:
        self.records: dict[str, BillRecord] = {}
        self.init_error: Exception | None = None
        self.fail_with: Exception | None = None
        self.initialized = 0
        self.closed = False

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def initialize(self) -> None:
        self.initialized += 1
        if self.init_error is not None:
            raise self.init_error

    async def save_record(self, record: BillRecord) -> BillRecord:
        self._check()
        self.records[record.s_no] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def fetch_all(self) -> list[BillRecord]:
        self._check()
        return sort_newest_first(r.model_copy(deep=True) for r in self.records.values())

    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        return [r for r in await self.fetch_all() if matches_customer(r, customer_name)]

    async def delete_record(self, s_no: str) -> None:
        self._check()
        self.records.pop(s_no, None)

    async def next_sequence_number(self) -> str:
        self._check()
        return next_sequence_number(self.records)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_store_cls() -> type[FakeBillStore]:
    return FakeBillStore


@pytest.fixture
def fake_backend() -> FakeBillStore:
    return FakeBillStore()


@pytest.fixture
def make_record():
    """Factory for bill records with sensible defaults."""

    def _make(
        s_no: str = "0001",
        customer_name: str = "Alice",
        on: date = date(2024, 6, 15),
        items: list[tuple[str, float, float]] | None = None,
        **fields,
    ) -> BillRecord:
        if items is None:
            items = [("Roses", 2, 10)]
        return BillRecord(
            s_no=s_no,
            date=on,
            customer_name=customer_name,
            items=[BillItem(name=n, quantity=q, rate=r) for n, q, r in items],
            **fields,
        )

    return _make


@pytest.fixture
def sample_record() -> BillRecord:
    """Two items (20 + 5), luggage 3, old balance 10, paid 5."""
    return BillRecord(
        s_no="0001",
        date=date(2024, 6, 15),
        customer_name="Alice",
        items=[
            BillItem(name="Roses", quantity=2, rate=10),
            BillItem(name="Jasmine", quantity=1, rate=5),
        ],
        basket=4,
        luggage=3,
        old_balance=10,
        paid_amount=5,
    )
