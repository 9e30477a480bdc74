"""
Durable local fallback store.

A single-row key-value table holds every bill as one JSON array under a
fixed key. The array is rewritten wholesale on every mutation.
"""

import json
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import ValidationError as PydanticValidationError

from quickbill.config import get_logger, get_settings
from quickbill.core.entities.bill import (
    BillRecord,
    matches_customer,
    next_sequence_number,
    sort_newest_first,
)
from quickbill.core.exceptions import BackendUnavailableError, DataError
from quickbill.core.interfaces.storage import IBillStore
from quickbill.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)


class SQLiteOfflineStore(IBillStore):
    """Offline bill store backed by a local SQLite key-value table."""

    name = "offline"

    def __init__(
        self,
        db_path: Path | None = None,
        storage_key: str | None = None,
    ):
        settings = get_settings()
        self.db_path = Path(db_path) if db_path is not None else settings.storage.offline_db_path
        self.storage_key = storage_key or settings.storage.offline_key
        self._pool = ConnectionPool(
            db_path=self.db_path,
            pool_size=1,
            busy_timeout=settings.storage.busy_timeout,
        )
        self._ready = False

    async def initialize(self) -> None:
        try:
            await self._pool.initialize()
            async with self._pool.transaction() as conn:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS local_storage (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
        except (aiosqlite.Error, OSError) as e:
            raise BackendUnavailableError(self.name, str(e)) from e
        self._ready = True
        logger.info("offline_store_initialized", db_path=str(self.db_path))

    async def _load(self) -> list[BillRecord]:
        """Read and decode the stored array."""
        if not self._ready:
            await self.initialize()
        try:
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT value FROM local_storage WHERE key = ?",
                    (self.storage_key,),
                )
                row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            raise BackendUnavailableError(self.name, str(e)) from e

        if row is None:
            return []
        try:
            payload: Any = json.loads(row["value"])
            if not isinstance(payload, list):
                raise DataError(self.name, "stored bills are not a JSON array", key=self.storage_key)
            return [BillRecord.from_payload(item) for item in payload]
        except (json.JSONDecodeError, PydanticValidationError, TypeError) as e:
            raise DataError(self.name, str(e), key=self.storage_key) from e

    async def _write(self, records: list[BillRecord]) -> None:
        """Replace the stored array with records."""
        value = json.dumps([r.to_payload() for r in records])
        try:
            async with self._pool.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO local_storage (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (self.storage_key, value),
                )
        except (aiosqlite.Error, OSError) as e:
            raise BackendUnavailableError(self.name, str(e)) from e

    async def save_record(self, record: BillRecord) -> BillRecord:
        records = await self._load()
        for index, existing in enumerate(records):
            if existing.s_no == record.s_no:
                records[index] = record
                break
        else:
            records.append(record)
        await self._write(records)
        logger.info("bill_saved", backend=self.name, s_no=record.s_no, stored=len(records))
        return record.model_copy(deep=True)

    async def fetch_all(self) -> list[BillRecord]:
        return sort_newest_first(await self._load())

    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        return [r for r in await self.fetch_all() if matches_customer(r, customer_name)]

    async def delete_record(self, s_no: str) -> None:
        records = await self._load()
        remaining = [r for r in records if r.s_no != s_no]
        if len(remaining) != len(records):
            await self._write(remaining)
        logger.info("bill_deleted", backend=self.name, s_no=s_no, deleted=len(records) - len(remaining))

    async def next_sequence_number(self) -> str:
        return next_sequence_number(r.s_no for r in await self._load())

    async def close(self) -> None:
        await self._pool.close()
        self._ready = False
