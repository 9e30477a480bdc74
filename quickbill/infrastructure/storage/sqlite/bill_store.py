"""SQLite implementation of the relational bill backend."""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
from pydantic import ValidationError as PydanticValidationError

from quickbill.config import get_logger, get_settings
from quickbill.core.entities.bill import BillRecord, format_sequence_number
from quickbill.core.exceptions import (
    BackendUnavailableError,
    ConfigurationError,
    DataError,
)
from quickbill.core.interfaces.storage import IBillStore
from quickbill.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS bills (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        s_no TEXT UNIQUE NOT NULL,
        date TEXT NOT NULL,
        customer_name TEXT NOT NULL DEFAULT '',
        items TEXT NOT NULL DEFAULT '[]',
        basket REAL NOT NULL DEFAULT 0,
        luggage REAL NOT NULL DEFAULT 0,
        old_balance REAL NOT NULL DEFAULT 0,
        paid_amount REAL NOT NULL DEFAULT 0,
        created_at TEXT DEFAULT (datetime('now')),
        updated_at TEXT DEFAULT (datetime('now'))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_bills_customer_name ON bills(customer_name COLLATE NOCASE)",
    "CREATE INDEX IF NOT EXISTS idx_bills_date ON bills(date)",
)

_ORDER_NEWEST_FIRST = "ORDER BY date DESC, CAST(s_no AS INTEGER) DESC, s_no DESC"


class SQLiteBillStore(IBillStore):
    """
    Relational bill storage on SQLite.

    Items are kept as an opaque JSON column; numeric columns are REAL so
    values round-trip without truncation.
    """

    name = "relational"

    def __init__(
        self,
        db_path: Path | None = None,
        pool_size: int | None = None,
        busy_timeout: int | None = None,
    ):
        settings = get_settings()
        self.db_path = db_path if db_path is not None else settings.relational.db_path
        self.pool_size = pool_size or settings.storage.pool_size
        self.busy_timeout = busy_timeout or settings.storage.busy_timeout
        self._pool: ConnectionPool | None = None

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Map driver and filesystem errors to BackendUnavailableError."""
        try:
            yield
        except (aiosqlite.Error, OSError) as e:
            logger.error("relational_operation_failed", operation=operation, error=str(e))
            raise BackendUnavailableError(self.name, f"{operation}: {e}") from e

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None or not self._pool.initialized:
            await self.initialize()
        assert self._pool is not None
        return self._pool

    async def initialize(self) -> None:
        """Open the pool and create the table and indexes if missing."""
        if self.db_path is None or str(self.db_path).strip() == "":
            raise ConfigurationError(self.name, ["RELATIONAL_DB_PATH"])

        async with self._guard("initialize"):
            if self._pool is None:
                self._pool = ConnectionPool(
                    db_path=Path(self.db_path),
                    pool_size=self.pool_size,
                    busy_timeout=self.busy_timeout,
                )
            await self._pool.initialize()
            async with self._pool.transaction() as conn:
                for statement in SCHEMA_STATEMENTS:
                    await conn.execute(statement)

        logger.info("relational_store_initialized", db_path=str(self.db_path))

    async def save_record(self, record: BillRecord) -> BillRecord:
        """Upsert the record by sNo."""
        pool = await self._get_pool()
        items_json = json.dumps([item.model_dump(mode="json") for item in record.items])

        async with self._guard("save_record"), pool.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO bills (
                    s_no, date, customer_name, items,
                    basket, luggage, old_balance, paid_amount
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(s_no) DO UPDATE SET
                    date = excluded.date,
                    customer_name = excluded.customer_name,
                    items = excluded.items,
                    basket = excluded.basket,
                    luggage = excluded.luggage,
                    old_balance = excluded.old_balance,
                    paid_amount = excluded.paid_amount,
                    updated_at = datetime('now')
                """,
                (
                    record.s_no,
                    record.date.isoformat(),
                    record.customer_name,
                    items_json,
                    record.basket,
                    record.luggage,
                    record.old_balance,
                    record.paid_amount,
                ),
            )

        logger.info("bill_saved", backend=self.name, s_no=record.s_no, items=len(record.items))
        return record.model_copy(deep=True)

    async def fetch_all(self) -> list[BillRecord]:
        pool = await self._get_pool()
        async with self._guard("fetch_all"), pool.acquire() as conn:
            cursor = await conn.execute(f"SELECT * FROM bills {_ORDER_NEWEST_FIRST}")
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        pool = await self._get_pool()
        async with self._guard("fetch_by_customer"), pool.acquire() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM bills WHERE customer_name = ? COLLATE NOCASE {_ORDER_NEWEST_FIRST}",
                (customer_name,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def delete_record(self, s_no: str) -> None:
        pool = await self._get_pool()
        async with self._guard("delete_record"), pool.transaction() as conn:
            cursor = await conn.execute("DELETE FROM bills WHERE s_no = ?", (s_no,))
            deleted = cursor.rowcount
        logger.info("bill_deleted", backend=self.name, s_no=s_no, deleted=deleted)

    async def next_sequence_number(self) -> str:
        """Max of the numeric-looking sNo values plus one."""
        pool = await self._get_pool()
        async with self._guard("next_sequence_number"), pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT MAX(CAST(s_no AS INTEGER)) AS max_s_no FROM bills
                WHERE s_no != '' AND s_no NOT GLOB '*[^0-9]*'
                """
            )
            row = await cursor.fetchone()
        max_s_no = row["max_s_no"] if row is not None and row["max_s_no"] is not None else 0
        return format_sequence_number(int(max_s_no) + 1)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    def _row_to_record(self, row: aiosqlite.Row) -> BillRecord:
        """Convert a database row to a BillRecord entity."""
        s_no = row["s_no"]
        try:
            items = json.loads(row["items"]) if row["items"] else []
            return BillRecord(
                s_no=s_no,
                date=row["date"],
                customer_name=row["customer_name"],
                items=items,
                basket=row["basket"],
                luggage=row["luggage"],
                old_balance=row["old_balance"],
                paid_amount=row["paid_amount"],
            )
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise DataError(self.name, str(e), key=s_no) from e
