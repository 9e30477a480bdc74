"""SQLite storage implementations."""

from quickbill.infrastructure.storage.sqlite.bill_store import SQLiteBillStore
from quickbill.infrastructure.storage.sqlite.connection import ConnectionPool
from quickbill.infrastructure.storage.sqlite.offline_store import SQLiteOfflineStore

__all__ = [
    "ConnectionPool",
    "SQLiteBillStore",
    "SQLiteOfflineStore",
]
