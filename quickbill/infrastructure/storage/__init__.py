"""Storage infrastructure implementations."""

from quickbill.infrastructure.storage.factory import (
    close_orchestrator,
    create_orchestrator,
    get_bill_backend,
    get_orchestrator,
    reset_orchestrator,
)
from quickbill.infrastructure.storage.firebase_store import FirebaseBillStore
from quickbill.infrastructure.storage.kv_store import RedisRestBillStore
from quickbill.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteBillStore,
    SQLiteOfflineStore,
)

__all__ = [
    # Backends
    "SQLiteBillStore",
    "FirebaseBillStore",
    "RedisRestBillStore",
    "SQLiteOfflineStore",
    "ConnectionPool",
    # Factory
    "get_bill_backend",
    "create_orchestrator",
    "get_orchestrator",
    "close_orchestrator",
    "reset_orchestrator",
]
