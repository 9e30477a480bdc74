"""
Storage backend factory.

Creates the configured backend and wires it to the offline store behind
a single orchestrator.
"""

from quickbill.config import get_logger, get_settings
from quickbill.core.interfaces import IBillStore
from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator

logger = get_logger(__name__)


def get_bill_backend(backend_kind: str | None = None) -> IBillStore | None:
    """
    Get a remote backend instance.

    Args:
        backend_kind: "relational", "firebase", "kv" or "offline"
            (default from settings)

    Returns:
        IBillStore instance, or None for offline-only operation
    """
    settings = get_settings()
    backend_kind = backend_kind or settings.storage.backend

    if backend_kind == "relational":
        from quickbill.infrastructure.storage.sqlite.bill_store import SQLiteBillStore

        return SQLiteBillStore()

    elif backend_kind == "firebase":
        from quickbill.infrastructure.storage.firebase_store import FirebaseBillStore

        return FirebaseBillStore()

    elif backend_kind == "kv":
        from quickbill.infrastructure.storage.kv_store import RedisRestBillStore

        return RedisRestBillStore()

    elif backend_kind == "offline":
        return None

    else:
        raise ValueError(f"Unknown storage backend: {backend_kind}")


def create_orchestrator(backend_kind: str | None = None) -> BillStorageOrchestrator:
    """Build an orchestrator over the configured backend and the offline store."""
    from quickbill.infrastructure.storage.sqlite.offline_store import SQLiteOfflineStore

    backend = get_bill_backend(backend_kind)
    logger.debug(
        "storage_orchestrator_created",
        backend=backend.name if backend is not None else None,
    )
    return BillStorageOrchestrator(backend=backend, offline_store=SQLiteOfflineStore())


# Singleton
_orchestrator: BillStorageOrchestrator | None = None


def get_orchestrator() -> BillStorageOrchestrator:
    """Get or create the shared orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = create_orchestrator()
    return _orchestrator


async def close_orchestrator() -> None:
    """Close and drop the shared orchestrator."""
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None


def reset_orchestrator() -> None:
    """Drop the shared orchestrator without closing it (for testing)."""
    global _orchestrator
    _orchestrator = None
