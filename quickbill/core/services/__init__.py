"""Core domain services."""

from quickbill.core.services.storage_orchestrator import (
    BillStorageOrchestrator,
    ConnectionState,
)

__all__ = [
    "BillStorageOrchestrator",
    "ConnectionState",
]
