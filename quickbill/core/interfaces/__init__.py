"""Core interfaces (ports) for dependency injection."""

from quickbill.core.interfaces.storage import IBillStore

__all__ = [
    # Storage interfaces
    "IBillStore",
]
