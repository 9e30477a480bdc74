"""
Dependency injection container for FastAPI.

Provides service instances to route handlers.
"""

from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator
from quickbill.infrastructure.pdf import IBillPdfRenderer, get_bill_pdf_renderer
from quickbill.infrastructure.storage import get_orchestrator


def get_storage() -> BillStorageOrchestrator:
    """Get the shared storage orchestrator."""
    return get_orchestrator()


def get_pdf_renderer() -> IBillPdfRenderer:
    """Get bill PDF renderer."""
    return get_bill_pdf_renderer()
