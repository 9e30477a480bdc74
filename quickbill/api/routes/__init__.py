"""API routes."""

from quickbill.api.routes.bills import router as bills_router
from quickbill.api.routes.customers import router as customers_router
from quickbill.api.routes.health import router as health_router

__all__ = [
    "bills_router",
    "customers_router",
    "health_router",
]
