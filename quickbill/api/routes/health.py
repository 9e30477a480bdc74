"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from quickbill import __version__
from quickbill.api.dependencies import get_storage
from quickbill.application.dto.responses import HealthResponse, StorageStatusResponse
from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> HealthResponse:
    """
    Service status, uptime and storage connection.

    Reports "degraded" while bills are kept in local storage only.
    """
    return HealthResponse(
        status="healthy" if storage.connected else "degraded",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        storage=StorageStatusResponse.from_orchestrator(storage),
    )
