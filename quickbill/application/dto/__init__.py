"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.
"""

from quickbill.application.dto.requests import BillItemRequest, SaveBillRequest
from quickbill.application.dto.responses import (
    BalanceResponse,
    BillItemResponse,
    BillListResponse,
    BillResponse,
    ErrorResponse,
    HealthResponse,
    NextNumberResponse,
    StorageStatusResponse,
)

__all__ = [
    # Requests
    "BillItemRequest",
    "SaveBillRequest",
    # Responses
    "BalanceResponse",
    "BillItemResponse",
    "BillListResponse",
    "BillResponse",
    "ErrorResponse",
    "HealthResponse",
    "NextNumberResponse",
    "StorageStatusResponse",
]
