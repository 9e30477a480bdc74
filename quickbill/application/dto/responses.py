"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization. Bills serialize with
the camelCase record keys plus derived totals.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from quickbill.core.entities.bill import BillRecord
from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator


class BillItemResponse(BaseModel):
    """Line item in bill response."""

    id: str
    name: str
    quantity: float
    rate: float
    amount: float = Field(..., description="quantity * rate")


class BillResponse(BaseModel):
    """Bill response DTO."""

    model_config = ConfigDict(populate_by_name=True)

    s_no: str = Field(..., alias="sNo", description="Bill number")
    date: dt.date
    customer_name: str = Field(..., alias="customerName")
    items: list[BillItemResponse] = Field(default_factory=list)
    basket: float = 0.0
    luggage: float = 0.0
    old_balance: float = Field(default=0.0, alias="oldBalance")
    paid_amount: float = Field(default=0.0, alias="paidAmount")

    # Derived
    sub_total: float = Field(..., alias="subTotal")
    total: float
    balance_due: float = Field(..., alias="balanceDue")

    @classmethod
    def from_record(cls, record: BillRecord) -> "BillResponse":
        return cls(
            s_no=record.s_no,
            date=record.date,
            customer_name=record.customer_name,
            items=[
                BillItemResponse(
                    id=item.id,
                    name=item.name,
                    quantity=item.quantity,
                    rate=item.rate,
                    amount=item.amount,
                )
                for item in record.items
            ],
            basket=record.basket,
            luggage=record.luggage,
            old_balance=record.old_balance,
            paid_amount=record.paid_amount,
            sub_total=record.sub_total,
            total=record.total,
            balance_due=record.balance_due,
        )


class StorageStatusResponse(BaseModel):
    """Storage connection status."""

    state: str = Field(..., description="uninitialized, connected or offline")
    status: str = Field(..., description="Human-readable label")
    backend: str | None = Field(default=None, description="Configured remote backend")
    active_store: str = Field(..., description="Store answering requests")
    last_error: str | None = None

    @classmethod
    def from_orchestrator(cls, orchestrator: BillStorageOrchestrator) -> "StorageStatusResponse":
        error = orchestrator.last_error
        return cls(
            state=orchestrator.state.value,
            status=orchestrator.status_label,
            backend=orchestrator.backend_name,
            active_store=orchestrator.active_store_name,
            last_error=error.message if error is not None else None,
        )


class BillListResponse(BaseModel):
    """List of bills, newest first."""

    bills: list[BillResponse]
    total: int
    storage: StorageStatusResponse


class NextNumberResponse(BaseModel):
    """Next free bill number."""

    model_config = ConfigDict(populate_by_name=True)

    s_no: str = Field(..., alias="sNo")


class BalanceResponse(BaseModel):
    """Previous balance for a customer."""

    model_config = ConfigDict(populate_by_name=True)

    customer_name: str = Field(..., alias="customerName")
    old_balance: float = Field(..., alias="oldBalance")
    found: bool = Field(..., description="False when the customer has no saved bills")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    storage: StorageStatusResponse


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. BILL_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: dt.datetime = Field(default_factory=dt.datetime.now)
