"""Customer endpoints."""

from fastapi import APIRouter, Depends

from quickbill.api.dependencies import get_storage
from quickbill.application.bill_controller import previous_balance
from quickbill.application.dto.responses import BalanceResponse
from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("/{name}/balance", response_model=BalanceResponse)
async def customer_balance(
    name: str,
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> BalanceResponse:
    """
    Balance due on the customer's most recent bill.

    Used to pre-fill the old balance of a new bill; 0 when the customer
    has no saved bills.
    """
    balance = await previous_balance(storage, name)
    return BalanceResponse(
        customer_name=name,
        old_balance=balance if balance is not None else 0.0,
        found=balance is not None,
    )
