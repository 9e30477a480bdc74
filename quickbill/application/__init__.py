"""
Application layer - bill controller and DTOs.

The controller owns the draft bill and drives the storage orchestrator;
DTOs are the contracts between the API and the domain.
"""

from quickbill.application.bill_controller import (
    BillController,
    Notice,
    previous_balance,
)

__all__ = [
    "BillController",
    "Notice",
    "previous_balance",
]
