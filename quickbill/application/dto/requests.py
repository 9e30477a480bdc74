"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation. Field aliases follow the
camelCase record shape shared with the storage backends.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from quickbill.core.entities.bill import BillItem, BillRecord


class BillItemRequest(BaseModel):
    """Line item in a save request."""

    id: str | None = Field(default=None, description="Item ID (generated when omitted)")
    name: str | None = Field(default="", description="Item name")
    quantity: Any = Field(default=0, description="Quantity; blank or invalid counts as 0")
    rate: Any = Field(default=0, description="Rate per unit; blank or invalid counts as 0")


class SaveBillRequest(BaseModel):
    """Request to create or overwrite a bill.

    The bill number comes from the URL path; an sNo in the body is ignored.
    """

    model_config = ConfigDict(populate_by_name=True)

    date: dt.date | str | None = Field(
        default=None,
        description="Bill date (YYYY-MM-DD); today when omitted",
        examples=["2024-06-15"],
    )
    customer_name: str | None = Field(default="", alias="customerName", examples=["Ravi"])
    items: list[BillItemRequest] = Field(default_factory=list)
    basket: Any = Field(default=0)
    luggage: Any = Field(default=0)
    old_balance: Any = Field(default=0, alias="oldBalance")
    paid_amount: Any = Field(default=0, alias="paidAmount")

    def to_record(self, s_no: str) -> BillRecord:
        """Build the domain record; numeric fields are coerced by the entity."""
        return BillRecord(
            s_no=s_no,
            date=self.date,
            customer_name=self.customer_name,
            items=[
                BillItem(id=item.id, name=item.name, quantity=item.quantity, rate=item.rate)
                for item in self.items
            ],
            basket=self.basket,
            luggage=self.luggage,
            old_balance=self.old_balance,
            paid_amount=self.paid_amount,
        )
