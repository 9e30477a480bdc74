"""
Bill editing controller.

Holds the draft bill being edited and the list of saved bills, and routes
every persistence call through the storage orchestrator.

Flow:
1. start(): connect storage, load saved bills, open a new draft
2. edit the draft (fields, items, customer with balance auto-fill)
3. save() / delete(): persist, then refresh the saved list
"""

import datetime as dt
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError as PydanticValidationError

from quickbill.config import get_logger
from quickbill.core.entities.bill import (
    BillItem,
    BillRecord,
    BillTotals,
    latest_for_customer,
)
from quickbill.core.exceptions import BillNotFoundError, QuickBillError, ValidationError
from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator

logger = get_logger(__name__)

BILL_FIELDS = frozenset(
    {"s_no", "date", "customer_name", "basket", "luggage", "old_balance", "paid_amount"}
)
ITEM_FIELDS = frozenset({"name", "quantity", "rate"})


@dataclass(frozen=True)
class Notice:
    """Transient message shown after an action."""

    level: Literal["info", "error"]
    message: str


async def previous_balance(
    orchestrator: BillStorageOrchestrator,
    customer_name: str,
) -> float | None:
    """
    Balance due on the customer's most recent bill.

    Returns:
        balance_due of the latest dated bill, or None when the customer
        has no saved bills
    """
    records = await orchestrator.fetch_by_customer(customer_name)
    latest = latest_for_customer(records)
    return latest.balance_due if latest is not None else None


class BillController:
    """
    Draft bill state plus save/load/delete actions.

    The previous-balance lookup is asynchronous; its result is discarded
    if, while it was in flight, the old balance was edited, the customer
    name changed again, or a different bill replaced the draft.
    """

    def __init__(self, orchestrator: BillStorageOrchestrator):
        self._storage = orchestrator
        self.draft: BillRecord = BillRecord.blank()
        self.bills: list[BillRecord] = []
        self.notice: Notice | None = None

        # Bumped on every change that makes an in-flight lookup stale
        self._draft_version = 0
        self._customer_version = 0
        self._old_balance_version = 0

    @property
    def status(self) -> str:
        return self._storage.status_label

    @property
    def connected(self) -> bool:
        return self._storage.connected

    @property
    def totals(self) -> BillTotals:
        return self.draft.totals()

    async def start(self) -> None:
        await self._storage.initialize()
        await self.refresh()
        await self.new_bill(announce=False)

    async def refresh(self) -> list[BillRecord]:
        self.bills = await self._storage.fetch_all()
        return self.bills

    async def new_bill(self, announce: bool = True) -> BillRecord:
        """Replace the draft with a blank bill under the next number."""
        s_no = await self._storage.next_sequence_number()
        self._replace_draft(BillRecord.blank(s_no=s_no, on=dt.date.today()))
        if announce:
            self._notify("info", "New bill created.")
        return self.draft

    def load(self, s_no: str) -> BillRecord:
        """Replace the draft with a copy of a saved bill."""
        for record in self.bills:
            if record.s_no == s_no:
                self._replace_draft(record.model_copy(deep=True))
                self._notify("info", f"Bill {s_no} loaded.")
                return self.draft
        raise BillNotFoundError(s_no)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_field(self, field: str, value: Any) -> BillRecord:
        """Set a scalar bill field; numeric input is coerced."""
        if field not in BILL_FIELDS:
            raise ValidationError(field, "not an editable bill field", value)

        data = self.draft.model_dump()
        data[field] = value
        try:
            self.draft = BillRecord.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(field, e.errors()[0]["msg"], value) from e

        if field == "old_balance":
            self._old_balance_version += 1
        elif field == "customer_name":
            self._customer_version += 1
        return self.draft

    async def change_customer(self, name: str) -> BillRecord:
        """
        Set the customer name and auto-fill the old balance.

        Auto-fill only happens when the old balance is still zero and the
        name is not blank.
        """
        self.set_field("customer_name", name)
        if self.draft.old_balance != 0 or not name.strip():
            return self.draft

        started = (self._draft_version, self._customer_version, self._old_balance_version)
        balance = await previous_balance(self._storage, name)

        if started != (self._draft_version, self._customer_version, self._old_balance_version):
            logger.debug("previous_balance_discarded", customer=name)
            return self.draft
        if balance is not None:
            self.draft = self.draft.model_copy(update={"old_balance": balance})
            logger.debug("previous_balance_applied", customer=name, old_balance=balance)
        return self.draft

    def add_item(self) -> BillItem:
        item = BillItem()
        self.draft.items.append(item)
        return item

    def update_item(self, item_id: str, field: str, value: Any) -> BillItem:
        if field not in ITEM_FIELDS:
            raise ValidationError(field, "not an editable item field", value)

        for index, item in enumerate(self.draft.items):
            if item.id == item_id:
                data = item.model_dump()
                data[field] = value
                updated = BillItem.model_validate(data)
                self.draft.items[index] = updated
                return updated
        raise ValidationError("item_id", "no such item on the bill", item_id)

    def remove_item(self, item_id: str) -> None:
        self.draft.items = [item for item in self.draft.items if item.id != item_id]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self) -> bool:
        """Save the draft, then refresh the saved list."""
        s_no = self.draft.s_no
        try:
            await self._storage.save_record(self.draft)
        except QuickBillError as e:
            logger.error("bill_save_failed", s_no=s_no, error=e.message)
            self._notify("error", "Error saving bill.")
            return False
        await self.refresh()
        self._notify("info", f"Bill {s_no} saved!")
        return True

    async def delete(self, s_no: str) -> bool:
        """Delete a saved bill, then refresh the saved list."""
        try:
            await self._storage.delete_record(s_no)
        except QuickBillError as e:
            logger.error("bill_delete_failed", s_no=s_no, error=e.message)
            self._notify("error", "Error deleting bill.")
            return False
        await self.refresh()
        self._notify("info", f"Bill {s_no} deleted.")
        return True

    def dismiss_notice(self) -> None:
        self.notice = None

    def _notify(self, level: Literal["info", "error"], message: str) -> None:
        self.notice = Notice(level=level, message=message)

    def _replace_draft(self, record: BillRecord) -> None:
        self.draft = record
        self._draft_version += 1
