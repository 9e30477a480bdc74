"""
Bill domain entities with Pydantic v2 validation.

All numeric fields use validators to ensure they're never None, so a
stored record always carries plain numbers. Totals are derived on demand
and never persisted.
"""

import datetime as dt
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

SEQUENCE_WIDTH = 4
FIRST_SEQUENCE_NUMBER = "0001"

_DIGITS_RE = re.compile(r"^[0-9]+$")
# Characters that cannot appear in a document-store key
RESERVED_KEY_CHARS_RE = re.compile(r"[.$#\[\]/]")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


def _new_item_id() -> str:
    return uuid4().hex[:12]


def coerce_number(v: Any) -> float:
    """Convert None/empty/invalid/NaN to 0.0."""
    if v is None or v == "":
        return 0.0
    if isinstance(v, (int, float, Decimal)):
        number = float(v)
    else:
        try:
            s = str(v).strip().replace(",", "")
            if s.lower() in {"none", "nan", "null", "undefined", ""}:
                return 0.0
            number = float(s)
        except (ValueError, TypeError, AttributeError):
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


# ---------------------------------------------------------------------------
# Sequence numbers
# ---------------------------------------------------------------------------


def is_sequence_number(s_no: str) -> bool:
    """True when s_no is made only of decimal digits."""
    return bool(_DIGITS_RE.match(s_no or ""))


def normalize_sequence_number(s_no: str) -> str:
    """Strip s_no and zero-pad it when it is numeric ("7" -> "0007")."""
    s_no = s_no.strip()
    return s_no.zfill(SEQUENCE_WIDTH) if is_sequence_number(s_no) else s_no


def format_sequence_number(n: int) -> str:
    """Zero-pad a sequence value to the bill number width."""
    return str(n).zfill(SEQUENCE_WIDTH)


def sequence_value(s_no: str) -> int:
    """Numeric value of a bill number, -1 for non-numeric ones."""
    return int(s_no) if is_sequence_number(s_no) else -1


def next_sequence_number(s_nos: Iterable[str]) -> str:
    """
    Next bill number after the highest numeric one in s_nos.

    Non-numeric bill numbers are ignored. Returns "0001" when there is none.
    """
    highest = max((sequence_value(s) for s in s_nos), default=0)
    return format_sequence_number(max(highest, 0) + 1)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class BillItem(BaseModel):
    """
    Bill line item.

    Amount is always quantity * rate; it is never stored.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_item_id)
    name: str = ""
    quantity: float = 0.0
    rate: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            return _new_item_id()
        return str(v)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("quantity", "rate", mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> float:
        return coerce_number(v)

    @property
    def amount(self) -> float:
        return self.quantity * self.rate


@dataclass(frozen=True)
class BillTotals:
    """Derived bill totals."""

    sub_total: float
    total: float
    balance_due: float


class BillRecord(BaseModel):
    """
    A persisted bill, keyed by its sequence number.

    Serialized with the camelCase keys shared by every storage backend:
    sNo, date, customerName, items, basket, luggage, oldBalance, paidAmount.
    """

    model_config = ConfigDict(populate_by_name=True)

    s_no: str = Field(alias="sNo")
    date: dt.date = Field(default_factory=dt.date.today)
    customer_name: str = Field(default="", alias="customerName")
    items: list[BillItem] = Field(default_factory=list)

    # Numeric fields - NEVER None
    basket: float = 0.0
    luggage: float = 0.0
    old_balance: float = Field(default=0.0, alias="oldBalance")
    paid_amount: float = Field(default=0.0, alias="paidAmount")

    @field_validator("s_no", mode="before")
    @classmethod
    def normalize_s_no(cls, v: Any) -> str:
        """Strip and zero-pad numeric bill numbers ("7" -> "0007")."""
        if v is None:
            raise ValueError("sNo is required")
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        s = normalize_sequence_number(str(v))
        if not s:
            raise ValueError("sNo must not be empty")
        if RESERVED_KEY_CHARS_RE.search(s):
            raise ValueError("sNo must not contain any of . $ # [ ] /")
        return s

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> dt.date:
        """Accept date, datetime or a date string; blank means today."""
        if v is None:
            return dt.date.today()
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, dt.date):
            return v
        s = str(v).strip()
        if not s:
            return dt.date.today()
        # Timestamps like 2024-06-15T00:00:00.000Z carry the date first
        if len(s) > 10 and s[10] in "T ":
            s = s[:10]
        for fmt in _DATE_FORMATS:
            try:
                return dt.datetime.strptime(s, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"unrecognized date: {v!r}")

    @field_validator("customer_name", mode="before")
    @classmethod
    def coerce_customer(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("items", mode="before")
    @classmethod
    def coerce_items(cls, v: Any) -> Any:
        if v is None:
            return []
        return v

    @field_validator("basket", "luggage", "old_balance", "paid_amount", mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> float:
        return coerce_number(v)

    @classmethod
    def blank(cls, s_no: str = FIRST_SEQUENCE_NUMBER, on: dt.date | None = None) -> "BillRecord":
        """A fresh draft seeded with one empty line item."""
        return cls(s_no=s_no, date=on or dt.date.today(), items=[BillItem()])

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BillRecord":
        return cls.model_validate(payload)

    def to_payload(self) -> dict[str, Any]:
        """JSON-compatible dict in the shared record shape."""
        return self.model_dump(mode="json", by_alias=True)

    @property
    def sub_total(self) -> float:
        return sum(item.amount for item in self.items)

    @property
    def total(self) -> float:
        return self.sub_total + self.luggage

    @property
    def balance_due(self) -> float:
        return self.total + self.old_balance - self.paid_amount

    def totals(self) -> BillTotals:
        return BillTotals(
            sub_total=self.sub_total,
            total=self.total,
            balance_due=self.balance_due,
        )


def sort_newest_first(records: Iterable[BillRecord]) -> list[BillRecord]:
    """Order by date descending, then bill number descending."""
    return sorted(
        records,
        key=lambda r: (r.date, sequence_value(r.s_no), r.s_no),
        reverse=True,
    )


def matches_customer(record: BillRecord, name: str) -> bool:
    """Case-insensitive exact customer name match."""
    return record.customer_name.casefold() == name.casefold()


def latest_for_customer(records: Iterable[BillRecord]) -> BillRecord | None:
    """Most recently dated record; ties keep the first one seen."""
    latest: BillRecord | None = None
    for record in records:
        if latest is None or record.date > latest.date:
            latest = record
    return latest
