"""Core domain entities."""

from quickbill.core.entities.bill import (
    FIRST_SEQUENCE_NUMBER,
    BillItem,
    BillRecord,
    BillTotals,
    format_sequence_number,
    is_sequence_number,
    latest_for_customer,
    matches_customer,
    next_sequence_number,
    normalize_sequence_number,
    sequence_value,
    sort_newest_first,
)

__all__ = [
    # Bill entities
    "BillItem",
    "BillRecord",
    "BillTotals",
    # Sequence helpers
    "FIRST_SEQUENCE_NUMBER",
    "format_sequence_number",
    "is_sequence_number",
    "next_sequence_number",
    "normalize_sequence_number",
    "sequence_value",
    # Query helpers
    "sort_newest_first",
    "matches_customer",
    "latest_for_customer",
]
