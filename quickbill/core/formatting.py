"""
Indian-locale number formatting for bill display.

Digits are grouped the en-IN way: the last three digits, then pairs
(12,34,567.89).
"""

from typing import Any

from quickbill.core.entities.bill import coerce_number


def _group_indian(integer_digits: str) -> str:
    if len(integer_digits) <= 3:
        return integer_digits
    head, tail = integer_digits[:-3], integer_digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def _format(value: float, min_fraction: int, max_fraction: int) -> str:
    rounded = round(value, max_fraction)
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):.{max_fraction}f}"
    integer_part, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_fraction:
        fraction = fraction.ljust(min_fraction, "0")
    grouped = _group_indian(integer_part)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def format_indian_number(value: Any) -> str:
    """Format with en-IN grouping and up to three decimals (1234567 -> 12,34,567)."""
    return _format(coerce_number(value), 0, 3)


def format_indian_currency(value: Any) -> str:
    """Format with en-IN grouping and exactly two decimals (1234.5 -> 1,234.50)."""
    return _format(coerce_number(value), 2, 2)
