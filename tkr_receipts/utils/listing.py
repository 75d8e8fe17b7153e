"""Helpers shared by the receipt and booking table views."""

import re
from datetime import date, datetime
from typing import Any, Iterable

from tkr_receipts.utils.dates import to_western

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)")


def parse_amount(value: str) -> float:
    """
    Parse a free-text amount like '$1,250 USD' or '٥٠٠'.

    Non-numeric characters are dropped and the leading number is used;
    anything unparseable counts as 0.
    """
    cleaned = _NON_NUMERIC.sub("", to_western(value or ""))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def parse_date(value: Any) -> float:
    """Timestamp used to sort date fields; invalid dates sort first."""
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    try:
        return datetime.fromisoformat(str(value)).timestamp()
    except ValueError:
        return float("-inf")


def matches_search(term: str, values: Iterable[str | None]) -> bool:
    """Case-insensitive substring match over any of the values."""
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in (value or "").lower() for value in values)


def text_sort_key(value: Any) -> Any:
    """Sort key for plain fields: strings compare case-insensitively."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.lower()
    if hasattr(value, "value"):
        return value.value
    return value
