"""Date helpers for receipts (Western and Eastern Arabic numerals)."""

from datetime import date, datetime

EASTERN_ARABIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"

_TO_EASTERN = str.maketrans("0123456789", EASTERN_ARABIC_DIGITS)
_TO_WESTERN = str.maketrans(EASTERN_ARABIC_DIGITS, "0123456789")


def to_eastern_arabic(value: int | str, width: int = 0) -> str:
    """Render a number with Eastern Arabic digits, zero-padded to width."""
    return str(value).zfill(width).translate(_TO_EASTERN)


def to_western(value: str) -> str:
    """Convert any Eastern Arabic digits in a string to Western digits."""
    return value.translate(_TO_WESTERN)


def format_slash_date(day: str, month: str, year: str) -> str:
    """Format date parts as 'DD / MM / YYYY', keeping gaps for missing parts."""
    return f"{day or '  '} / {month or '  '} / {year or '    '}"


def format_iso_date(iso_date: str) -> str:
    """Turn 'YYYY-MM-DD' into 'DD / MM / YYYY'."""
    parts = iso_date.split("-")
    year = parts[0] if len(parts) > 0 else ""
    month = parts[1] if len(parts) > 1 else ""
    day = parts[2] if len(parts) > 2 else ""
    return format_slash_date(day, month, year)


def filename_timestamp(now: datetime | None = None) -> str:
    """Timestamp used for generated file names, e.g. 20250314_0930."""
    now = now or datetime.now()
    return now.strftime("%Y%m%d_%H%M")


def today_iso(today: date | None = None) -> str:
    """Today's date as YYYY-MM-DD."""
    return (today or date.today()).isoformat()
