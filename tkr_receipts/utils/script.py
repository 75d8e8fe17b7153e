"""
Script detection and Arabic display shaping.

A value is classified as Arabic when it contains at least one code point
from ARABIC_RANGES; otherwise it is Latin. Mixed values are rendered
entirely in the Arabic face.
"""

from enum import Enum

import arabic_reshaper
from bidi.algorithm import get_display


class Script(str, Enum):
    """Script of a filled value."""

    LATIN = "latin"
    ARABIC = "arabic"


# Inclusive code point ranges treated as Arabic script
ARABIC_RANGES: tuple[tuple[int, int], ...] = (
    (0x0600, 0x06FF),  # Arabic
    (0x0750, 0x077F),  # Arabic Supplement
    (0x08A0, 0x08FF),  # Arabic Extended-A
    (0xFB50, 0xFDFF),  # Arabic Presentation Forms-A
    (0xFE70, 0xFEFF),  # Arabic Presentation Forms-B
)

SEPARATOR_CHARS = "/"


def is_arabic_char(char: str) -> bool:
    """Check a single character against the Arabic range table."""
    code = ord(char)
    return any(start <= code <= end for start, end in ARABIC_RANGES)


def contains_arabic(value: str) -> bool:
    """Return True if any character of the value is in an Arabic range."""
    return any(is_arabic_char(char) for char in value)


def detect_script(value: str) -> Script:
    """Classify a value as Arabic or Latin."""
    return Script.ARABIC if contains_arabic(value) else Script.LATIN


def is_blank_value(value: str | None) -> bool:
    """
    Check whether a value has nothing worth drawing.

    Empty strings and bare separator artifacts (e.g. "/" or " // " left
    over from an empty date) are treated as blank.
    """
    if not value:
        return True
    return value.strip().strip(SEPARATOR_CHARS + " ") == ""


def shape_arabic(text: str) -> str:
    """Reshape Arabic letters and reorder for left-to-right drawing APIs."""
    if not text or not contains_arabic(text):
        return text
    return get_display(arabic_reshaper.reshape(text))


def display_value(value: str) -> tuple[str, Script]:
    """
    Prepare a filled value for drawing.

    Args:
        value: Raw field value

    Returns:
        Tuple of (logical text, detected script). Arabic text keeps its
        case; Latin text is upper-cased.
    """
    script = detect_script(value)
    if script is Script.ARABIC:
        return value, script
    return value.upper(), script
