"""
Unit tests for script detection and date helpers

Tests Arabic/Latin classification, blank detection and numeral conversion
"""
from datetime import datetime

import pytest

from tkr_receipts.utils.dates import (
    filename_timestamp,
    format_iso_date,
    format_slash_date,
    to_eastern_arabic,
    to_western,
)
from tkr_receipts.utils.script import (
    Script,
    contains_arabic,
    detect_script,
    display_value,
    is_arabic_char,
    is_blank_value,
    shape_arabic,
)


@pytest.mark.unit
@pytest.mark.pdf
class TestScriptDetection:
    """Test suite for the script classifier"""

    @pytest.mark.parametrize(
        "char,expected",
        [
            ("ا", True),
            ("ب", True),
            ("ﻻ", True),  # presentation form
            ("٣", True),  # Eastern Arabic digit
            ("A", False),
            ("5", False),
            ("é", False),
        ],
    )
    def test_is_arabic_char(self, char, expected):
        """
        Test single character classification

        Given: A character
        When: is_arabic_char() is called
        Then: True only for code points in the Arabic range table
        """
        assert is_arabic_char(char) is expected

    def test_mixed_value_is_arabic(self):
        """
        Test that any Arabic character makes the whole value Arabic

        Given: A value mixing Latin letters, digits and one Arabic word
        When: detect_script() is called
        Then: The value is classified as Arabic
        """
        # Arrange
        value = "Tent 12 خيمة"

        # Act
        script = detect_script(value)

        # Assert
        assert script is Script.ARABIC
        assert contains_arabic(value)

    def test_pure_latin_value(self):
        """
        Test Latin classification

        Given: A value with no Arabic characters
        When: detect_script() is called
        Then: The value is Latin
        """
        assert detect_script("Karting Club 2025") is Script.LATIN

    @pytest.mark.parametrize("value", ["", None, "/", " / ", "//", "  /  /  "])
    def test_blank_values(self, value):
        """
        Test separator artifacts are blank

        Given: Empty values or bare '/' separators
        When: is_blank_value() is called
        Then: They are treated as blank
        """
        assert is_blank_value(value)

    @pytest.mark.parametrize("value", ["A", "12/03", "خيمة", " x "])
    def test_non_blank_values(self, value):
        """
        Test real values are not blank

        Given: Values with real content
        When: is_blank_value() is called
        Then: They are not blank
        """
        assert not is_blank_value(value)

    def test_display_value_uppercases_latin(self):
        """
        Test Latin values are upper-cased

        Given: A lower-case Latin value
        When: display_value() is called
        Then: Upper-cased text and Latin script are returned
        """
        text, script = display_value("food stand")

        assert text == "FOOD STAND"
        assert script is Script.LATIN

    def test_display_value_keeps_arabic_case(self):
        """
        Test Arabic values keep their case

        Given: A value mixing Arabic with lower-case Latin
        When: display_value() is called
        Then: The text is returned unchanged with Arabic script
        """
        text, script = display_value("stand كشك")

        assert text == "stand كشك"
        assert script is Script.ARABIC

    def test_shape_arabic_reorders_text(self):
        """
        Test Arabic shaping for drawing

        Given: Arabic text in logical order
        When: shape_arabic() is called
        Then: Presentation forms are produced and Latin text is left untouched
        """
        shaped = shape_arabic("مرحبا")

        assert shaped != "مرحبا"
        assert all(is_arabic_char(c) for c in shaped)
        assert shape_arabic("HELLO") == "HELLO"


@pytest.mark.unit
class TestDateHelpers:
    """Test suite for receipt date helpers"""

    def test_eastern_arabic_digits(self):
        """
        Test Eastern Arabic numerals

        Given: Numbers with and without padding
        When: to_eastern_arabic() is called
        Then: Digits are converted and zero-padded
        """
        assert to_eastern_arabic(7, 2) == "٠٧"
        assert to_eastern_arabic(2025, 4) == "٢٠٢٥"
        assert to_western("٢٠٢٥-٠٣") == "2025-03"

    def test_format_iso_date(self):
        """
        Test ISO date rendering

        Given: A YYYY-MM-DD date
        When: format_iso_date() is called
        Then: 'DD / MM / YYYY' is returned
        """
        assert format_iso_date("2025-03-14") == "14 / 03 / 2025"

    def test_format_slash_date_keeps_gaps(self):
        """
        Test missing date parts

        Given: Empty day and month
        When: format_slash_date() is called
        Then: Gaps are kept so the separators line up
        """
        assert format_slash_date("", "", "2025") == "   /    / 2025"

    def test_filename_timestamp(self):
        """
        Test timestamp used in generated file names

        Given: A fixed datetime
        When: filename_timestamp() is called
        Then: YYYYMMDD_HHMM is returned
        """
        assert filename_timestamp(datetime(2025, 3, 14, 9, 5)) == "20250314_0905"
