"""
Tests for the shared text helpers.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from family_ledger.parsing.text import (
    as_local,
    build_local_datetime,
    expand_year,
    name_key,
    normalize_ref,
    parse_amount,
    round_amount,
    to_24_hour,
)


class TestParseAmount:
    """Tests for money token parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("10,000.00", 10000),
        ("10000", 10000),
        ("KES 5,000.00", 5000),
        ("kes1,250", 1250),
        ("12.50", 13),
        ("12.49", 12),
    ])
    def test_valid_amounts(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "KES", "0.00", "-5", "abc", "0.4"])
    def test_invalid_amounts(self, raw):
        assert parse_amount(raw) is None

    def test_round_half_up(self):
        assert round_amount(Decimal("2.5")) == 3
        assert round_amount(Decimal("3.5")) == 4


class TestClockAndCalendar:
    """Tests for date and time component handling."""

    @pytest.mark.parametrize("hour,meridiem,expected", [
        (12, "AM", 0),
        (12, "PM", 12),
        (1, "pm", 13),
        (11, "AM", 11),
        (15, None, 15),
    ])
    def test_to_24_hour(self, hour, meridiem, expected):
        assert to_24_hour(hour, meridiem) == expected

    def test_expand_year(self):
        assert expand_year(26) == 2026
        assert expand_year(2026) == 2026

    def test_build_local_datetime(self):
        assert build_local_datetime("26", "3", "5", "8", "46", meridiem="AM") == datetime(2026, 3, 5, 8, 46)

    def test_impossible_date_is_none(self):
        assert build_local_datetime("26", "2", "31", "10", "00") is None

    def test_impossible_time_is_none(self):
        assert build_local_datetime("2026", "2", "1", "25", "00") is None

    def test_as_local_keeps_naive(self):
        value = datetime(2026, 3, 5, 8, 46)
        assert as_local(value) is value

    def test_as_local_drops_timezone(self):
        aware = datetime(2026, 3, 5, 8, 46, tzinfo=timezone(timedelta(hours=3)))
        assert as_local(aware).tzinfo is None


class TestNormalization:
    """Tests for name and reference normalization."""

    def test_name_key_is_case_and_space_insensitive(self):
        assert name_key("  Jane   DOE ") == name_key("jane doe")

    def test_blank_ref_is_none(self):
        assert normalize_ref("   ") is None
        assert normalize_ref(None) is None
        assert normalize_ref(" ABC12345 ") == "ABC12345"
