"""
Tests for the payment confirmation message parser.
"""

from datetime import datetime

import pytest

from family_ledger.parsing import parse_received_payment_message

SAMPLE_MESSAGE = (
    "QWE12345XY Confirmed.You have received Ksh10,000.00 from JANE DOE 0723111222 "
    "on 5/3/26 at 8:46 AM New M-PESA balance is Ksh25,000.00."
)


class TestReceivedMessage:
    """Tests for a well-formed 'received' confirmation."""

    def test_extracts_all_fields(self):
        parsed = parse_received_payment_message(SAMPLE_MESSAGE)

        assert parsed.ref == "QWE12345XY"
        assert parsed.name == "JANE DOE"
        assert parsed.amount == 10000
        assert parsed.contributed_at == datetime(2026, 3, 5, 8, 46)
        assert parsed.is_complete

    @pytest.mark.parametrize("amount_text", ["10,000.00", "10000", "10,000"])
    def test_amount_ignores_thousands_separators(self, amount_text):
        text = SAMPLE_MESSAGE.replace("Ksh10,000.00 from", f"Ksh{amount_text} from")
        assert parse_received_payment_message(text).amount == 10000

    def test_amount_with_dot_after_currency(self):
        text = SAMPLE_MESSAGE.replace("Ksh10,000.00 from", "Ksh. 2,500.00 from")
        assert parse_received_payment_message(text).amount == 2500

    def test_pm_time_converted_to_24_hour(self):
        text = SAMPLE_MESSAGE.replace("8:46 AM", "5:02 PM")
        assert parse_received_payment_message(text).contributed_at == datetime(2026, 3, 5, 17, 2)

    def test_twelve_am_is_midnight(self):
        text = SAMPLE_MESSAGE.replace("8:46 AM", "12:15 AM")
        assert parse_received_payment_message(text).contributed_at == datetime(2026, 3, 5, 0, 15)

    def test_country_code_phone_removed_from_name(self):
        text = SAMPLE_MESSAGE.replace("0723111222", "254723111222")
        assert parse_received_payment_message(text).name == "JANE DOE"

    def test_masked_phone_digits_removed_from_name(self):
        text = SAMPLE_MESSAGE.replace("JANE DOE 0723111222", "JANE   DOE ***")
        assert parse_received_payment_message(text).name == "JANE DOE"

    def test_multiline_message(self):
        text = SAMPLE_MESSAGE.replace(" from ", "\nfrom\n")
        parsed = parse_received_payment_message(text)
        assert parsed.name == "JANE DOE"
        assert parsed.amount == 10000


class TestPartialAndUnrecognised:
    """Tests for partial matches and non-matching input."""

    def test_empty_input(self):
        parsed = parse_received_payment_message("")
        assert parsed.is_empty
        assert not parsed.is_complete

    def test_sent_message_is_not_recognised(self):
        text = "QWE12345XY Confirmed. Ksh500.00 sent to JOHN DOE 0711222333 on 5/3/26 at 8:46 AM."
        assert parse_received_payment_message(text).is_empty

    def test_classification_is_case_insensitive(self):
        parsed = parse_received_payment_message(SAMPLE_MESSAGE.upper())
        assert parsed.amount == 10000

    def test_missing_ref(self):
        text = SAMPLE_MESSAGE.replace("QWE12345XY Confirmed.", "")
        parsed = parse_received_payment_message(text)
        assert parsed.ref is None
        assert parsed.name == "JANE DOE"

    def test_missing_date_leaves_name_unset(self):
        text = "You have received Ksh1,000.00 from JANE DOE."
        parsed = parse_received_payment_message(text)
        assert parsed.amount == 1000
        assert parsed.name is None
        assert parsed.contributed_at is None
        assert not parsed.is_complete

    def test_invalid_calendar_date_is_dropped(self):
        text = SAMPLE_MESSAGE.replace("5/3/26", "31/2/26")
        parsed = parse_received_payment_message(text)
        assert parsed.contributed_at is None
        assert parsed.name == "JANE DOE"

    def test_zero_amount_is_dropped(self):
        text = SAMPLE_MESSAGE.replace("Ksh10,000.00 from", "Ksh0.00 from")
        assert parse_received_payment_message(text).amount is None
