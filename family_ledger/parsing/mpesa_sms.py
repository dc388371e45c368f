"""
M-Pesa "received" confirmation message parser.

Used to pre-fill the contribution form from a pasted SMS such as:

    QWE12345XY Confirmed.You have received Ksh10,000.00 from
    JANE DOE 0723111222 on 5/3/26 at 8:46 AM New M-PESA balance is ...

The only classification signal is the phrase "you have received".
Sent, withdrawn and paid messages are not recognised and return an
empty result. Each field is extracted independently.
"""

import re
from datetime import datetime
from typing import Optional

from family_ledger.parsing.candidates import ParsedPaymentMessage
from family_ledger.parsing.text import (
    build_local_datetime,
    normalize_name,
    normalize_whitespace,
    parse_amount,
)

RECEIVED_RE = re.compile(r"you have received", re.IGNORECASE)
REF_RE = re.compile(r"^([A-Z0-9]{8,15})\b", re.IGNORECASE)
AMOUNT_RE = re.compile(r"received\s+Ksh\.?\s*([\d,]+(?:\.\d+)?)", re.IGNORECASE)
NAME_RE = re.compile(r"from\s+(.+?)\s+on\s+\d{1,2}/\d{1,2}/\d{2,4}", re.IGNORECASE)
DATETIME_RE = re.compile(
    r"on\s+(\d{1,2})/(\d{1,2})/(\d{2,4})\s+at\s+(\d{1,2}):(\d{2})\s*(AM|PM)?",
    re.IGNORECASE,
)

# Local (0...) or country-code (254... / +254...) numbers embedded in the name
PHONE_RE = re.compile(r"(?<!\w)(?:\+?254|0)\d{8,9}\b")
MASK_RE = re.compile(r"\*+")
MULTI_SPACE_RE = re.compile(r"\s{2,}")


def _extract_ref(text: str) -> Optional[str]:
    match = REF_RE.match(text)
    return match.group(1) if match else None


def _extract_amount(text: str) -> Optional[int]:
    match = AMOUNT_RE.search(text)
    return parse_amount(match.group(1)) if match else None


def _extract_name(text: str) -> Optional[str]:
    match = NAME_RE.search(text)
    if not match:
        return None

    candidate = PHONE_RE.sub("", match.group(1))
    candidate = MASK_RE.sub("", candidate)
    candidate = MULTI_SPACE_RE.sub(" ", candidate).strip()
    if not candidate:
        return None
    return normalize_name(candidate)


def _extract_datetime(text: str) -> Optional[datetime]:
    match = DATETIME_RE.search(text)
    if not match:
        return None
    day, month, year, hour, minute, meridiem = match.groups()
    return build_local_datetime(year, month, day, hour, minute, meridiem=meridiem)


def parse_received_payment_message(text: str) -> ParsedPaymentMessage:
    """
    Parse one pasted confirmation message.

    Args:
        text: Raw message text, possibly empty or multi-line

    Returns:
        ParsedPaymentMessage with whatever could be recovered. An empty
        result means the text is not a "received" confirmation.
    """
    normalized = normalize_whitespace(text or "")
    if not normalized or not RECEIVED_RE.search(normalized):
        return ParsedPaymentMessage()

    return ParsedPaymentMessage(
        ref=_extract_ref(normalized),
        name=_extract_name(normalized),
        amount=_extract_amount(normalized),
        contributed_at=_extract_datetime(normalized),
    )
