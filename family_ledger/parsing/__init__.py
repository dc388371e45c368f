"""
Parsing Package

The two text parsers at the core of the ledger. Both are pure functions
over in-memory text: raw text in, structured candidates out (or none).
"""

from family_ledger.parsing.candidates import (
    ParsedPaymentMessage,
    ParsedStatementContribution,
)
from family_ledger.parsing.mpesa_sms import parse_received_payment_message
from family_ledger.parsing.statement import (
    AmountColumnStrategy,
    FirstMatchStrategy,
    NearPhraseStrategy,
    PaidInAfterStatusStrategy,
    StatementLayout,
    StatementParser,
    default_amount_strategy,
    parse_statement_text,
)

__all__ = [
    # Candidates
    "ParsedPaymentMessage",
    "ParsedStatementContribution",
    # Message parser
    "parse_received_payment_message",
    # Statement parser
    "AmountColumnStrategy",
    "FirstMatchStrategy",
    "NearPhraseStrategy",
    "PaidInAfterStatusStrategy",
    "StatementLayout",
    "StatementParser",
    "default_amount_strategy",
    "parse_statement_text",
]
