"""
Data Models Package

This package contains all Pydantic models used in the Family Ledger.
Parsed candidates live in family_ledger.parsing and are re-exported here.
"""

from family_ledger.models.ledger import (
    Contribution,
    ContributionInput,
    ContributionOutcome,
    DashboardMetrics,
    Expense,
    ExpenseInput,
    ExpenseOutcome,
    ExpenseUpdate,
    GeneratedUpdate,
    LedgerUpdate,
    PinnedContribution,
    RunningTotal,
    StatementImportResult,
    ValidationIssue,
    ValidationResult,
)
from family_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from family_ledger.parsing.candidates import (
    ParsedPaymentMessage,
    ParsedStatementContribution,
)

__all__ = [
    # Ledger models
    "Contribution",
    "ContributionInput",
    "ContributionOutcome",
    "DashboardMetrics",
    "Expense",
    "ExpenseInput",
    "ExpenseOutcome",
    "ExpenseUpdate",
    "GeneratedUpdate",
    "LedgerUpdate",
    "PinnedContribution",
    "RunningTotal",
    "StatementImportResult",
    "ValidationIssue",
    "ValidationResult",
    # Parsed candidates
    "ParsedPaymentMessage",
    "ParsedStatementContribution",
    # Log event models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
