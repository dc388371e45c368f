"""
Tests for Family Ledger models

Test strategy:
1. Unit tests for individual components (models, parsers, validators)
2. Integration tests for flows (in-memory storage, fake extractor)
3. No real Google Sheets calls in tests
"""

import pytest
from datetime import datetime
from uuid import uuid4

from pydantic import ValidationError

from family_ledger.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    ContributionInput,
    ExpenseInput,
    ParsedPaymentMessage,
    ParsedStatementContribution,
    PinnedContribution,
    ValidationIssue,
    ValidationResult,
)


class TestInputModels:
    """Tests for form input models."""

    def test_contribution_input_normalizes_name(self):
        """Test that name whitespace is collapsed."""
        data = ContributionInput(name="  Mary   Achieng ", amount=500)
        assert data.name == "Mary Achieng"
        assert data.ref is None

    def test_contribution_input_accepts_thousands_separators(self):
        """Test that "10,000" is read as 10000."""
        data = ContributionInput(name="Mary", amount="10,000")
        assert data.amount == 10000

    def test_contribution_input_accepts_whole_float(self):
        """Test that 2500.0 is a whole amount."""
        data = ContributionInput(name="Mary", amount=2500.0)
        assert data.amount == 2500

    def test_contribution_input_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError, match="Amount must be greater than 0"):
            ContributionInput(name="Mary", amount=-100)

    def test_contribution_input_rejects_boolean_amount(self):
        """Test that True is not mistaken for 1."""
        with pytest.raises(ValidationError, match="Amount is required"):
            ContributionInput(name="Mary", amount=True)

    def test_from_candidate(self):
        """Test conversion of a statement candidate."""
        candidate = ParsedStatementContribution(
            name="MARY ACHIENG",
            amount=5000,
            contributed_at=datetime(2026, 2, 25, 13, 31),
            ref="RCK1ABC2DE",
            raw_snippet="RCK1ABC2DE ... Funds received from ...",
        )
        data = ContributionInput.from_candidate(candidate)

        assert data.name == "MARY ACHIENG"
        assert data.ref == "RCK1ABC2DE"
        assert data.note == "Imported from statement"

    def test_from_candidate_rejects_one_letter_name(self):
        """Test that statement names still need two characters."""
        candidate = ParsedStatementContribution(name="X", amount=500, raw_snippet="X")
        with pytest.raises(ValidationError, match="Name is required"):
            ContributionInput.from_candidate(candidate)

    def test_expense_input_messages(self):
        """Test expense-specific error messages."""
        with pytest.raises(ValidationError, match="Expense title is required"):
            ExpenseInput(title="", amount=100)
        with pytest.raises(ValidationError, match="Expense amount is required"):
            ExpenseInput(title="Tent", amount=None)

    def test_pinned_contribution_strips_whitespace(self):
        """Test that pinned names are trimmed."""
        pinned = PinnedContribution(name="  Family Pledge ", amount=300000)
        assert pinned.name == "Family Pledge"


class TestParsedModels:
    """Tests for parser outputs."""

    def test_payment_message_completeness(self):
        """Test is_complete and is_empty."""
        assert ParsedPaymentMessage().is_empty
        assert not ParsedPaymentMessage(name="JANE").is_complete
        assert ParsedPaymentMessage(name="JANE", amount=100).is_complete

    def test_dedupe_key_ignores_name_case(self):
        """Test that repeated blocks collapse regardless of name case."""
        first = ParsedStatementContribution(name="Mary", amount=100, raw_snippet="a")
        second = ParsedStatementContribution(name="MARY", amount=100, raw_snippet="b")
        assert first.dedupe_key == second.dedupe_key


class TestAuditModels:
    """Tests for log event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_SAVED,
            description="Contribution saved",
        )
        assert event.event_type == AuditEventType.CONTRIBUTION_SAVED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            description="Expense saved",
            details={"title": "Tent deposit", "amount": 15000},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_saved"
        assert log_dict["details"]["title"] == "Tent deposit"
        assert log_dict["entity_id"] is None

    def test_audit_event_builder_contribution_saved(self):
        """Test AuditEventBuilder.contribution_saved."""
        contribution_id = uuid4()
        correlation_id = uuid4()

        event = AuditEventBuilder.contribution_saved(
            contribution_id=contribution_id,
            name="Mary",
            amount=500,
            source="statement",
            correlation_id=correlation_id,
        )

        assert event.entity_id == contribution_id
        assert event.correlation_id == correlation_id
        assert event.details["source"] == "statement"

    def test_audit_event_builder_login_failed(self):
        """Test that failed logins are warnings."""
        event = AuditEventBuilder.login_failed()
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.severity == AuditSeverity.WARNING


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="amount_required",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.first_error == "Amount is required"

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            issues=[
                ValidationIssue(
                    field="contributed_at",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.first_error is None
        assert result.warnings == ["Date in future"]

    def test_issue_severity_is_restricted(self):
        """Test that unknown severities are rejected."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="x", message="x", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
