"""
Two-Stage Validation Pipeline

DESIGN DECISION: Form input is validated in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required fields, whole positive amounts, lengths, date format
- Done by the pydantic input models; each failure becomes an error issue

STAGE 2 - SEMANTIC VALIDATION:
- Near duplicates (same name and amount moments apart, no reference)
- Dates further in the future than the configured tolerance
- Only produces warnings: the admin knows things the ledger does not

Stage 2 is skipped when stage 1 fails.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from family_ledger.config import get_settings
from family_ledger.models.ledger import (
    Contribution,
    ContributionInput,
    ExpenseInput,
    ValidationIssue,
    ValidationResult,
)
from family_ledger.reports.dashboard import find_near_duplicate_warning

CONTRIBUTION_FIELDS = ("name", "amount", "ref", "contributed_at", "note")
EXPENSE_FIELDS = ("title", "amount", "spent_at", "note")


def _schema_issues(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for err in error.errors():
        field = str(err["loc"][0]) if err.get("loc") else "form"
        issues.append(ValidationIssue(
            field=field,
            issue_type=err.get("type", "invalid"),
            message=err.get("msg", "Invalid value"),
            severity="error",
        ))
    return issues


class LedgerValidator:
    """
    Validates contribution and expense form input.

    Stage 1: Schema validation (pydantic input models)
    Stage 2: Semantic validation (needs the existing contributions)
    """

    def __init__(
        self,
        near_duplicate_window_minutes: Optional[int] = None,
        future_date_tolerance_days: Optional[int] = None,
    ):
        settings = get_settings().app
        self._window_minutes = (
            near_duplicate_window_minutes
            if near_duplicate_window_minutes is not None
            else settings.near_duplicate_window_minutes
        )
        self._future_tolerance = timedelta(days=(
            future_date_tolerance_days
            if future_date_tolerance_days is not None
            else settings.future_date_tolerance_days
        ))

    def _validate_schema(
        self,
        model: type[BaseModel],
        fields: tuple[str, ...],
        raw: dict[str, Any],
    ) -> tuple[Optional[BaseModel], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Every known field is passed explicitly so that missing form
        values get the same messages as blank ones.

        Returns: (validated_input or None, list_of_issues)
        """
        data = {key: raw.get(key) for key in fields}
        try:
            return model.model_validate(data), []
        except ValidationError as e:
            return None, _schema_issues(e)

    def _check_future_date(self, field: str, value: Optional[datetime]) -> list[ValidationIssue]:
        if value is None or value <= datetime.now() + self._future_tolerance:
            return []
        return [ValidationIssue(
            field=field,
            issue_type="future_date",
            message=f"Date ({value:%Y-%m-%d %H:%M}) is in the future",
            severity="warning",
        )]

    def _validate_contribution_semantic(
        self,
        data: ContributionInput,
        existing: list[Contribution],
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Checks:
        - Near duplicates (only when no reference was given)
        - Future dates
        """
        issues = []

        if not data.ref:
            warning = find_near_duplicate_warning(
                existing,
                data.name,
                data.amount,
                data.contributed_at,
                window_minutes=self._window_minutes,
            )
            if warning:
                issues.append(ValidationIssue(
                    field="name",
                    issue_type="near_duplicate",
                    message=warning,
                    severity="warning",
                ))

        issues.extend(self._check_future_date("contributed_at", data.contributed_at))
        return issues

    def validate_contribution(
        self,
        raw: dict[str, Any],
        existing: list[Contribution],
    ) -> tuple[Optional[ContributionInput], ValidationResult]:
        """
        Run full two-stage validation on a contribution form.

        Args:
            raw: Form values keyed by field name
            existing: Contributions already in the ledger

        Returns:
            (ContributionInput or None if schema validation failed, result)
        """
        data, issues = self._validate_schema(ContributionInput, CONTRIBUTION_FIELDS, raw)
        if data is not None:
            issues.extend(self._validate_contribution_semantic(data, existing))
        return data, ValidationResult(schema_valid=data is not None, issues=issues)

    def validate_expense(
        self,
        raw: dict[str, Any],
    ) -> tuple[Optional[ExpenseInput], ValidationResult]:
        """Run two-stage validation on an expense form."""
        data, issues = self._validate_schema(ExpenseInput, EXPENSE_FIELDS, raw)
        if data is not None:
            issues.extend(self._check_future_date("spent_at", data.spent_at))
        return data, ValidationResult(schema_valid=data is not None, issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Summarize validation results for display.

        Errors come first; warnings follow.
        """
        if not result.issues:
            return "✅ All checks passed."

        lines = []
        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
