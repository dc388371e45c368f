"""
Core Data Models for Family Ledger

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Give the admin clear, single-sentence error messages
3. Be serializable for storage (JSON snapshot, Google Sheets rows)

All datetimes are naive local time. Amounts are whole Kenyan shillings.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic_core import PydanticCustomError

from family_ledger.parsing.candidates import ParsedStatementContribution
from family_ledger.parsing.text import as_local, normalize_name, normalize_ref


def _now() -> datetime:
    return datetime.now()


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class Contribution(BaseModel):
    """A money contribution received from a family member or friend."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    ref: Optional[str] = Field(
        default=None,
        description="M-Pesa receipt code, unique when present"
    )
    contributed_at: datetime = Field(default_factory=_now)
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Expense(BaseModel):
    """Money spent out of the collected pool."""

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    spent_at: datetime = Field(default_factory=_now)
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class LedgerUpdate(BaseModel):
    """
    A generated contribution update message.

    cutoff_at marks which contributions counted as "new" for the next
    update.
    """

    id: UUID = Field(default_factory=uuid4)
    cutoff_at: datetime
    generated_message: str
    created_at: datetime = Field(default_factory=_now)


class ExpenseUpdate(BaseModel):
    """A generated expense list message."""

    id: UUID = Field(default_factory=uuid4)
    generated_message: str
    created_at: datetime = Field(default_factory=_now)


class PinnedContribution(BaseModel):
    """A fixed row always listed first in the contribution update."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)


# =============================================================================
# DASHBOARD MODELS
# =============================================================================

class RunningTotal(BaseModel):
    """Total contributed by one person (names matched case-insensitively)."""

    key: str
    name: str
    total: int
    last_contributed_at: datetime


class DashboardMetrics(BaseModel):
    """Aggregates shown on the dashboard and used by the update message."""

    total_collected: int = 0
    last_update_at: Optional[datetime] = None
    new_since_last_update_amount: int = 0
    new_since_last_update_count: int = 0
    new_contributions: list[Contribution] = Field(default_factory=list)
    running_totals: list[RunningTotal] = Field(default_factory=list)


# =============================================================================
# FORM INPUT MODELS
# =============================================================================

def _parse_whole_amount(value: Any, required_message: str) -> int:
    """Accept 10000, "10000" or "10,000"; reject fractions and non-positive."""
    if isinstance(value, bool):
        raise PydanticCustomError("amount_required", required_message)
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            raise PydanticCustomError("amount_required", required_message)
        try:
            value = float(value)
        except ValueError:
            raise PydanticCustomError("amount_required", required_message)
    if value is None or not isinstance(value, (int, float)):
        raise PydanticCustomError("amount_required", required_message)
    if value != value or value in (float("inf"), float("-inf")):
        raise PydanticCustomError("amount_required", required_message)
    if int(value) != value:
        raise PydanticCustomError("amount_whole", "Amount must be a whole number")
    if value <= 0:
        raise PydanticCustomError("amount_positive", "Amount must be greater than 0")
    return int(value)


def _parse_optional_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_local(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return as_local(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            pass
    raise PydanticCustomError("invalid_datetime", "Invalid date/time")


def _optional_text(value: Any, max_length: int, too_long: str) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if len(value) > max_length:
        raise PydanticCustomError("too_long", too_long)
    return value


def _required_text(value: Any, min_length: int, max_length: int, missing: str, too_long: str) -> str:
    value = normalize_name(str(value or ""))
    if len(value) < min_length:
        raise PydanticCustomError("required", missing)
    if len(value) > max_length:
        raise PydanticCustomError("too_long", too_long)
    return value


class ContributionInput(BaseModel):
    """
    Contribution form input.

    Validates and normalizes what the admin typed (or what a parser
    pre-filled) before it is handed to storage.
    """

    name: str
    amount: int
    ref: Optional[str] = None
    contributed_at: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, v: Any) -> str:
        return _required_text(v, 2, 120, "Name is required", "Name is too long")

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v: Any) -> int:
        return _parse_whole_amount(v, "Amount is required")

    @field_validator('ref', mode='before')
    @classmethod
    def validate_ref(cls, v: Any) -> Optional[str]:
        return _optional_text(v, 120, "Reference is too long")

    @field_validator('contributed_at', mode='before')
    @classmethod
    def validate_contributed_at(cls, v: Any) -> Optional[datetime]:
        return _parse_optional_datetime(v)

    @field_validator('note', mode='before')
    @classmethod
    def validate_note(cls, v: Any) -> Optional[str]:
        return _optional_text(v, 500, "Note is too long")

    @classmethod
    def from_candidate(cls, candidate: ParsedStatementContribution) -> "ContributionInput":
        """Input for a statement candidate accepted for import."""
        return cls(
            name=candidate.name,
            amount=candidate.amount,
            ref=normalize_ref(candidate.ref),
            contributed_at=candidate.contributed_at,
            note="Imported from statement",
        )


class ExpenseInput(BaseModel):
    """Expense form input."""

    title: str
    amount: int
    spent_at: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return _required_text(v, 2, 140, "Expense title is required", "Expense title is too long")

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v: Any) -> int:
        return _parse_whole_amount(v, "Expense amount is required")

    @field_validator('spent_at', mode='before')
    @classmethod
    def validate_spent_at(cls, v: Any) -> Optional[datetime]:
        return _parse_optional_datetime(v)

    @field_validator('note', mode='before')
    @classmethod
    def validate_note(cls, v: Any) -> Optional[str]:
        return _optional_text(v, 500, "Note is too long")


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid', 'near_duplicate', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage input validation.

    Stage 1: Schema validation (types, required fields)
    Stage 2: Semantic validation (near duplicates, odd dates)
    """

    schema_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def first_error(self) -> Optional[str]:
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None


# =============================================================================
# FLOW OUTCOMES
# =============================================================================

class ContributionOutcome(BaseModel):
    """What happened when the admin submitted a contribution."""

    success: bool
    contribution: Optional[Contribution] = None
    error: Optional[str] = None
    warning: Optional[str] = None


class ExpenseOutcome(BaseModel):
    """What happened when the admin submitted an expense."""

    success: bool
    expense: Optional[Expense] = None
    error: Optional[str] = None


class StatementImportResult(BaseModel):
    """
    Summary of one statement import.

    preview holds the first few imported candidates; near_misses holds raw
    blocks that triggered detection but could not be parsed, so the admin
    can see why nothing was found.
    """

    success: bool
    error: Optional[str] = None
    detected_count: int = 0
    imported_count: int = 0
    skipped_count: int = 0
    warnings: list[str] = Field(default_factory=list)
    preview: list[ParsedStatementContribution] = Field(default_factory=list)
    near_misses: list[str] = Field(default_factory=list)


class GeneratedUpdate(BaseModel):
    """A generated contribution update and the numbers behind it."""

    message: str
    generated_at: datetime
    total_collected: int
    new_amount: int
    new_count: int
