"""
Log Event Models for Family Ledger

Significant ledger actions are emitted as structured log events.
They go to the local structlog stream only; the ledger keeps no
historical trail beyond created/updated timestamps on each record.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we log."""
    # Session
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGGED_OUT = "logged_out"

    # Contributions
    MESSAGE_PARSED = "message_parsed"
    CONTRIBUTION_SAVED = "contribution_saved"
    CONTRIBUTION_REJECTED = "contribution_rejected"
    CONTRIBUTION_DELETED = "contribution_deleted"
    DEFAULT_ROWS_SEEDED = "default_rows_seeded"

    # Statement import
    STATEMENT_IMPORTED = "statement_imported"
    STATEMENT_NOTHING_DETECTED = "statement_nothing_detected"
    STATEMENT_UNREADABLE = "statement_unreadable"

    # Expenses
    EXPENSE_SAVED = "expense_saved"
    EXPENSE_DELETED = "expense_deleted"

    # Updates
    UPDATE_GENERATED = "update_generated"
    EXPENSE_UPDATE_GENERATED = "expense_update_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for log events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single log event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.now)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'contribution', 'expense', 'statement')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - for tracking related events (e.g. one statement import)
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build log events with common patterns.

    Usage:
        event = AuditEventBuilder.contribution_saved(contribution_id, ...)
        await audit_logger.log(event)
    """

    @staticmethod
    def login_succeeded() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="session",
            description="Admin signed in",
        )

    @staticmethod
    def login_failed() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description="Incorrect admin password",
        )

    @staticmethod
    def logged_out() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGGED_OUT,
            entity_type="session",
            description="Admin signed out",
        )

    @staticmethod
    def message_parsed(complete: bool, has_ref: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_PARSED,
            entity_type="message",
            description="Pasted message parsed" if complete else "Pasted message not recognised",
            details={"complete": complete, "has_ref": has_ref},
        )

    @staticmethod
    def contribution_saved(
        contribution_id: UUID,
        name: str,
        amount: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_SAVED,
            entity_type="contribution",
            entity_id=contribution_id,
            correlation_id=correlation_id,
            description=f"Contribution saved from {source}",
            details={"name": name, "amount": amount, "source": source},
        )

    @staticmethod
    def contribution_rejected(
        reason: str,
        ref: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="contribution",
            correlation_id=correlation_id,
            description="Contribution not saved",
            details={"reason": reason, "ref": ref},
        )

    @staticmethod
    def contribution_deleted(contribution_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_DELETED,
            entity_type="contribution",
            entity_id=contribution_id,
            description="Contribution deleted",
        )

    @staticmethod
    def default_rows_seeded(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEFAULT_ROWS_SEEDED,
            entity_type="contribution",
            description="Pinned contributions seeded",
            details={"count": count},
        )

    @staticmethod
    def statement_imported(
        detected: int,
        imported: int,
        skipped: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_IMPORTED,
            entity_type="statement",
            correlation_id=correlation_id,
            description="Statement imported",
            details={"detected": detected, "imported": imported, "skipped": skipped},
        )

    @staticmethod
    def statement_nothing_detected(
        text_length: int,
        near_misses: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_NOTHING_DETECTED,
            severity=AuditSeverity.WARNING,
            entity_type="statement",
            correlation_id=correlation_id,
            description="No transactions detected in statement",
            details={"text_length": text_length, "near_misses": near_misses},
        )

    @staticmethod
    def statement_unreadable(error_message: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_UNREADABLE,
            severity=AuditSeverity.WARNING,
            entity_type="statement",
            correlation_id=correlation_id,
            description="Statement could not be read",
            error_message=error_message,
        )

    @staticmethod
    def expense_saved(expense_id: UUID, title: str, amount: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense saved",
            details={"title": title, "amount": amount},
        )

    @staticmethod
    def expense_deleted(expense_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
        )

    @staticmethod
    def update_generated(update_id: UUID, new_count: int, new_amount: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UPDATE_GENERATED,
            entity_type="update",
            entity_id=update_id,
            description="Contribution update generated",
            details={"new_count": new_count, "new_amount": new_amount},
        )

    @staticmethod
    def expense_update_generated(update_id: UUID, expense_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATE_GENERATED,
            entity_type="expense_update",
            entity_id=update_id,
            description="Expense update generated",
            details={"expense_count": expense_count},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Storage operation failed: {operation}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
