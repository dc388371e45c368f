"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged as a
structured event (login, save, delete, import, update generation).
Events go to the local structlog stream only. The ledger itself keeps
no history beyond record timestamps.

The audit logger:
- Is async so flows can await it alongside storage calls
- Supports correlation IDs to trace related events (one statement import)
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from family_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """
    Route structlog output through the standard logging root handler.

    Call once at application start. In debug mode DEBUG events are kept.
    """
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Writes each event to the structured local log at a level matching
    its severity.
    """

    def __init__(self):
        self._logger = structlog.get_logger("family_ledger.audit")

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def log_login(self, succeeded: bool) -> None:
        """Log a sign-in attempt."""
        if succeeded:
            await self.log(AuditEventBuilder.login_succeeded())
        else:
            await self.log(AuditEventBuilder.login_failed())

    async def log_logout(self) -> None:
        await self.log(AuditEventBuilder.logged_out())

    # -------------------------------------------------------------------------
    # Contributions
    # -------------------------------------------------------------------------

    async def log_message_parsed(self, complete: bool, has_ref: bool) -> None:
        """Log a pasted payment message being parsed."""
        await self.log(AuditEventBuilder.message_parsed(complete=complete, has_ref=has_ref))

    async def log_contribution_saved(
        self,
        contribution_id: UUID,
        name: str,
        amount: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a saved contribution."""
        event = AuditEventBuilder.contribution_saved(
            contribution_id=contribution_id,
            name=name,
            amount=amount,
            source=source,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_contribution_rejected(
        self,
        reason: str,
        ref: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a contribution that was not saved."""
        event = AuditEventBuilder.contribution_rejected(
            reason=reason,
            ref=ref,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_contribution_deleted(self, contribution_id: UUID) -> None:
        await self.log(AuditEventBuilder.contribution_deleted(contribution_id))

    async def log_default_rows_seeded(self, count: int) -> None:
        await self.log(AuditEventBuilder.default_rows_seeded(count))

    # -------------------------------------------------------------------------
    # Statement import
    # -------------------------------------------------------------------------

    async def log_statement_imported(
        self,
        detected: int,
        imported: int,
        skipped: int,
        correlation_id: UUID,
    ) -> None:
        """Log the summary of a statement import."""
        event = AuditEventBuilder.statement_imported(
            detected=detected,
            imported=imported,
            skipped=skipped,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_nothing_detected(
        self,
        text_length: int,
        near_misses: int,
        correlation_id: UUID,
    ) -> None:
        """Log a statement in which no contributions were found."""
        event = AuditEventBuilder.statement_nothing_detected(
            text_length=text_length,
            near_misses=near_misses,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_unreadable(self, error_message: str, correlation_id: UUID) -> None:
        """Log a statement upload that could not be read."""
        event = AuditEventBuilder.statement_unreadable(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    # -------------------------------------------------------------------------
    # Expenses and updates
    # -------------------------------------------------------------------------

    async def log_expense_saved(self, expense_id: UUID, title: str, amount: int) -> None:
        await self.log(AuditEventBuilder.expense_saved(expense_id, title, amount))

    async def log_expense_deleted(self, expense_id: UUID) -> None:
        await self.log(AuditEventBuilder.expense_deleted(expense_id))

    async def log_update_generated(self, update_id: UUID, new_count: int, new_amount: int) -> None:
        """Log a generated contribution update."""
        event = AuditEventBuilder.update_generated(
            update_id=update_id,
            new_count=new_count,
            new_amount=new_amount,
        )
        await self.log(event)

    async def log_expense_update_generated(self, update_id: UUID, expense_count: int) -> None:
        """Log a generated expense update."""
        event = AuditEventBuilder.expense_update_generated(
            update_id=update_id,
            expense_count=expense_count,
        )
        await self.log(event)

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed storage operation."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step action (e.g., statement import)
    and pass it to every event that action logs.
    """
    return uuid4()
