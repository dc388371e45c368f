"""
Main Orchestrator for Family Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Contributions (pasted message → prefill → validate → save)
2. Statement import (PDF → text → parse → save each candidate)
3. Expenses and transfers out of the pool
4. Update messages (dashboard → message → record cutoff)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Parsers never touch storage; flows decide what gets saved
- Expected failures (bad input, duplicate refs, unreadable statements)
  become outcome messages for the admin
- Every step is audited

Unexpected errors propagate to the UI.
"""

from datetime import datetime
from typing import Any, NamedTuple, Optional, Sequence
from uuid import UUID

import structlog
from pydantic import ValidationError

from family_ledger.audit import AuditLogger, create_correlation_id
from family_ledger.config import Settings, WhatsAppSettings, get_settings
from family_ledger.models.ledger import (
    Contribution,
    ContributionInput,
    ContributionOutcome,
    DashboardMetrics,
    Expense,
    ExpenseOutcome,
    ExpenseUpdate,
    GeneratedUpdate,
    PinnedContribution,
    StatementImportResult,
)
from family_ledger.parsing import (
    ParsedPaymentMessage,
    StatementLayout,
    StatementParser,
    parse_received_payment_message,
)
from family_ledger.reports import (
    build_expense_message,
    build_update_message,
    compute_dashboard_metrics,
    ensure_default_seed_contributions,
    load_pinned_contributions,
    to_transfer_record_title,
)
from family_ledger.services.extraction import ExtractionError, PdfTextExtractor
from family_ledger.services.storage import (
    DuplicateRefError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
)
from family_ledger.validation import LedgerValidator

logger = structlog.get_logger(__name__)

DUPLICATE_REF_MESSAGE = "Reference already exists. This contribution was not saved."
NOTHING_DETECTED_MESSAGE = "No transactions detected in this statement."


class ContributionFlow:
    """
    Orchestrates manual contribution entry.

    Flow:
    1. Paste → Parse the payment confirmation message into a prefill
    2. Review → Admin checks and edits the form
    3. Validate → Two-stage validation against existing contributions
    4. Save → Persist (duplicate references are rejected by storage)
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        pinned: Sequence[PinnedContribution] = (),
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._pinned = list(pinned)
        self._audit_logger = audit_logger

    async def prefill_from_message(self, text: str) -> ParsedPaymentMessage:
        """
        Parse a pasted payment message.

        Missing fields are simply absent; the admin fills them in.
        """
        parsed = parse_received_payment_message(text)

        if self._audit_logger:
            await self._audit_logger.log_message_parsed(
                complete=parsed.is_complete,
                has_ref=parsed.ref is not None,
            )
        return parsed

    async def list_contributions(self) -> list[Contribution]:
        return await self._storage.list_contributions()

    async def add_contribution(
        self,
        form: dict[str, Any],
        source: str = "form",
    ) -> ContributionOutcome:
        """
        Validate and save a contribution.

        Args:
            form: Raw form values (name, amount, ref, contributed_at, note)
            source: Where the values came from, for the audit log

        Returns:
            ContributionOutcome; warnings do not block saving
        """
        existing = await self._storage.list_contributions()
        data, result = self._validator.validate_contribution(form, existing)

        if data is None:
            error = result.first_error or "Invalid contribution data"
            if self._audit_logger:
                await self._audit_logger.log_contribution_rejected(
                    reason=error,
                    ref=form.get("ref") or None,
                )
            return ContributionOutcome(success=False, error=error)

        try:
            contribution = await self._storage.create_contribution(data)
        except DuplicateRefError as e:
            if self._audit_logger:
                await self._audit_logger.log_contribution_rejected(
                    reason="duplicate_ref",
                    ref=e.ref,
                )
            return ContributionOutcome(success=False, error=DUPLICATE_REF_MESSAGE)

        if self._audit_logger:
            await self._audit_logger.log_contribution_saved(
                contribution_id=contribution.id,
                name=contribution.name,
                amount=contribution.amount,
                source=source,
            )

        warnings = result.warnings
        return ContributionOutcome(
            success=True,
            contribution=contribution,
            warning="\n".join(warnings) if warnings else None,
        )

    async def delete_contribution(self, contribution_id: UUID) -> bool:
        deleted = await self._storage.delete_contribution(contribution_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_contribution_deleted(contribution_id)
        return deleted

    async def seed_pinned_contributions(self) -> list[Contribution]:
        """Make sure every pinned row exists in storage."""
        created = await ensure_default_seed_contributions(self._storage, self._pinned)
        if created and self._audit_logger:
            await self._audit_logger.log_default_rows_seeded(len(created))
        return created


class StatementImportFlow:
    """
    Orchestrates statement imports.

    Flow:
    1. Upload → Extract text from the PDF
    2. Parse → Detect received-payment blocks
    3. Save → Each candidate is saved on its own; known refs are skipped
    4. Report → Counts, warnings, a preview and (if nothing was found)
                the raw blocks that almost matched
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        extractor: Optional[PdfTextExtractor] = None,
        layout: Optional[StatementLayout] = None,
        preview_limit: Optional[int] = None,
        near_miss_limit: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = get_settings()
        self._storage = storage
        self._extractor = extractor or PdfTextExtractor()
        self._parser = StatementParser(layout or StatementLayout.from_settings(settings.statement))
        self._preview_limit = preview_limit if preview_limit is not None else settings.app.import_preview_limit
        self._near_miss_limit = (
            near_miss_limit if near_miss_limit is not None else settings.app.near_miss_snippet_limit
        )
        self._audit_logger = audit_logger

    async def import_pdf(
        self,
        data: bytes,
        correlation_id: Optional[UUID] = None,
    ) -> StatementImportResult:
        """Import contributions from an uploaded statement PDF."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            text = self._extractor.extract_text(data)
        except ExtractionError as e:
            if self._audit_logger:
                await self._audit_logger.log_statement_unreadable(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return StatementImportResult(success=False, error=str(e))

        return await self.import_text(text, correlation_id=correlation_id)

    async def import_text(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> StatementImportResult:
        """
        Import contributions from statement text.

        Returns:
            StatementImportResult. success is False only when nothing
            was detected; skipped rows are reported as warnings.
        """
        correlation_id = correlation_id or create_correlation_id()
        candidates = self._parser.parse(text)

        if not candidates:
            near_misses = self._parser.near_misses(text, limit=self._near_miss_limit)
            if self._audit_logger:
                await self._audit_logger.log_statement_nothing_detected(
                    text_length=len(text or ""),
                    near_misses=len(near_misses),
                    correlation_id=correlation_id,
                )
            return StatementImportResult(
                success=False,
                error=NOTHING_DETECTED_MESSAGE,
                near_misses=near_misses,
            )

        imported = []
        warnings = []
        for candidate in candidates:
            try:
                data = ContributionInput.from_candidate(candidate)
            except ValidationError as e:
                first = e.errors()[0]["msg"] if e.errors() else "invalid row"
                warnings.append(f"Skipped {candidate.name}: {first}.")
                continue

            try:
                contribution = await self._storage.create_contribution(data)
            except DuplicateRefError as e:
                warnings.append(f"Skipped {candidate.name} ({e.ref}): reference already exists.")
                continue

            imported.append(candidate)
            if self._audit_logger:
                await self._audit_logger.log_contribution_saved(
                    contribution_id=contribution.id,
                    name=contribution.name,
                    amount=contribution.amount,
                    source="statement",
                    correlation_id=correlation_id,
                )

        skipped = len(candidates) - len(imported)
        if self._audit_logger:
            await self._audit_logger.log_statement_imported(
                detected=len(candidates),
                imported=len(imported),
                skipped=skipped,
                correlation_id=correlation_id,
            )

        return StatementImportResult(
            success=True,
            detected_count=len(candidates),
            imported_count=len(imported),
            skipped_count=skipped,
            warnings=warnings,
            preview=imported[:self._preview_limit],
        )


class ExpenseFlow:
    """Orchestrates expenses and transfers out of the pool."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger

    async def list_expenses(self) -> list[Expense]:
        return await self._storage.list_expenses()

    async def add_expense(self, form: dict[str, Any]) -> ExpenseOutcome:
        """
        Validate and save an expense.

        Args:
            form: Raw form values (title, amount, spent_at, note)
        """
        data, result = self._validator.validate_expense(form)
        if data is None:
            return ExpenseOutcome(
                success=False,
                error=result.first_error or "Invalid expense data",
            )

        expense = await self._storage.create_expense(data)

        if self._audit_logger:
            await self._audit_logger.log_expense_saved(
                expense_id=expense.id,
                title=expense.title,
                amount=expense.amount,
            )
        return ExpenseOutcome(success=True, expense=expense)

    async def record_transfer(
        self,
        recipient: str,
        amount: Any,
        spent_at: Any = None,
        note: Optional[str] = None,
    ) -> ExpenseOutcome:
        """
        Record money handed over from the pool.

        Stored as an expense titled "Transfer to: <recipient>", which the
        shared expense list leaves out.
        """
        if not (recipient or "").strip():
            return ExpenseOutcome(success=False, error="Recipient is required")

        return await self.add_expense({
            "title": to_transfer_record_title(recipient),
            "amount": amount,
            "spent_at": spent_at,
            "note": note,
        })

    async def delete_expense(self, expense_id: UUID) -> bool:
        deleted = await self._storage.delete_expense(expense_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(expense_id)
        return deleted


class UpdateFlow:
    """
    Orchestrates the dashboard and the shareable update messages.

    Generating a contribution update records its time as the new cutoff:
    contributions after it count as "new" on the dashboard.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        whatsapp_settings: Optional[WhatsAppSettings] = None,
        pinned: Sequence[PinnedContribution] = (),
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._whatsapp = whatsapp_settings or get_settings().whatsapp
        self._pinned = list(pinned)
        self._audit_logger = audit_logger

    async def dashboard(self) -> DashboardMetrics:
        contributions = await self._storage.list_contributions()
        latest = await self._storage.get_latest_update()
        return compute_dashboard_metrics(
            contributions,
            latest.cutoff_at if latest else None,
        )

    async def generate_update(self) -> GeneratedUpdate:
        """
        Build the contribution list message and record the new cutoff.

        The returned numbers describe contributions since the previous
        update.
        """
        contributions = await self._storage.list_contributions()
        latest = await self._storage.get_latest_update()
        metrics = compute_dashboard_metrics(
            contributions,
            latest.cutoff_at if latest else None,
        )

        generated_at = datetime.now()
        message = build_update_message(contributions, self._whatsapp, self._pinned)
        update = await self._storage.create_update(cutoff_at=generated_at, generated_message=message)

        if self._audit_logger:
            await self._audit_logger.log_update_generated(
                update_id=update.id,
                new_count=metrics.new_since_last_update_count,
                new_amount=metrics.new_since_last_update_amount,
            )

        return GeneratedUpdate(
            message=message,
            generated_at=generated_at,
            total_collected=metrics.total_collected,
            new_amount=metrics.new_since_last_update_amount,
            new_count=metrics.new_since_last_update_count,
        )

    async def generate_expense_update(self) -> ExpenseUpdate:
        """Build and record the expense list message."""
        contributions = await self._storage.list_contributions()
        expenses = await self._storage.list_expenses()
        total_collected = sum(item.amount for item in contributions)

        message = build_expense_message(expenses, total_collected)
        update = await self._storage.create_expense_update(message)

        if self._audit_logger:
            await self._audit_logger.log_expense_update_generated(
                update_id=update.id,
                expense_count=len(expenses),
            )
        return update


class AppComponents(NamedTuple):
    """Everything the UI needs, wired to one storage backend."""

    contributions: ContributionFlow
    statements: StatementImportFlow
    expenses: ExpenseFlow
    updates: UpdateFlow
    storage: LedgerStorageInterface
    audit_logger: AuditLogger


def create_storage(settings: Settings) -> LedgerStorageInterface:
    """
    Build the storage backend selected by STORAGE_BACKEND.

    If Google Sheets is selected but not configured, development falls
    back to the in-memory store; production raises.
    """
    app = settings.app
    if app.storage_backend == "google_sheets":
        try:
            return GoogleSheetsLedgerStorage(GoogleSheetsClient(settings.google_sheets))
        except ValidationError as e:
            if app.is_production:
                raise
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))

    return InMemoryLedgerStorage(app.dev_file_path)


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[LedgerStorageInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to the cached settings)
        storage: Storage to use instead of the configured backend

    Returns:
        AppComponents
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings)
    audit_logger = AuditLogger()
    validator = LedgerValidator()
    pinned = load_pinned_contributions(settings.app)

    return AppComponents(
        contributions=ContributionFlow(
            storage,
            validator=validator,
            pinned=pinned,
            audit_logger=audit_logger,
        ),
        statements=StatementImportFlow(
            storage,
            extractor=PdfTextExtractor(settings.app.max_upload_size_bytes),
            layout=StatementLayout.from_settings(settings.statement),
            preview_limit=settings.app.import_preview_limit,
            near_miss_limit=settings.app.near_miss_snippet_limit,
            audit_logger=audit_logger,
        ),
        expenses=ExpenseFlow(storage, validator=validator, audit_logger=audit_logger),
        updates=UpdateFlow(
            storage,
            whatsapp_settings=settings.whatsapp,
            pinned=pinned,
            audit_logger=audit_logger,
        ),
        storage=storage,
        audit_logger=audit_logger,
    )
