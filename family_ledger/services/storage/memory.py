"""
In-Memory Storage Implementation

The default backend. Records live in process memory; in development an
optional JSON snapshot file is read on first access and rewritten after
every change, so a restart of the app does not lose data.

A missing or unreadable snapshot starts an empty ledger.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field, ValidationError

from family_ledger.models.ledger import (
    Contribution,
    ContributionInput,
    Expense,
    ExpenseInput,
    ExpenseUpdate,
    LedgerUpdate,
)
from family_ledger.parsing.text import normalize_name, normalize_ref
from family_ledger.services.storage.interface import (
    DuplicateRefError,
    LedgerStorageInterface,
    StorageError,
    sort_contributions,
    sort_expenses,
)

logger = structlog.get_logger(__name__)


class LedgerSnapshot(BaseModel):
    """Shape of the JSON snapshot file."""

    contributions: list[Contribution] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    updates: list[LedgerUpdate] = Field(default_factory=list)
    expense_updates: list[ExpenseUpdate] = Field(default_factory=list)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage held in memory.

    Args:
        snapshot_path: JSON file to load from and persist to.
                       If None, nothing touches the filesystem.
    """

    def __init__(self, snapshot_path: Optional[Path] = None):
        self._snapshot_path = snapshot_path
        self._state = LedgerSnapshot()
        self._loaded = False

    def _load_if_needed(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if self._snapshot_path is None or not self._snapshot_path.exists():
            return
        try:
            raw = self._snapshot_path.read_text(encoding="utf-8")
            self._state = LedgerSnapshot.model_validate_json(raw)
        except (OSError, ValidationError) as e:
            logger.warning(
                "ledger_snapshot_unreadable",
                path=str(self._snapshot_path),
                error=str(e),
            )

    def _persist(self, state: LedgerSnapshot) -> None:
        if self._snapshot_path is None:
            return
        try:
            self._snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            self._snapshot_path.write_text(
                state.model_dump_json(indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise StorageError(f"Failed to write ledger snapshot: {e}") from e

    def _commit(self, **changes) -> None:
        """
        Apply changes to the ledger state.

        The new state is written to the snapshot first and only replaces
        the in-memory state once the write succeeds.

        Raises:
            StorageError: If the snapshot cannot be written
        """
        state = self._state.model_copy(update=changes)
        self._persist(state)
        self._state = state

    # -------------------------------------------------------------------------
    # Contributions
    # -------------------------------------------------------------------------

    async def list_contributions(self) -> list[Contribution]:
        self._load_if_needed()
        return sort_contributions(self._state.contributions)

    async def create_contribution(self, data: ContributionInput) -> Contribution:
        self._load_if_needed()

        ref = normalize_ref(data.ref)
        if ref:
            wanted = ref.lower()
            for existing in self._state.contributions:
                existing_ref = normalize_ref(existing.ref)
                if existing_ref and existing_ref.lower() == wanted:
                    raise DuplicateRefError(ref)

        now = datetime.now()
        contribution = Contribution(
            name=normalize_name(data.name),
            amount=data.amount,
            ref=ref,
            contributed_at=data.contributed_at or now,
            note=(data.note or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        self._commit(contributions=[*self._state.contributions, contribution])
        return contribution

    async def delete_contribution(self, contribution_id: UUID) -> bool:
        self._load_if_needed()
        remaining = [item for item in self._state.contributions if item.id != contribution_id]
        if len(remaining) == len(self._state.contributions):
            return False
        self._commit(contributions=remaining)
        return True

    # -------------------------------------------------------------------------
    # Contribution updates
    # -------------------------------------------------------------------------

    async def get_latest_update(self) -> Optional[LedgerUpdate]:
        self._load_if_needed()
        if not self._state.updates:
            return None
        return max(self._state.updates, key=lambda item: item.cutoff_at)

    async def create_update(self, cutoff_at: datetime, generated_message: str) -> LedgerUpdate:
        self._load_if_needed()
        update = LedgerUpdate(cutoff_at=cutoff_at, generated_message=generated_message)
        self._commit(updates=[*self._state.updates, update])
        return update

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def list_expenses(self) -> list[Expense]:
        self._load_if_needed()
        return sort_expenses(self._state.expenses)

    async def create_expense(self, data: ExpenseInput) -> Expense:
        self._load_if_needed()
        now = datetime.now()
        expense = Expense(
            title=normalize_name(data.title),
            amount=data.amount,
            spent_at=data.spent_at or now,
            note=(data.note or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        self._commit(expenses=[*self._state.expenses, expense])
        return expense

    async def delete_expense(self, expense_id: UUID) -> bool:
        self._load_if_needed()
        remaining = [item for item in self._state.expenses if item.id != expense_id]
        if len(remaining) == len(self._state.expenses):
            return False
        self._commit(expenses=remaining)
        return True

    async def get_latest_expense_update(self) -> Optional[ExpenseUpdate]:
        self._load_if_needed()
        if not self._state.expense_updates:
            return None
        return max(self._state.expense_updates, key=lambda item: item.created_at)

    async def create_expense_update(self, generated_message: str) -> ExpenseUpdate:
        self._load_if_needed()
        update = ExpenseUpdate(generated_message=generated_message)
        self._commit(expense_updates=[*self._state.expense_updates, update])
        return update
