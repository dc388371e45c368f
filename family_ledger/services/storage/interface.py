"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the in-memory store for Google Sheets (or a real database)
2. Use in-memory storage for testing
3. Keep the parsers and flows free of any storage dependency

The interface is intentionally simple - just the operations the ledger
needs. Implementations own normalization of names, refs and notes and
enforce reference uniqueness.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from family_ledger.models.ledger import (
    Contribution,
    ContributionInput,
    Expense,
    ExpenseInput,
    ExpenseUpdate,
    LedgerUpdate,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (in-memory, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_contributions(self) -> list[Contribution]:
        """
        List all contributions.

        Returns:
            Contributions newest first (by contributed_at, then created_at)
        """

    @abstractmethod
    async def create_contribution(self, data: ContributionInput) -> Contribution:
        """
        Save a new contribution.

        Args:
            data: Validated contribution input. contributed_at defaults
                  to now when absent.

        Returns:
            The stored contribution

        Raises:
            DuplicateRefError: If another contribution has the same ref
                               (compared case-insensitively)
            StorageError: If save fails
        """

    @abstractmethod
    async def delete_contribution(self, contribution_id: UUID) -> bool:
        """
        Delete a contribution by ID.

        Returns:
            True if something was deleted
        """

    @abstractmethod
    async def get_latest_update(self) -> Optional[LedgerUpdate]:
        """The update with the latest cutoff, if any."""

    @abstractmethod
    async def create_update(self, cutoff_at: datetime, generated_message: str) -> LedgerUpdate:
        """Record a generated contribution update."""

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """
        List all expenses.

        Returns:
            Expenses newest first (by spent_at, then created_at)
        """

    @abstractmethod
    async def create_expense(self, data: ExpenseInput) -> Expense:
        """Save a new expense. spent_at defaults to now when absent."""

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> bool:
        """Delete an expense by ID."""

    @abstractmethod
    async def get_latest_expense_update(self) -> Optional[ExpenseUpdate]:
        """The most recently created expense update, if any."""

    @abstractmethod
    async def create_expense_update(self, generated_message: str) -> ExpenseUpdate:
        """Record a generated expense update."""


def sort_contributions(contributions: list[Contribution]) -> list[Contribution]:
    """Newest first by contributed_at, ties broken by created_at."""
    return sorted(
        contributions,
        key=lambda item: (item.contributed_at, item.created_at),
        reverse=True,
    )


def sort_expenses(expenses: list[Expense]) -> list[Expense]:
    """Newest first by spent_at, ties broken by created_at."""
    return sorted(
        expenses,
        key=lambda item: (item.spent_at, item.created_at),
        reverse=True,
    )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class DuplicateRefError(DuplicateError):
    """A contribution with this reference already exists."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"Contribution with ref '{ref}' already exists")


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
