"""
Storage Services Package

Provides the abstract ledger storage interface and two implementations:
an in-memory store (with optional JSON snapshot) and Google Sheets.
"""

from family_ledger.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    DuplicateRefError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from family_ledger.services.storage.memory import InMemoryLedgerStorage
from family_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "DuplicateRefError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
]
