"""Services package."""

from family_ledger.services.extraction import (
    DocumentTooLargeError,
    ExtractionError,
    ExtractionFailedError,
    PdfTextExtractor,
)
from family_ledger.services.storage import (
    ConnectionError,
    DuplicateError,
    DuplicateRefError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Extraction services
    "DocumentTooLargeError",
    "ExtractionError",
    "ExtractionFailedError",
    "PdfTextExtractor",
    # Storage services
    "ConnectionError",
    "DuplicateError",
    "DuplicateRefError",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
]
