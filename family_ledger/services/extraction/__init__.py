"""Text extraction services package."""

from family_ledger.services.extraction.pdf_text import (
    DocumentTooLargeError,
    ExtractionError,
    ExtractionFailedError,
    PdfTextExtractor,
)

__all__ = [
    "DocumentTooLargeError",
    "ExtractionError",
    "ExtractionFailedError",
    "PdfTextExtractor",
]
