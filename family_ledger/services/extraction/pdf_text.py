"""
Statement Text Extraction

Turns an uploaded statement PDF into plain text for the statement parser.
Text-based PDFs only: scanned statements yield little or no text and
end up as "nothing detected" at the parser stage.
"""

import io
from typing import Optional

import pdfplumber
import structlog

from family_ledger.config import get_settings

logger = structlog.get_logger(__name__)


class ExtractionError(Exception):
    """Base exception for text extraction errors."""
    pass


class DocumentTooLargeError(ExtractionError):
    """Upload exceeds the configured size limit."""

    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Statement is too large ({size_bytes / (1024 * 1024):.1f} MB). "
            f"The limit is {limit_bytes // (1024 * 1024)} MB."
        )


class ExtractionFailedError(ExtractionError):
    """The document could not be read as a PDF."""
    pass


class PdfTextExtractor:
    """Extracts the text of every page of a PDF."""

    def __init__(self, max_size_bytes: Optional[int] = None):
        self._max_size_bytes = max_size_bytes or get_settings().app.max_upload_size_bytes

    def check_size(self, data: bytes) -> None:
        """
        Raises:
            ExtractionFailedError: If the upload is empty
            DocumentTooLargeError: If the upload is over the limit
        """
        if not data:
            raise ExtractionFailedError("The uploaded statement is empty.")
        if len(data) > self._max_size_bytes:
            raise DocumentTooLargeError(len(data), self._max_size_bytes)

    def extract_text(self, data: bytes) -> str:
        """
        Extract plain text from PDF bytes.

        Pages are joined with newlines; pages without a text layer
        contribute nothing.

        Raises:
            ExtractionError: If the upload is empty, too large or unreadable
        """
        self.check_size(data)

        pages = []
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        pages.append(page_text)
        except Exception as e:
            logger.warning("pdf_extraction_failed", error=str(e), size=len(data))
            raise ExtractionFailedError(
                "Could not read the statement. Please upload the PDF exported from the app."
            ) from e

        logger.debug("pdf_extracted", pages=len(pages), size=len(data))
        return "\n".join(pages)
