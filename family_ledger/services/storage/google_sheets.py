"""
Google Sheets Storage Implementation

Optional backend (STORAGE_BACKEND=google_sheets). Each record type lives
in its own worksheet, one record per row, with a header row.

TRADEOFFS:
- Not suitable for high-volume data (a family ledger is small)
- No transactions; the duplicate-ref check and the append are two calls
- Limited query capabilities (we filter and sort in Python)
"""

from datetime import datetime
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from family_ledger.config import get_settings
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
    ConnectionError,
    DuplicateRefError,
    LedgerStorageInterface,
    StorageError,
    sort_contributions,
    sort_expenses,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CONTRIBUTION_COLUMNS = [
    "id",
    "name",
    "amount",
    "ref",
    "contributed_at",
    "note",
    "created_at",
    "updated_at",
]

EXPENSE_COLUMNS = [
    "id",
    "title",
    "amount",
    "spent_at",
    "note",
    "created_at",
    "updated_at",
]

UPDATE_COLUMNS = ["id", "cutoff_at", "generated_message", "created_at"]

EXPENSE_UPDATE_COLUMNS = ["id", "generated_message", "created_at"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings=None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def contributions_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.contributions_sheet_name, CONTRIBUTION_COLUMNS)

    def expenses_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def updates_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.updates_sheet_name, UPDATE_COLUMNS)

    def expense_updates_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.expense_updates_sheet_name, EXPENSE_UPDATE_COLUMNS)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def contribution_to_row(item: Contribution) -> list:
    return [
        str(item.id),
        item.name,
        str(item.amount),
        item.ref or "",
        item.contributed_at.isoformat(),
        item.note or "",
        item.created_at.isoformat(),
        item.updated_at.isoformat(),
    ]


def row_to_contribution(row: list) -> Contribution:
    return Contribution(
        id=UUID(_cell(row, 0)),
        name=_cell(row, 1),
        amount=int(_cell(row, 2)),
        ref=_cell(row, 3) or None,
        contributed_at=datetime.fromisoformat(_cell(row, 4)),
        note=_cell(row, 5) or None,
        created_at=datetime.fromisoformat(_cell(row, 6)),
        updated_at=datetime.fromisoformat(_cell(row, 7)),
    )


def expense_to_row(item: Expense) -> list:
    return [
        str(item.id),
        item.title,
        str(item.amount),
        item.spent_at.isoformat(),
        item.note or "",
        item.created_at.isoformat(),
        item.updated_at.isoformat(),
    ]


def row_to_expense(row: list) -> Expense:
    return Expense(
        id=UUID(_cell(row, 0)),
        title=_cell(row, 1),
        amount=int(_cell(row, 2)),
        spent_at=datetime.fromisoformat(_cell(row, 3)),
        note=_cell(row, 4) or None,
        created_at=datetime.fromisoformat(_cell(row, 5)),
        updated_at=datetime.fromisoformat(_cell(row, 6)),
    )


def update_to_row(item: LedgerUpdate) -> list:
    return [
        str(item.id),
        item.cutoff_at.isoformat(),
        item.generated_message,
        item.created_at.isoformat(),
    ]


def row_to_update(row: list) -> LedgerUpdate:
    return LedgerUpdate(
        id=UUID(_cell(row, 0)),
        cutoff_at=datetime.fromisoformat(_cell(row, 1)),
        generated_message=_cell(row, 2),
        created_at=datetime.fromisoformat(_cell(row, 3)),
    )


def expense_update_to_row(item: ExpenseUpdate) -> list:
    return [str(item.id), item.generated_message, item.created_at.isoformat()]


def row_to_expense_update(row: list) -> ExpenseUpdate:
    return ExpenseUpdate(
        id=UUID(_cell(row, 0)),
        generated_message=_cell(row, 1),
        created_at=datetime.fromisoformat(_cell(row, 2)),
    )


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """Google Sheets implementation of ledger storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_rows(
        self,
        sheet: gspread.Worksheet,
        convert: Callable[[list], T],
    ) -> list[T]:
        """All data rows of a sheet; malformed rows are skipped and logged."""
        records = []
        for index, row in enumerate(sheet.get_all_values()[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                records.append(convert(row))
            except (ValueError, TypeError) as e:
                logger.warning(
                    "sheet_row_skipped",
                    sheet=sheet.title,
                    row=index,
                    error=str(e),
                )
        return records

    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append(self, sheet: gspread.Worksheet, row: list) -> None:
        """Append one row, retrying transient API failures."""
        sheet.append_row(row, value_input_option="RAW")

    def _delete_by_id(self, sheet: gspread.Worksheet, record_id: UUID) -> bool:
        for index, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == str(record_id):
                sheet.delete_rows(index)
                return True
        return False

    # -------------------------------------------------------------------------
    # Contributions
    # -------------------------------------------------------------------------

    async def list_contributions(self) -> list[Contribution]:
        try:
            sheet = self._client.contributions_sheet()
            return sort_contributions(self._read_rows(sheet, row_to_contribution))
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to list contributions: {e}")

    async def create_contribution(self, data: ContributionInput) -> Contribution:
        ref = normalize_ref(data.ref)
        try:
            sheet = self._client.contributions_sheet()
            if ref:
                wanted = ref.lower()
                for existing in self._read_rows(sheet, row_to_contribution):
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
            self._append(sheet, contribution_to_row(contribution))
            return contribution
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to save contribution: {e}")

    async def delete_contribution(self, contribution_id: UUID) -> bool:
        try:
            return self._delete_by_id(self._client.contributions_sheet(), contribution_id)
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to delete contribution: {e}")

    # -------------------------------------------------------------------------
    # Contribution updates
    # -------------------------------------------------------------------------

    async def get_latest_update(self) -> Optional[LedgerUpdate]:
        try:
            updates = self._read_rows(self._client.updates_sheet(), row_to_update)
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to read updates: {e}")
        if not updates:
            return None
        return max(updates, key=lambda item: item.cutoff_at)

    async def create_update(self, cutoff_at: datetime, generated_message: str) -> LedgerUpdate:
        update = LedgerUpdate(cutoff_at=cutoff_at, generated_message=generated_message)
        try:
            self._append(self._client.updates_sheet(), update_to_row(update))
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to save update: {e}")
        return update

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def list_expenses(self) -> list[Expense]:
        try:
            sheet = self._client.expenses_sheet()
            return sort_expenses(self._read_rows(sheet, row_to_expense))
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to list expenses: {e}")

    async def create_expense(self, data: ExpenseInput) -> Expense:
        now = datetime.now()
        expense = Expense(
            title=normalize_name(data.title),
            amount=data.amount,
            spent_at=data.spent_at or now,
            note=(data.note or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        try:
            self._append(self._client.expenses_sheet(), expense_to_row(expense))
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to save expense: {e}")
        return expense

    async def delete_expense(self, expense_id: UUID) -> bool:
        try:
            return self._delete_by_id(self._client.expenses_sheet(), expense_id)
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to delete expense: {e}")

    async def get_latest_expense_update(self) -> Optional[ExpenseUpdate]:
        try:
            updates = self._read_rows(self._client.expense_updates_sheet(), row_to_expense_update)
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to read expense updates: {e}")
        if not updates:
            return None
        return max(updates, key=lambda item: item.created_at)

    async def create_expense_update(self, generated_message: str) -> ExpenseUpdate:
        update = ExpenseUpdate(generated_message=generated_message)
        try:
            self._append(self._client.expense_updates_sheet(), expense_update_to_row(update))
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to save expense update: {e}")
        return update
