"""
Tests for the Google Sheets backend.

Worksheets are replaced by in-process fakes; no Google API is called.
"""

from datetime import datetime

import pytest

from family_ledger.models.ledger import ContributionInput, ExpenseInput
from family_ledger.services.storage import DuplicateRefError, GoogleSheetsLedgerStorage
from family_ledger.services.storage.google_sheets import (
    CONTRIBUTION_COLUMNS,
    EXPENSE_COLUMNS,
    EXPENSE_UPDATE_COLUMNS,
    UPDATE_COLUMNS,
)

BASE = datetime(2026, 2, 11, 9, 0)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage backend."""

    def __init__(self, title, columns):
        self.title = title
        self.rows = [list(columns)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient."""

    def __init__(self):
        self.contributions = FakeWorksheet("Contributions", CONTRIBUTION_COLUMNS)
        self.expenses = FakeWorksheet("Expenses", EXPENSE_COLUMNS)
        self.updates = FakeWorksheet("Updates", UPDATE_COLUMNS)
        self.expense_updates = FakeWorksheet("ExpenseUpdates", EXPENSE_UPDATE_COLUMNS)

    def contributions_sheet(self):
        return self.contributions

    def expenses_sheet(self):
        return self.expenses

    def updates_sheet(self):
        return self.updates

    def expense_updates_sheet(self):
        return self.expense_updates


@pytest.fixture
def client():
    return FakeSheetsClient()


@pytest.fixture
def sheets(client):
    return GoogleSheetsLedgerStorage(client)


class TestGoogleSheetsStorage:

    def test_contribution_round_trip_through_rows(self, run, sheets, client):
        saved = run(sheets.create_contribution(ContributionInput(
            name="Mary  Achieng",
            amount=5000,
            ref="RCK1ABC2DE",
            contributed_at=BASE,
        )))

        assert client.contributions.rows[1][:4] == [str(saved.id), "Mary Achieng", "5000", "RCK1ABC2DE"]

        [loaded] = run(sheets.list_contributions())
        assert loaded.id == saved.id
        assert loaded.contributed_at == BASE
        assert loaded.note is None

    def test_duplicate_ref_rejected(self, run, sheets):
        run(sheets.create_contribution(ContributionInput(name="Mary", amount=100, ref="RCK1ABC2DE")))
        with pytest.raises(DuplicateRefError):
            run(sheets.create_contribution(ContributionInput(name="John", amount=200, ref="rck1abc2de")))

    def test_malformed_rows_are_skipped(self, run, sheets, client):
        client.contributions.rows.append(["not-a-uuid", "Broken", "x"])
        client.contributions.rows.append([])
        run(sheets.create_contribution(ContributionInput(name="Mary", amount=100)))

        assert [item.name for item in run(sheets.list_contributions())] == ["Mary"]

    def test_delete_contribution(self, run, sheets, client):
        saved = run(sheets.create_contribution(ContributionInput(name="Mary", amount=100)))
        assert run(sheets.delete_contribution(saved.id)) is True
        assert len(client.contributions.rows) == 1
        assert run(sheets.delete_contribution(saved.id)) is False

    def test_latest_update_by_cutoff(self, run, sheets):
        run(sheets.create_update(BASE.replace(day=12), "later"))
        run(sheets.create_update(BASE, "earlier"))
        assert run(sheets.get_latest_update()).generated_message == "later"

    def test_expenses(self, run, sheets):
        saved = run(sheets.create_expense(ExpenseInput(title="Tent deposit", amount=15000, spent_at=BASE)))
        [loaded] = run(sheets.list_expenses())
        assert loaded.title == "Tent deposit"
        assert loaded.spent_at == BASE

        assert run(sheets.delete_expense(saved.id)) is True
        assert run(sheets.list_expenses()) == []

    def test_expense_updates(self, run, sheets):
        assert run(sheets.get_latest_expense_update()) is None
        saved = run(sheets.create_expense_update("*EXPENSES LIST*"))
        assert run(sheets.get_latest_expense_update()).id == saved.id
