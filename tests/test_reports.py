"""
Tests for dashboard aggregates, update messages and pinned rows.
"""

from datetime import datetime, timedelta

from family_ledger.config import WhatsAppSettings
from family_ledger.models.ledger import PinnedContribution
from family_ledger.reports import (
    SEED_NOTE,
    build_expense_message,
    build_update_message,
    compute_dashboard_metrics,
    compute_running_totals,
    ensure_default_seed_contributions,
    find_near_duplicate_warning,
    get_transfer_label_from_title,
    is_transfer_record_title,
    to_transfer_record_title,
)
from tests.factories import make_contribution, make_expense

BASE = datetime(2026, 2, 11, 9, 0)


def whatsapp(**overrides) -> WhatsAppSettings:
    values = {
        "budget_line": None,
        "official_recipient_name": "Treasurer",
        "official_recipient_phone": "0700000000",
    }
    values.update(overrides)
    return WhatsAppSettings(**values)


class TestRunningTotals:
    """Tests for per-person totals."""

    def test_names_merge_case_insensitively(self):
        rows = compute_running_totals([
            make_contribution("Jane Doe", 1000, BASE),
            make_contribution("JANE  doe", 500, BASE + timedelta(hours=1)),
        ])
        assert len(rows) == 1
        assert rows[0].name == "Jane Doe"
        assert rows[0].total == 1500
        assert rows[0].last_contributed_at == BASE + timedelta(hours=1)

    def test_sorted_by_latest_then_name(self):
        rows = compute_running_totals([
            make_contribution("Zed", 100, BASE),
            make_contribution("Amy", 100, BASE),
            make_contribution("Bob", 100, BASE + timedelta(days=1)),
        ])
        assert [row.name for row in rows] == ["Bob", "Amy", "Zed"]


class TestDashboardMetrics:
    """Tests for cutoff handling."""

    def test_without_cutoff_everything_is_new(self):
        metrics = compute_dashboard_metrics(
            [make_contribution(amount=100), make_contribution(name="Bob", amount=200)],
            None,
        )
        assert metrics.total_collected == 300
        assert metrics.new_since_last_update_count == 2
        assert metrics.new_since_last_update_amount == 300

    def test_cutoff_is_exclusive(self):
        contributions = [
            make_contribution("A", 100, BASE + timedelta(minutes=5)),
            make_contribution("B", 200, BASE),
            make_contribution("C", 300, BASE - timedelta(minutes=5)),
        ]
        metrics = compute_dashboard_metrics(contributions, BASE)

        assert metrics.total_collected == 600
        assert metrics.new_since_last_update_count == 1
        assert metrics.new_since_last_update_amount == 100
        assert metrics.last_update_at == BASE

    def test_new_contributions_ascending(self):
        contributions = [
            make_contribution("Late", 100, BASE + timedelta(hours=2)),
            make_contribution("Early", 100, BASE + timedelta(hours=1)),
        ]
        metrics = compute_dashboard_metrics(contributions, BASE)
        assert [item.name for item in metrics.new_contributions] == ["Early", "Late"]


class TestNearDuplicateWarning:
    """Tests for double-entry detection."""

    def test_same_name_and_amount_within_window(self):
        existing = [make_contribution("Jane Doe", 1000, BASE)]
        warning = find_near_duplicate_warning(existing, "jane doe", 1000, BASE + timedelta(minutes=9))
        assert warning is not None
        assert "2026-02-11 09:00" in warning

    def test_outside_window(self):
        existing = [make_contribution("Jane Doe", 1000, BASE)]
        assert find_near_duplicate_warning(existing, "Jane Doe", 1000, BASE + timedelta(minutes=11)) is None

    def test_different_amount(self):
        existing = [make_contribution("Jane Doe", 1000, BASE)]
        assert find_near_duplicate_warning(existing, "Jane Doe", 1500, BASE) is None

    def test_referenced_contributions_are_ignored(self):
        existing = [make_contribution("Jane Doe", 1000, BASE, ref="QWE12345XY")]
        assert find_near_duplicate_warning(existing, "Jane Doe", 1000, BASE) is None


class TestUpdateMessage:
    """Tests for the contribution list message."""

    def test_empty_ledger(self):
        message = build_update_message([], whatsapp())
        assert message.startswith("*CONTRIBUTION LIST*")
        assert "No contributions recorded yet." in message
        assert "*Treasurer* - *0700000000*" in message

    def test_rows_numbered_in_time_order(self):
        message = build_update_message(
            [
                make_contribution("Second", 2500, BASE + timedelta(hours=1)),
                make_contribution("First", 1000000, BASE),
            ],
            whatsapp(),
        )
        assert "1. First - 1,000,000 ✅" in message
        assert "2. Second - 2,500 ✅" in message

    def test_pinned_rows_first_and_not_repeated(self):
        pinned = [PinnedContribution(name="Family Pledge", amount=300000)]
        contributions = [
            make_contribution("Early Bird", 500, BASE - timedelta(days=2)),
            make_contribution("family  pledge", 300000, BASE - timedelta(days=1)),
        ]
        lines = build_update_message(contributions, whatsapp(), pinned).splitlines()

        assert "1. Family Pledge - 300,000 ✅" in lines
        assert "2. Early Bird - 500 ✅" in lines
        assert not any(line.startswith("3.") for line in lines)

    def test_max_items_keeps_latest_dynamic_rows(self):
        pinned = [PinnedContribution(name="Family Pledge", amount=300000)]
        contributions = [
            make_contribution(f"Person {i}", 100 + i, BASE + timedelta(minutes=i))
            for i in range(5)
        ]
        message = build_update_message(contributions, whatsapp(export_max_items=3), pinned)

        assert "1. Family Pledge - 300,000 ✅" in message
        assert "2. Person 3 - 103 ✅" in message
        assert "3. Person 4 - 104 ✅" in message
        assert "Person 2" not in message

    def test_budget_line_from_target(self):
        message = build_update_message([], whatsapp(target_budget_kes=1700000))
        assert "Our total budget *ksh.1,700,000*" in message

    def test_configured_budget_line_wins(self):
        message = build_update_message(
            [],
            whatsapp(budget_line="Budget: hospital and burial", target_budget_kes=5),
        )
        assert "Budget: hospital and burial" in message
        assert "ksh.5" not in message


class TestExpenseMessage:
    """Tests for the expense list message."""

    def test_lists_expenses_and_balance(self):
        expenses = [
            make_expense("Catering", 20000, BASE + timedelta(hours=1)),
            make_expense("Tent deposit", 15000, BASE),
        ]
        lines = build_expense_message(expenses, total_collected=100000).splitlines()

        assert lines[0] == "*EXPENSES LIST*"
        assert "1. Tent deposit - 15,000 ✅" in lines
        assert "2. Catering - 20,000 ✅" in lines
        assert "Total expenses: KES 35,000" in lines
        assert "Remaining balance: KES 65,000" in lines

    def test_transfers_are_excluded(self):
        expenses = [
            make_expense(to_transfer_record_title("Hospital"), 50000),
            make_expense("Tent deposit", 15000),
        ]
        message = build_expense_message(expenses, total_collected=100000)

        assert "Hospital" not in message
        assert "Total expenses: KES 15,000" in message
        assert "Remaining balance: KES 85,000" in message

    def test_empty(self):
        message = build_expense_message([], total_collected=0)
        assert "No expenses recorded yet." in message
        assert "Remaining balance: KES 0" in message


class TestTransferTitles:
    """Tests for transfer record helpers."""

    def test_round_trip(self):
        title = to_transfer_record_title("  Hospital  ")
        assert title == "Transfer to: Hospital"
        assert is_transfer_record_title(title)
        assert get_transfer_label_from_title(title) == "Hospital"

    def test_prefix_is_case_insensitive(self):
        assert is_transfer_record_title("transfer TO: someone")

    def test_plain_title_unchanged(self):
        assert not is_transfer_record_title("Catering")
        assert get_transfer_label_from_title("Catering") == "Catering"

    def test_empty_recipient(self):
        assert get_transfer_label_from_title("Transfer to: ") == "Recipient"


class TestPinnedSeeding:
    """Tests for seeding pinned rows into storage."""

    def test_creates_missing_rows(self, run, storage):
        pinned = [
            PinnedContribution(name="Family Pledge", amount=300000),
            PinnedContribution(name="Fraternity", amount=100000),
        ]
        now = datetime(2026, 2, 12, 15, 30)

        created = run(ensure_default_seed_contributions(storage, pinned, now=now))

        assert [item.name for item in created] == ["Family Pledge", "Fraternity"]
        assert created[0].contributed_at == datetime(2026, 2, 11, 9, 0)
        assert created[1].contributed_at == datetime(2026, 2, 11, 9, 1)
        assert created[0].note == SEED_NOTE

    def test_existing_rows_not_duplicated(self, run, storage):
        pinned = [PinnedContribution(name="Family Pledge", amount=300000)]
        run(ensure_default_seed_contributions(storage, pinned))
        assert run(ensure_default_seed_contributions(storage, pinned)) == []
        assert len(run(storage.list_contributions())) == 1

    def test_no_pinned_rows(self, run, storage):
        assert run(ensure_default_seed_contributions(storage, [])) == []
