"""
Reports Package

Derived views over the ledger: dashboard aggregates, the shareable
update messages and pinned-row seeding.
"""

from family_ledger.reports.dashboard import (
    compute_dashboard_metrics,
    compute_running_totals,
    find_near_duplicate_warning,
)
from family_ledger.reports.expense_records import (
    TRANSFER_PREFIX,
    get_transfer_label_from_title,
    is_transfer_record_title,
    to_transfer_record_title,
)
from family_ledger.reports.formatting import format_amount, format_datetime, format_kes
from family_ledger.reports.messages import (
    build_expense_message,
    build_update_message,
    pinned_key,
)
from family_ledger.reports.pinned import (
    SEED_NOTE,
    ensure_default_seed_contributions,
    load_pinned_contributions,
)

__all__ = [
    # Dashboard
    "compute_dashboard_metrics",
    "compute_running_totals",
    "find_near_duplicate_warning",
    # Transfers
    "TRANSFER_PREFIX",
    "get_transfer_label_from_title",
    "is_transfer_record_title",
    "to_transfer_record_title",
    # Formatting
    "format_amount",
    "format_datetime",
    "format_kes",
    # Messages
    "build_expense_message",
    "build_update_message",
    "pinned_key",
    # Pinned rows
    "SEED_NOTE",
    "ensure_default_seed_contributions",
    "load_pinned_contributions",
]
