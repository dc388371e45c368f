"""
Shareable Update Messages

Builds the plain-text lists the admin copies into the family WhatsApp
group. Asterisks are WhatsApp bold markers.
"""

import re
from typing import Iterable, Sequence

from family_ledger.config import WhatsAppSettings
from family_ledger.models.ledger import Contribution, Expense, PinnedContribution
from family_ledger.reports.expense_records import is_transfer_record_title
from family_ledger.reports.formatting import format_amount, format_kes

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def pinned_key(name: str, amount: int) -> str:
    """Match key for pinned rows: lower-cased alphanumeric words plus amount."""
    return f"{_NON_ALNUM_RE.sub(' ', name.lower()).strip()}|{amount}"


def _budget_line(settings: WhatsAppSettings) -> str:
    if settings.budget_line:
        return settings.budget_line
    if settings.target_budget_kes:
        return f"Our total budget *ksh.{format_amount(settings.target_budget_kes)}*"
    return ""


def _recipient_line(settings: WhatsAppSettings) -> str:
    name = settings.official_recipient_name.strip()
    phone = settings.official_recipient_phone.strip()
    if phone:
        return f"*{name}* - *{phone}*"
    return f"*{name}*"


def build_update_message(
    contributions: Iterable[Contribution],
    settings: WhatsAppSettings,
    pinned: Sequence[PinnedContribution] = (),
) -> str:
    """
    Build the contribution list message.

    Pinned rows always come first, in their configured order. The other
    contributions follow in ascending time order, skipping any that
    match a pinned row. With export_max_items set, only the most recent
    non-pinned contributions that fit after the pinned rows are listed.

    Args:
        contributions: All contributions
        settings: Message header and list size settings
        pinned: Rows always listed first

    Returns:
        Message text, lines joined with newlines
    """
    pinned_keys = {pinned_key(row.name, row.amount) for row in pinned}
    dynamic = [
        item
        for item in sorted(contributions, key=lambda item: item.contributed_at)
        if pinned_key(item.name, item.amount) not in pinned_keys
    ]

    max_items = settings.export_max_items
    if max_items:
        slots = max(0, max_items - len(pinned))
        dynamic = dynamic[-slots:] if slots > 0 else []

    visible = [(row.name, row.amount) for row in pinned]
    visible.extend((item.name, item.amount) for item in dynamic)
    if max_items:
        visible = visible[:max_items]

    lines = ["*CONTRIBUTION LIST*", ""]
    budget = _budget_line(settings)
    if budget:
        lines.append(budget)
    lines.append("")
    lines.append("Official recipient:")
    lines.append(_recipient_line(settings))
    lines.append("")

    if not visible:
        lines.append("No contributions recorded yet.")
    else:
        for index, (name, amount) in enumerate(visible, start=1):
            lines.append(f"{index}. {name} - {format_amount(amount)} ✅")

    return "\n".join(lines)


def build_expense_message(expenses: Iterable[Expense], total_collected: int) -> str:
    """
    Build the expense list message.

    Transfer records are left out of the list and out of the total, so
    the remaining balance is what was collected minus listed expenses.
    """
    listed = sorted(
        (item for item in expenses if not is_transfer_record_title(item.title)),
        key=lambda item: item.spent_at,
    )

    lines = ["*EXPENSES LIST*", ""]
    if not listed:
        lines.append("No expenses recorded yet.")
    else:
        for index, item in enumerate(listed, start=1):
            lines.append(f"{index}. {item.title} - {format_amount(item.amount)} ✅")

    total_expenses = sum(item.amount for item in listed)
    lines.append("")
    lines.append(f"Total expenses: {format_kes(total_expenses)}")
    lines.append(f"Remaining balance: {format_kes(total_collected - total_expenses)}")

    return "\n".join(lines)
