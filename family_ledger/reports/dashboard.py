"""
Dashboard Aggregates

DESIGN DECISION: Aggregates are computed from the full contribution list
on every request. The ledger of one family event is small enough that
keeping derived totals in storage would only add ways to drift.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from family_ledger.models.ledger import Contribution, DashboardMetrics, RunningTotal
from family_ledger.parsing.text import name_key, normalize_name
from family_ledger.reports.formatting import format_datetime


def compute_running_totals(contributions: Iterable[Contribution]) -> list[RunningTotal]:
    """
    Total per contributor.

    Names are grouped case-insensitively; the display name is taken from
    the first contribution seen for that person. Sorted by most recent
    contribution, then by name.
    """
    totals: dict[str, RunningTotal] = {}

    for item in contributions:
        key = name_key(item.name)
        existing = totals.get(key)
        if existing is None:
            totals[key] = RunningTotal(
                key=key,
                name=normalize_name(item.name),
                total=item.amount,
                last_contributed_at=item.contributed_at,
            )
            continue
        existing.total += item.amount
        if item.contributed_at > existing.last_contributed_at:
            existing.last_contributed_at = item.contributed_at

    rows = sorted(totals.values(), key=lambda row: row.name)
    rows.sort(key=lambda row: row.last_contributed_at, reverse=True)
    return rows


def compute_dashboard_metrics(
    contributions: list[Contribution],
    last_cutoff_at: Optional[datetime],
) -> DashboardMetrics:
    """
    Compute dashboard numbers.

    Args:
        contributions: Every contribution in the ledger
        last_cutoff_at: Cutoff of the last generated update, if any.
                        Contributions strictly after it are "new".

    Returns:
        DashboardMetrics with new contributions in ascending time order
    """
    if last_cutoff_at is None:
        new_contributions = list(contributions)
    else:
        new_contributions = [
            item for item in contributions if item.contributed_at > last_cutoff_at
        ]
    new_contributions.sort(key=lambda item: item.contributed_at)

    return DashboardMetrics(
        total_collected=sum(item.amount for item in contributions),
        last_update_at=last_cutoff_at,
        new_since_last_update_amount=sum(item.amount for item in new_contributions),
        new_since_last_update_count=len(new_contributions),
        new_contributions=new_contributions,
        running_totals=compute_running_totals(contributions),
    )


def find_near_duplicate_warning(
    contributions: Iterable[Contribution],
    name: str,
    amount: int,
    contributed_at: Optional[datetime] = None,
    window_minutes: int = 10,
) -> Optional[str]:
    """
    Warn about a probable double entry.

    Only contributions without a reference are considered: referenced
    ones are already protected by the unique-ref rule.

    Returns:
        Warning text, or None if nothing similar was found
    """
    wanted = name_key(name)
    base_time = contributed_at or datetime.now()
    window = timedelta(minutes=window_minutes)

    for item in contributions:
        if item.ref:
            continue
        if name_key(item.name) != wanted or item.amount != amount:
            continue
        if abs(base_time - item.contributed_at) <= window:
            return (
                f"Possible duplicate: same name and amount found within "
                f"{window_minutes} minutes ({format_datetime(item.contributed_at)}). "
                "Saved anyway because no ref was provided."
            )
    return None
