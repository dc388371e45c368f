"""Record builders shared by the test modules."""

from datetime import datetime
from typing import Optional

from family_ledger.models.ledger import Contribution, Expense


def make_contribution(
    name: str = "Jane Doe",
    amount: int = 1000,
    contributed_at: Optional[datetime] = None,
    ref: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Contribution:
    contributed_at = contributed_at or datetime(2026, 2, 11, 17, 2)
    return Contribution(
        name=name,
        amount=amount,
        ref=ref,
        contributed_at=contributed_at,
        created_at=created_at or contributed_at,
        updated_at=created_at or contributed_at,
    )


def make_expense(
    title: str = "Tent deposit",
    amount: int = 15000,
    spent_at: Optional[datetime] = None,
) -> Expense:
    spent_at = spent_at or datetime(2026, 2, 12, 10, 0)
    return Expense(title=title, amount=amount, spent_at=spent_at, created_at=spent_at)
