"""
Pinned Contributions

Some contributions are pledged up front (e.g. by the immediate family)
and always head the shared list. They are configured as a JSON list in
PINNED_CONTRIBUTIONS and seeded into storage so totals include them.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from family_ledger.config import AppSettings
from family_ledger.models.ledger import Contribution, ContributionInput, PinnedContribution
from family_ledger.parsing.text import name_key
from family_ledger.services.storage import LedgerStorageInterface

logger = structlog.get_logger(__name__)

SEED_NOTE = "Default seeded contribution"
SEED_HOUR = 9


def load_pinned_contributions(settings: AppSettings) -> list[PinnedContribution]:
    """Decode configured pinned rows, skipping malformed entries."""
    rows = []
    for raw in settings.pinned_contributions_list:
        try:
            rows.append(PinnedContribution.model_validate(raw))
        except ValidationError as e:
            logger.warning("pinned_contribution_invalid", entry=repr(raw), error=str(e))
    return rows


def _seed_key(name: str, amount: int) -> tuple[str, int]:
    return name_key(name), amount


async def ensure_default_seed_contributions(
    storage: LedgerStorageInterface,
    pinned: Sequence[PinnedContribution],
    now: Optional[datetime] = None,
) -> list[Contribution]:
    """
    Create any pinned row that is not yet in storage.

    Rows are matched by case-insensitive name and amount. New rows are
    dated yesterday at 09:00, one minute apart in configured order.

    Returns:
        The contributions that were created (empty if all were present)
    """
    if not pinned:
        return []

    existing = await storage.list_contributions()
    present = {_seed_key(item.name, item.amount) for item in existing}

    base = (now or datetime.now()) - timedelta(days=1)
    base = base.replace(hour=SEED_HOUR, minute=0, second=0, microsecond=0)

    created = []
    for index, row in enumerate(pinned):
        key = _seed_key(row.name, row.amount)
        if key in present:
            continue
        contribution = await storage.create_contribution(
            ContributionInput(
                name=row.name,
                amount=row.amount,
                contributed_at=base + timedelta(minutes=index),
                note=SEED_NOTE,
            )
        )
        present.add(key)
        created.append(contribution)

    if created:
        logger.info("pinned_contributions_seeded", count=len(created))
    return created
