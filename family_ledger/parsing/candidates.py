"""
Parsed transaction candidates.

CRITICAL: These are PROPOSED records, NOT ledger entries.
The admin reviews them and the caller persists whatever is accepted.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ParsedPaymentMessage(BaseModel):
    """
    Fields recovered from one pasted confirmation message.

    Every field is optional: partial results are normal and the caller
    decides whether name and amount are enough to proceed.
    """
    model_config = ConfigDict(frozen=True)

    ref: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[int] = Field(default=None, gt=0)
    contributed_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        """Name and amount are both present."""
        return bool(self.name) and self.amount is not None

    @property
    def is_empty(self) -> bool:
        return (
            self.ref is None
            and self.name is None
            and self.amount is None
            and self.contributed_at is None
        )


class ParsedStatementContribution(BaseModel):
    """One 'funds received' transaction found in a statement."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    contributed_at: Optional[datetime] = None
    ref: Optional[str] = None
    raw_snippet: str = Field(
        ...,
        description="Source block the candidate was derived from"
    )

    @property
    def dedupe_key(self) -> tuple[str, str, int, str]:
        """Composite identity used to collapse repeated blocks."""
        return (
            self.ref or "",
            self.name.lower(),
            self.amount,
            self.contributed_at.isoformat() if self.contributed_at else "",
        )
