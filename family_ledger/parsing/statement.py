"""
Statement Block Parser

Scans the plain text of a mobile-money statement export and returns one
candidate per "Funds received from ..." transaction.

A statement row is often wrapped across several physical lines once the
PDF is flattened to text, e.g.:

    RCK1ABC2DE 2026-02-25 13:31:20 Funds received from
    0724***037 - MARY ACHIENG
    COMPLETED 5,000.00 12,345.00

The parser groups the trigger line with the lines that follow it (up to a
fixed window, ending at the first following line with the status marker)
into a "block", joins the block with " | " and extracts
name, amount, timestamp and reference from it.

DESIGN DECISION: Every format-specific constant lives in StatementLayout,
and choosing the amount column is delegated to AmountColumnStrategy
objects. A different statement layout supplies a different layout and
strategy chain without touching block detection or name/date extraction.

KNOWN FRAGILITY: PaidInAfterStatusStrategy takes the first number after
"COMPLETED" as the paid-in column. In statement variants where the
withdrawn or balance column (or a wrapped timestamp) comes first, that
number is picked instead. The heuristic is kept as is for the layout it
was written for.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from family_ledger.parsing.candidates import ParsedStatementContribution
from family_ledger.parsing.text import (
    build_local_datetime,
    normalize_whitespace,
    parse_amount,
)

# Numeric money token: optional KES prefix, thousands separators, cents
PAID_IN_TOKEN_RE = re.compile(r"(?:KES\s*)?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?", re.IGNORECASE)
FALLBACK_TOKEN_RE = re.compile(r"(?:KES\s*)?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?", re.IGNORECASE)

ISO_DATETIME_RE = re.compile(
    r"(\d{4})[-/](\d{2})[-/](\d{2})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?"
)
DMY_DATETIME_RE = re.compile(
    r"(\d{1,2})/(\d{1,2})/(\d{2,4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(AM|PM)?",
    re.IGNORECASE,
)

REF_TOKEN_RE = re.compile(r"\b[A-Z0-9]{8,15}\b")

# "254713***641 - " or "0724***037 - " in front of the sender name
PHONE_PREFIX_RE = re.compile(r"^\s*\+?\d[\d*\s-]{5,30}\s*-\s*")
LEADING_PUNCT_RE = re.compile(r"^[\-:]+")
TRAILING_AMOUNT_RE = re.compile(r"(?:KES\s*)?\d[\d,.\s]*$", re.IGNORECASE)
TRAILING_DASH_RE = re.compile(r"\s+-\s*$")

DEFAULT_STOP_WORDS = (
    "Completed",
    "Successful",
    "Confirmed",
    "Transaction",
    "Balance",
    "Paid In",
    "Withdrawn",
    "Status",
    "KES",
)
DEFAULT_REF_DENYLIST = ("COMPLETED", "SUCCESSFUL", "CONFIRMED", "RECEIVED")


# =============================================================================
# AMOUNT COLUMN STRATEGIES
# =============================================================================

class AmountColumnStrategy(ABC):
    """Decides which number in a block is the amount received."""

    @abstractmethod
    def select(self, block: str, phrase_index: int) -> Optional[int]:
        """
        Pick the received amount from a block.

        Args:
            block: The joined block text
            phrase_index: Offset of the trigger phrase within the block

        Returns:
            Whole-unit amount, or None if this strategy finds nothing
        """


class PaidInAfterStatusStrategy(AmountColumnStrategy):
    """First amount after the status marker is the paid-in column."""

    def __init__(self, status_marker: str = "COMPLETED"):
        self._status_re = re.compile(re.escape(status_marker) + r"([\s\S]*)", re.IGNORECASE)

    def select(self, block: str, phrase_index: int) -> Optional[int]:
        match = self._status_re.search(block)
        if not match:
            return None
        tail = match.group(1).replace("|", " ")
        for token in PAID_IN_TOKEN_RE.finditer(tail):
            amount = parse_amount(token.group(0))
            if amount:
                return amount
        return None


class NearPhraseStrategy(AmountColumnStrategy):
    """
    First plausible amount at or after the trigger phrase.

    Tokens touching "/" or ":" belong to dates and times and are skipped,
    as are amounts below min_amount. If nothing qualifies after the phrase,
    the first qualifying token anywhere in the block is used.
    """

    def __init__(self, min_amount: int = 10):
        self._min_amount = min_amount

    def select(self, block: str, phrase_index: int) -> Optional[int]:
        candidates: list[tuple[int, int]] = []

        for token in FALLBACK_TOKEN_RE.finditer(block):
            start, end = token.span()
            before = block[start - 1:start] if start > 0 else ""
            after = block[end:end + 1]
            if before in ("/", ":") or after in ("/", ":"):
                continue

            amount = parse_amount(token.group(0))
            if not amount or amount < self._min_amount:
                continue
            candidates.append((start, amount))

        if not candidates:
            return None

        for start, amount in candidates:
            if start >= phrase_index:
                return amount
        return candidates[0][1]


class FirstMatchStrategy(AmountColumnStrategy):
    """Try strategies in order; the first non-empty answer wins."""

    def __init__(self, strategies: Sequence[AmountColumnStrategy]):
        self._strategies = list(strategies)

    def select(self, block: str, phrase_index: int) -> Optional[int]:
        for strategy in self._strategies:
            amount = strategy.select(block, phrase_index)
            if amount:
                return amount
        return None


def default_amount_strategy(
    status_marker: str = "COMPLETED",
    min_fallback_amount: int = 10,
) -> AmountColumnStrategy:
    return FirstMatchStrategy([
        PaidInAfterStatusStrategy(status_marker),
        NearPhraseStrategy(min_fallback_amount),
    ])


# =============================================================================
# LAYOUT
# =============================================================================

class StatementLayout(BaseModel):
    """
    Format-specific tables for one statement provider.

    The defaults describe the Safaricom M-Pesa statement export.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    trigger_phrase: str = "Funds received from"
    status_marker: str = "COMPLETED"
    max_block_lines: int = Field(default=6, ge=1)
    block_delimiter: str = " | "
    stop_words: tuple[str, ...] = DEFAULT_STOP_WORDS
    ref_denylist: frozenset[str] = frozenset(DEFAULT_REF_DENYLIST)
    min_fallback_amount: int = Field(default=10, ge=1)
    amount_strategy: Optional[AmountColumnStrategy] = None

    @classmethod
    def from_settings(cls, settings) -> "StatementLayout":
        """Build a layout from StatementSettings."""
        return cls(
            trigger_phrase=settings.trigger_phrase,
            status_marker=settings.status_marker,
            max_block_lines=settings.max_block_lines,
            stop_words=tuple(settings.stop_words_list),
            ref_denylist=frozenset(settings.ref_denylist_list),
            min_fallback_amount=settings.min_fallback_amount,
        )

    def resolve_amount_strategy(self) -> AmountColumnStrategy:
        return self.amount_strategy or default_amount_strategy(
            self.status_marker,
            self.min_fallback_amount,
        )


# =============================================================================
# PARSER
# =============================================================================

class StatementParser:
    """
    Extracts received-payment candidates from statement text.

    Stateless apart from the compiled layout; safe to share.
    """

    def __init__(self, layout: Optional[StatementLayout] = None):
        self._layout = layout or StatementLayout()
        self._amount_strategy = self._layout.resolve_amount_strategy()

        self._trigger_re = re.compile(re.escape(self._layout.trigger_phrase), re.IGNORECASE)
        self._name_start_re = re.compile(
            re.escape(self._layout.trigger_phrase) + r"\s+", re.IGNORECASE
        )
        self._status_re = re.compile(re.escape(self._layout.status_marker), re.IGNORECASE)
        self._status_tail_re = re.compile(
            r"\b" + re.escape(self._layout.status_marker) + r"[\s\S]*$", re.IGNORECASE
        )
        self._stop_res = [
            re.compile(r"\b" + r"\s+".join(re.escape(part) for part in word.split()) + r"\b", re.IGNORECASE)
            for word in self._layout.stop_words
        ]

    @property
    def layout(self) -> StatementLayout:
        return self._layout

    def split_lines(self, text: str) -> list[str]:
        """Non-empty, whitespace-collapsed lines; CR counts as a newline."""
        raw_lines = (text or "").replace("\r", "\n").split("\n")
        return [normalize_whitespace(line) for line in raw_lines if line.strip()]

    def iter_blocks(self, lines: list[str]):
        """
        Yield the joined block text for every trigger line.

        Following lines are added up to the window size and the first of
        them carrying the status marker closes the block. A marker on the
        trigger line itself does not close it.
        """
        for i, line in enumerate(lines):
            if not self._trigger_re.search(line):
                continue

            block_lines = [line]
            for following in lines[i + 1:]:
                if len(block_lines) >= self._layout.max_block_lines:
                    break
                block_lines.append(following)
                if self._status_re.search(following):
                    break
            yield self._layout.block_delimiter.join(block_lines)

    def extract_name(self, block: str) -> Optional[str]:
        match = self._name_start_re.search(block)
        if not match:
            return None

        tail = block[match.end():].replace("|", " ")
        tail = PHONE_PREFIX_RE.sub("", tail, count=1)

        end = len(tail)
        for stop_re in self._stop_res:
            stop = stop_re.search(tail)
            if stop:
                end = min(end, stop.start())

        candidate = normalize_whitespace(tail[:end])
        if not candidate:
            return None

        candidate = LEADING_PUNCT_RE.sub("", candidate, count=1)
        candidate = self._status_tail_re.sub("", candidate, count=1)
        candidate = TRAILING_AMOUNT_RE.sub("", candidate, count=1)
        candidate = TRAILING_DASH_RE.sub("", candidate, count=1)
        return normalize_whitespace(candidate) or None

    def extract_amount(self, block: str) -> Optional[int]:
        phrase = self._trigger_re.search(block)
        phrase_index = phrase.start() if phrase else 0
        return self._amount_strategy.select(block, phrase_index)

    def extract_datetime(self, block: str) -> Optional[datetime]:
        for match in ISO_DATETIME_RE.finditer(block):
            year, month, day, hour, minute, second = match.groups()
            parsed = build_local_datetime(year, month, day, hour, minute, second)
            if parsed:
                return parsed

        for match in DMY_DATETIME_RE.finditer(block):
            day, month, year, hour, minute, second, meridiem = match.groups()
            parsed = build_local_datetime(year, month, day, hour, minute, second, meridiem)
            if parsed:
                return parsed

        return None

    def extract_ref(self, block: str) -> Optional[str]:
        for token in REF_TOKEN_RE.findall(block):
            if token not in self._layout.ref_denylist:
                return token
        return None

    def parse_block(self, block: str) -> Optional[ParsedStatementContribution]:
        """One candidate for a block, or None if name or amount is missing."""
        name = self.extract_name(block)
        if not name:
            return None
        amount = self.extract_amount(block)
        if not amount:
            return None

        return ParsedStatementContribution(
            name=name,
            amount=amount,
            contributed_at=self.extract_datetime(block),
            ref=self.extract_ref(block),
            raw_snippet=block,
        )

    def parse(self, text: str) -> list[ParsedStatementContribution]:
        """
        Parse a whole statement.

        Returns:
            De-duplicated candidates, ascending by timestamp. Candidates
            without a timestamp come last in scan order.
        """
        unique: dict[tuple, ParsedStatementContribution] = {}
        for block in self.iter_blocks(self.split_lines(text)):
            candidate = self.parse_block(block)
            if candidate is not None and candidate.dedupe_key not in unique:
                unique[candidate.dedupe_key] = candidate

        return sorted(
            unique.values(),
            key=lambda c: (c.contributed_at is None, c.contributed_at or datetime.min),
        )

    def near_misses(self, text: str, limit: int = 3) -> list[str]:
        """Raw blocks that triggered but produced no candidate."""
        misses = []
        for block in self.iter_blocks(self.split_lines(text)):
            if len(misses) >= limit:
                break
            if self.parse_block(block) is None:
                misses.append(block)
        return misses


def parse_statement_text(
    text: str,
    layout: Optional[StatementLayout] = None,
) -> list[ParsedStatementContribution]:
    """Parse statement text with the given (or default) layout."""
    return StatementParser(layout).parse(text)
