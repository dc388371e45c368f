"""Validation package."""

from family_ledger.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
