"""
Family Ledger - Source Package

A household ledger for a single trusted admin: contributions and expenses
entered by hand (or pre-filled from pasted M-Pesa messages and uploaded
statements), a dashboard of totals, and shareable text summaries.

DESIGN PRINCIPLES:
1. Parsers suggest, the admin confirms
2. Parsers never raise on bad input; absence of a field is the signal
3. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Family Ledger Team"
