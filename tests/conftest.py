"""Pytest configuration and shared fixtures.

Settings are read from the environment (and a `.env` file in the working
directory). Each test runs from its own temporary directory with the
ledger variables cleared, so a developer's local configuration cannot
leak into assertions.
"""

import asyncio

import pytest

from family_ledger.config import get_settings
from family_ledger.services.storage import InMemoryLedgerStorage

LEDGER_ENV_VARS = [
    "ADMIN_PASSWORD",
    "SESSION_SECRET",
    "APP_ENVIRONMENT",
    "STORAGE_BACKEND",
    "PINNED_CONTRIBUTIONS",
    "NEAR_DUPLICATE_WINDOW_MINUTES",
    "FUTURE_DATE_TOLERANCE_DAYS",
    "IMPORT_PREVIEW_LIMIT",
    "WHATSAPP_EXPORT_MAX_ITEMS",
    "WHATSAPP_BUDGET_LINE",
    "WHATSAPP_TARGET_BUDGET_KES",
    "WHATSAPP_OFFICIAL_RECIPIENT_NAME",
    "WHATSAPP_OFFICIAL_RECIPIENT_PHONE",
    "STATEMENT_TRIGGER_PHRASE",
    "STATEMENT_STATUS_MARKER",
    "STATEMENT_MAX_BLOCK_LINES",
    "MAX_UPLOAD_SIZE_MB",
]


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path, monkeypatch):
    """Run every test with default settings and no snapshot file."""
    monkeypatch.chdir(tmp_path)
    for name in LEDGER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LEDGER_DEV_FILE", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def run():
    """Drive a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def storage():
    """Fresh in-memory storage without a snapshot file."""
    return InMemoryLedgerStorage()
