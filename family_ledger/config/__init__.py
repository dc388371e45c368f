"""Configuration package."""

from family_ledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    StatementSettings,
    WhatsAppSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "StatementSettings",
    "WhatsAppSettings",
    "get_settings",
    "validate_all_settings",
]
