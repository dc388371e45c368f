"""
Configuration Management for Family Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here, including the
format-specific tables the statement parser relies on (block window size,
stop words, reference denylist). When a statement provider changes its
layout, the fix is an environment variable, not a code change.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Worksheet names within the spreadsheet
    contributions_sheet_name: str = Field(default="Contributions")
    expenses_sheet_name: str = Field(default="Expenses")
    updates_sheet_name: str = Field(default="Updates")
    expense_updates_sheet_name: str = Field(default="ExpenseUpdates")

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class WhatsAppSettings(BaseSettings):
    """Settings for the shareable update messages."""

    model_config = SettingsConfigDict(
        env_prefix="WHATSAPP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    export_max_items: Optional[int] = Field(
        default=None,
        description="Maximum rows in the contribution list (pinned rows included)"
    )
    budget_line: Optional[str] = Field(
        default=None,
        description="Free-text budget line shown under the header"
    )
    official_recipient_name: str = Field(default="Treasurer")
    official_recipient_phone: str = Field(default="")
    target_budget_kes: Optional[int] = Field(
        default=None,
        description="Budget target used when no budget line is configured"
    )

    @field_validator('export_max_items', 'target_budget_kes', mode='before')
    @classmethod
    def blank_is_unset(cls, v):
        """Treat blank or non-positive values as 'not configured'."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            number = int(float(v))
        except (TypeError, ValueError):
            return None
        return number if number > 0 else None

    @field_validator('budget_line', mode='before')
    @classmethod
    def strip_budget_line(cls, v):
        if v is None:
            return None
        return str(v).strip()


class StatementSettings(BaseSettings):
    """
    Statement parser tables.

    List values are comma-separated in the environment, e.g.
    STATEMENT_STOP_WORDS="Completed,Successful,Paid In".
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    trigger_phrase: str = Field(default="Funds received from")
    status_marker: str = Field(default="COMPLETED")
    max_block_lines: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Trigger line plus this many minus one following lines"
    )
    stop_words: str = Field(
        default="Completed,Successful,Confirmed,Transaction,Balance,Paid In,Withdrawn,Status,KES",
    )
    ref_denylist: str = Field(
        default="COMPLETED,SUCCESSFUL,CONFIRMED,RECEIVED",
    )
    min_fallback_amount: int = Field(default=10, ge=1)

    @property
    def stop_words_list(self) -> list[str]:
        return [word.strip() for word in self.stop_words.split(",") if word.strip()]

    @property
    def ref_denylist_list(self) -> list[str]:
        return [word.strip().upper() for word in self.ref_denylist.split(",") if word.strip()]


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Password gate
    admin_password: str = Field(
        default="changeme",
        description="Shared admin password"
    )
    session_secret: Optional[str] = Field(
        default=None,
        description="Secret for session tokens (falls back to the admin password)"
    )

    # Persistence
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which storage backend to use"
    )
    ledger_dev_file: Optional[str] = Field(
        default="data/family-ledger.dev.json",
        description="JSON snapshot for the in-memory store (development only)"
    )

    # Statement uploads
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum statement upload size in MB"
    )
    import_preview_limit: int = Field(
        default=10,
        ge=1,
        description="How many imported rows to show back to the user"
    )
    near_miss_snippet_limit: int = Field(
        default=3,
        ge=0,
        description="How many raw snippets to show when nothing was detected"
    )

    # Validation thresholds
    near_duplicate_window_minutes: int = Field(
        default=10,
        ge=0,
        description="Same name and amount within this window is flagged"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        description="How many days in the future a contribution date can be"
    )

    # Fixed rows always listed first in the update message
    pinned_contributions: str = Field(
        default="[]",
        description='JSON list of {"name": ..., "amount": ...} objects'
    )

    @property
    def is_production(self) -> bool:
        return self.app_environment.lower() == "production"

    @property
    def effective_session_secret(self) -> str:
        return self.session_secret or self.admin_password

    @property
    def dev_file_path(self) -> Optional[Path]:
        """Snapshot path, or None when snapshots are disabled."""
        if self.is_production or not self.ledger_dev_file:
            return None
        return Path(self.ledger_dev_file).resolve()

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def pinned_contributions_list(self) -> list[dict]:
        """Decode the pinned rows; malformed JSON yields no pinned rows."""
        try:
            rows = json.loads(self.pinned_contributions)
        except json.JSONDecodeError:
            return []
        return rows if isinstance(rows, list) else []


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def whatsapp(self) -> WhatsAppSettings:
        return WhatsAppSettings()

    @property
    def statement(self) -> StatementSettings:
        return StatementSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries describing failures. Used by the settings page.
    """
    results = {}
    settings = get_settings()

    sections = {
        "app": lambda: settings.app,
        "statement": lambda: settings.statement,
        "whatsapp": lambda: settings.whatsapp,
    }
    if settings.app.storage_backend == "google_sheets":
        sections["google_sheets"] = lambda: settings.google_sheets

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
