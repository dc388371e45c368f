"""
Admin Session

A single shared admin password guards the app. After a successful login
the UI keeps a session token: the HMAC-SHA256 of a fixed payload keyed
with SESSION_SECRET (or the password when no secret is set). Changing
either value invalidates existing sessions.
"""

import hashlib
import hmac
from typing import Optional

from family_ledger.config import AppSettings, get_settings

SESSION_PAYLOAD = "admin"


class AuthenticationError(Exception):
    """Raised when an action requires a valid admin session."""
    pass


def _settings(settings: Optional[AppSettings]) -> AppSettings:
    return settings or get_settings().app


def verify_admin_password(password: str, settings: Optional[AppSettings] = None) -> bool:
    """Constant-time comparison against the configured admin password."""
    expected = _settings(settings).admin_password
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def build_session_token(settings: Optional[AppSettings] = None) -> str:
    secret = _settings(settings).effective_session_secret
    return hmac.new(
        secret.encode("utf-8"),
        SESSION_PAYLOAD.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def is_valid_session_token(token: Optional[str], settings: Optional[AppSettings] = None) -> bool:
    if not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), build_session_token(settings).encode("utf-8"))


def require_session(token: Optional[str], settings: Optional[AppSettings] = None) -> None:
    """
    Raises:
        AuthenticationError: If the token is missing or stale
    """
    if not is_valid_session_token(token, settings):
        raise AuthenticationError("Please sign in to continue.")
