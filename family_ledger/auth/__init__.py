"""Admin authentication package."""

from family_ledger.auth.session import (
    AuthenticationError,
    build_session_token,
    is_valid_session_token,
    require_session,
    verify_admin_password,
)

__all__ = [
    "AuthenticationError",
    "build_session_token",
    "is_valid_session_token",
    "require_session",
    "verify_admin_password",
]
