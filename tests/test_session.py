"""
Tests for the admin password gate.
"""

import hashlib
import hmac

import pytest

from family_ledger.auth import (
    AuthenticationError,
    build_session_token,
    is_valid_session_token,
    require_session,
    verify_admin_password,
)
from family_ledger.config import AppSettings


class TestPassword:

    def test_default_password(self):
        assert verify_admin_password("changeme")
        assert not verify_admin_password("wrong")

    def test_configured_password(self, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")
        assert verify_admin_password("s3cret")
        assert not verify_admin_password("changeme")


class TestSessionToken:

    def test_token_is_hmac_of_admin_payload(self):
        settings = AppSettings(admin_password="pw", session_secret="topsecret")
        expected = hmac.new(b"topsecret", b"admin", hashlib.sha256).hexdigest()
        assert build_session_token(settings) == expected

    def test_secret_falls_back_to_password(self):
        settings = AppSettings(admin_password="pw", session_secret=None)
        expected = hmac.new(b"pw", b"admin", hashlib.sha256).hexdigest()
        assert build_session_token(settings) == expected

    def test_valid_and_stale_tokens(self):
        settings = AppSettings(admin_password="pw")
        token = build_session_token(settings)

        assert is_valid_session_token(token, settings)
        assert not is_valid_session_token(None, settings)
        assert not is_valid_session_token("", settings)

        rotated = AppSettings(admin_password="new-pw")
        assert not is_valid_session_token(token, rotated)

    def test_require_session(self):
        settings = AppSettings(admin_password="pw")
        require_session(build_session_token(settings), settings)
        with pytest.raises(AuthenticationError):
            require_session("forged", settings)
