"""Tests for login helpers: whitelist, resend cooldown and tokens."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from beanie import PydanticObjectId
from fastapi import HTTPException

from backend.api.dependencies import create_access_token, decode_user_id, ensure_owner
from backend.api.routes.auth import cooldown_remaining, is_email_allowed
from config.settings import settings
from shared.constants import UserRole


class TestWhitelist:
    """Login whitelist."""

    def test_empty_whitelist_is_open(self, monkeypatch):
        monkeypatch.setattr(settings, "allowed_emails", "")
        assert is_email_allowed("anyone@example.com")

    def test_only_listed_emails(self, monkeypatch):
        monkeypatch.setattr(settings, "allowed_emails", "alice@example.com,bob@example.com")
        assert is_email_allowed("alice@example.com")
        assert is_email_allowed("Bob@Example.com")
        assert not is_email_allowed("mallory@example.com")


class TestCooldown:
    """Resend cooldown between OTP emails."""

    def test_fresh_code_blocks_resend(self):
        now = datetime(2024, 5, 1, 12, 0, 0)
        created = now - timedelta(seconds=20)
        assert cooldown_remaining(created, now) == settings.otp_resend_cooldown_seconds - 20

    def test_partial_seconds_round_up(self):
        now = datetime(2024, 5, 1, 12, 0, 0)
        created = now - timedelta(seconds=settings.otp_resend_cooldown_seconds - 0.5)
        assert cooldown_remaining(created, now) == 1

    def test_expired_cooldown(self):
        now = datetime(2024, 5, 1, 12, 0, 0)
        created = now - timedelta(seconds=settings.otp_resend_cooldown_seconds + 5)
        assert cooldown_remaining(created, now) == 0


class TestTokens:
    """JWT helpers."""

    def test_round_trip(self):
        user_id = str(PydanticObjectId())
        token = create_access_token({"user_id": user_id, "email": "a@example.com", "role": "user"})
        assert decode_user_id(token) == user_id

    def test_invalid_token(self):
        assert decode_user_id("not-a-token") is None

    def test_expired_token(self):
        token = create_access_token({"user_id": str(PydanticObjectId())}, expires_delta=timedelta(minutes=-5))
        assert decode_user_id(token) is None

    def test_token_without_valid_user_id(self):
        assert decode_user_id(create_access_token({"user_id": "abc"})) is None


class TestOwnership:
    """Owner checks on user-created documents."""

    def test_owner_passes(self):
        user = SimpleNamespace(id=PydanticObjectId(), role=UserRole.USER)
        ensure_owner(user.id, user)

    def test_admin_passes(self):
        admin = SimpleNamespace(id=PydanticObjectId(), role=UserRole.ADMIN)
        ensure_owner(PydanticObjectId(), admin)

    def test_other_user_is_forbidden(self):
        user = SimpleNamespace(id=PydanticObjectId(), role=UserRole.USER)
        with pytest.raises(HTTPException) as exc_info:
            ensure_owner(PydanticObjectId(), user, "delete")
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Not authorized to delete this resource"

    def test_missing_owner_is_forbidden(self):
        user = SimpleNamespace(id=PydanticObjectId(), role=UserRole.USER)
        with pytest.raises(HTTPException):
            ensure_owner(None, user)
