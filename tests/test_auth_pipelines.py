"""
Unit tests for auth pipeline functions.

Tests login gating order: lock, password, second factor, then session.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from common.utils.exceptions import LockedException, UnauthorizedException
from snapnote.pipelines.auth import (
    auth_status_pipeline,
    login_pipeline,
    logout_pipeline,
    refresh_pipeline,
    register_pipeline,
)
from snapnote.schemas import AuthResponse

LAST_LOGIN = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user():
    return {
        "_id": ObjectId(),
        "email": "a@b.com",
        "passwordHash": "hash",
        "mfaEnabled": False,
        "mfaSecret": None,
        "loginAttempts": 0,
        "preferences": {"emailReminders": False, "theme": "light"},
    }


@pytest.fixture
def credential_store(user):
    store = MagicMock()
    store.register = AsyncMock(return_value=user)
    store.get_user_by_email = AsyncMock(return_value=user)
    store.verify_password = MagicMock(side_effect=lambda u, p: p == "Str0ng!Pass")
    store.record_failed_attempt = AsyncMock(return_value=1)
    store.reset_attempts = AsyncMock()
    store.update_last_login = AsyncMock(return_value=LAST_LOGIN)
    store.consume_backup_code = AsyncMock(return_value=False)
    return store


@pytest.fixture
def token_service():
    service = MagicMock()
    service.issue_pair = AsyncMock(return_value={"accessToken": "access", "refreshToken": "refresh"})
    service.renew_access = AsyncMock(return_value="new-access")
    service.revoke = AsyncMock(return_value=True)
    service.prune_expired = AsyncMock()
    return service


@pytest.fixture
def mfa_service():
    return MagicMock(verify_code=MagicMock(return_value=False))


async def login(credential_store, token_service, mfa_service, password="Str0ng!Pass", mfa_code=None):
    return await login_pipeline(
        credential_store=credential_store,
        token_service=token_service,
        mfa_service=mfa_service,
        email="a@b.com",
        password=password,
        mfa_code=mfa_code,
    )


class TestRegisterPipeline:
    @pytest.mark.asyncio
    async def test_returns_user_and_tokens(self, credential_store, token_service, user):
        result = await register_pipeline(credential_store, token_service, "a@b.com", "Str0ng!Pass")

        assert result["user"]["id"] == str(user["_id"])
        assert "passwordHash" not in result["user"]
        assert result["tokens"] == {"accessToken": "access", "refreshToken": "refresh"}
        AuthResponse.model_validate(result)
        token_service.issue_pair.assert_awaited_once_with(user["_id"])


class TestLoginPipeline:
    @pytest.mark.asyncio
    async def test_success_resets_counter_and_issues_tokens(self, credential_store, token_service, mfa_service, user):
        result = await login(credential_store, token_service, mfa_service)

        assert result["tokens"]["accessToken"] == "access"
        assert result["user"]["lastLoginAt"] == LAST_LOGIN
        credential_store.reset_attempts.assert_awaited_once_with(user["_id"])
        token_service.prune_expired.assert_awaited_once_with(user["_id"])

    @pytest.mark.asyncio
    async def test_unknown_email_is_generic(self, credential_store, token_service, mfa_service):
        credential_store.get_user_by_email.return_value = None

        with pytest.raises(UnauthorizedException) as exc_info:
            await login(credential_store, token_service, mfa_service)

        assert exc_info.value.code == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_wrong_password_counts_failure(self, credential_store, token_service, mfa_service, user):
        with pytest.raises(UnauthorizedException) as exc_info:
            await login(credential_store, token_service, mfa_service, password="wrong")

        assert exc_info.value.code == "INVALID_CREDENTIALS"
        credential_store.record_failed_attempt.assert_awaited_once_with(user)
        token_service.issue_pair.assert_not_called()

    @pytest.mark.asyncio
    async def test_locked_account_refused_even_with_right_password(
        self, credential_store, token_service, mfa_service, user
    ):
        user["lockUntil"] = datetime.now(timezone.utc) + timedelta(hours=1)

        with pytest.raises(LockedException):
            await login(credential_store, token_service, mfa_service)

        credential_store.record_failed_attempt.assert_not_called()
        token_service.issue_pair.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_lock_allows_login(self, credential_store, token_service, mfa_service, user):
        user["lockUntil"] = datetime.now(timezone.utc) - timedelta(minutes=1)

        result = await login(credential_store, token_service, mfa_service)

        assert "tokens" in result

    @pytest.mark.asyncio
    async def test_mfa_enabled_without_code_asks_for_it(self, credential_store, token_service, mfa_service, user):
        user.update(mfaEnabled=True, mfaSecret="SECRET")

        result = await login(credential_store, token_service, mfa_service)

        assert result == {"requiresMFA": True, "message": "MFA code required"}
        credential_store.reset_attempts.assert_not_called()
        token_service.issue_pair.assert_not_called()

    @pytest.mark.asyncio
    async def test_mfa_valid_totp(self, credential_store, token_service, mfa_service, user):
        user.update(mfaEnabled=True, mfaSecret="SECRET")
        mfa_service.verify_code.return_value = True

        result = await login(credential_store, token_service, mfa_service, mfa_code="123456")

        assert "tokens" in result
        credential_store.consume_backup_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_mfa_backup_code(self, credential_store, token_service, mfa_service, user):
        user.update(mfaEnabled=True, mfaSecret="SECRET")
        credential_store.consume_backup_code.return_value = True

        result = await login(credential_store, token_service, mfa_service, mfa_code="ABCD1234")

        assert "tokens" in result
        credential_store.consume_backup_code.assert_awaited_once_with(user["_id"], "ABCD1234")

    @pytest.mark.asyncio
    async def test_mfa_wrong_code_counts_failure(self, credential_store, token_service, mfa_service, user):
        user.update(mfaEnabled=True, mfaSecret="SECRET")

        with pytest.raises(UnauthorizedException) as exc_info:
            await login(credential_store, token_service, mfa_service, mfa_code="000000")

        assert exc_info.value.code == "INVALID_CREDENTIALS"
        credential_store.record_failed_attempt.assert_awaited_once_with(user)
        credential_store.reset_attempts.assert_not_called()


class TestSessionPipelines:
    @pytest.mark.asyncio
    async def test_refresh(self, token_service):
        assert await refresh_pipeline(token_service, "refresh") == {"accessToken": "new-access"}

    @pytest.mark.asyncio
    async def test_logout_revokes_given_token(self, token_service, user):
        result = await logout_pipeline(token_service, str(user["_id"]), "refresh")

        assert result == {"message": "Logout successful"}
        token_service.revoke.assert_awaited_once_with(str(user["_id"]), "refresh")

    @pytest.mark.asyncio
    async def test_logout_without_token(self, token_service, user):
        await logout_pipeline(token_service, str(user["_id"]))

        token_service.revoke.assert_not_called()

    def test_status_anonymous(self):
        assert auth_status_pipeline(None) == {"authenticated": False, "user": None}

    def test_status_authenticated(self, user):
        status = auth_status_pipeline(user)

        assert status["authenticated"] is True
        assert status["user"]["email"] == "a@b.com"
