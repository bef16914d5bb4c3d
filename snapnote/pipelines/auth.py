"""
Auth system pipeline functions.

Stateless orchestration logic for authentication flows.
"""

import logging
from typing import Optional

from common.utils.exceptions import UnauthorizedException, LockedException
from snapnote.services.auth.credential_store import CredentialStore, is_locked
from snapnote.services.auth.token_service import TokenService
from snapnote.services.auth.mfa_service import MFAService

logger = logging.getLogger(__name__)


def _invalid_credentials() -> UnauthorizedException:
    # Same response whichever factor failed
    return UnauthorizedException(
        message="Invalid email or password",
        code="INVALID_CREDENTIALS"
    )


async def register_pipeline(
    credential_store: CredentialStore,
    token_service: TokenService,
    email: str,
    password: str
) -> dict:
    """
    Orchestrates the user registration flow.

    Args:
        credential_store: For creating the identity
        token_service: For issuing the first token pair
        email: Email address
        password: Plaintext password

    Returns:
        dict with user and tokens

    Raises:
        ValidationException: Weak password or malformed email
        ConflictException: Email already registered
    """
    user = await credential_store.register(email, password)
    tokens = await token_service.issue_pair(user["_id"])

    return {
        "user": format_user_response(user),
        "tokens": tokens
    }


async def login_pipeline(
    credential_store: CredentialStore,
    token_service: TokenService,
    mfa_service: MFAService,
    email: str,
    password: str,
    mfa_code: Optional[str] = None
) -> dict:
    """
    Orchestrates the user login flow.

    Args:
        credential_store: For user lookup, password check and lockout
        token_service: For issuing the token pair
        mfa_service: For TOTP verification
        email: Email address
        password: Plaintext password
        mfa_code: TOTP or backup code, required when MFA is enabled

    Returns:
        dict with user and tokens, or {"requiresMFA": True, ...} when MFA
        is enabled and no code was sent

    Raises:
        UnauthorizedException: Unknown email, wrong password or wrong code
        LockedException: Account is locked
    """
    user = await credential_store.get_user_by_email(email)

    if not user:
        logger.warning("Login failed: unknown email")
        raise _invalid_credentials()

    user_id = user["_id"]

    if is_locked(user):
        logger.warning(f"Login refused for locked account {user_id}")
        raise LockedException()

    if not credential_store.verify_password(user, password):
        attempts = await credential_store.record_failed_attempt(user)
        logger.warning(f"Login failed for user {user_id}: invalid password (attempt {attempts})")
        raise _invalid_credentials()

    if user.get("mfaEnabled"):
        if not mfa_code:
            return {
                "requiresMFA": True,
                "message": "MFA code required"
            }

        if not mfa_service.verify_code(user.get("mfaSecret"), mfa_code):
            used_backup = await credential_store.consume_backup_code(user_id, mfa_code)
            if not used_backup:
                attempts = await credential_store.record_failed_attempt(user)
                logger.warning(f"Login failed for user {user_id}: invalid MFA code (attempt {attempts})")
                raise _invalid_credentials()
            logger.info(f"Backup code used for user {user_id}")

    await credential_store.reset_attempts(user_id)
    user["lastLoginAt"] = await credential_store.update_last_login(user_id)
    await token_service.prune_expired(user_id)

    tokens = await token_service.issue_pair(user_id)

    logger.info(f"User logged in: {user_id}")

    return {
        "user": format_user_response(user),
        "tokens": tokens
    }


async def refresh_pipeline(
    token_service: TokenService,
    refresh_token: str
) -> dict:
    """
    Exchange a refresh token for a new access token.

    Raises:
        UnauthorizedException: Token invalid, expired, revoked or orphaned
    """
    access_token = await token_service.renew_access(refresh_token)
    return {"accessToken": access_token}


async def logout_pipeline(
    token_service: TokenService,
    user_id: str,
    refresh_token: Optional[str] = None
) -> dict:
    """
    Orchestrates the logout flow.

    Args:
        token_service: For refresh token revocation
        user_id: MongoDB user ID
        refresh_token: Token to deactivate (optional)

    Returns:
        dict with success message
    """
    if refresh_token:
        await token_service.revoke(user_id, refresh_token)

    logger.info(f"User logged out: {user_id}")

    return {"message": "Logout successful"}


def auth_status_pipeline(user: Optional[dict]) -> dict:
    """Report whether the caller is authenticated, never raising."""
    if not user:
        return {"authenticated": False, "user": None}

    return {
        "authenticated": True,
        "user": format_user_response(user)
    }


def format_user_response(user: dict) -> dict:
    """Format user document for API response."""
    return {
        "id": str(user["_id"]),
        "email": user.get("email"),
        "isEmailVerified": user.get("isEmailVerified", False),
        "mfaEnabled": user.get("mfaEnabled", False),
        "preferences": user.get("preferences", {}),
        "createdAt": user.get("createdAt"),
        "updatedAt": user.get("updatedAt"),
        "lastLoginAt": user.get("lastLoginAt")
    }
