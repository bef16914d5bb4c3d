"""
FastAPI router for Auth system endpoints.

Provides endpoints for registration, login, token refresh, logout and MFA.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from snapnote.dependencies import (
    require_auth,
    optional_auth,
    rate_limit,
    get_credential_store,
    get_token_service,
    get_mfa_service,
    get_account_service,
)
from snapnote.services.auth.credential_store import CredentialStore
from snapnote.services.auth.token_service import TokenService
from snapnote.services.auth.mfa_service import MFAService
from snapnote.services.account.account_service import AccountService
from snapnote.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    LogoutRequest,
    MFAVerifyRequest,
    MFADisableRequest,
)
from snapnote.pipelines import auth as pipelines
from snapnote.pipelines import user as user_pipelines
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """
    Register a new user account.

    Returns the user and a first access/refresh token pair.
    """
    result = await pipelines.register_pipeline(
        credential_store=credential_store,
        token_service=token_service,
        email=body.email,
        password=body.password
    )

    return success_response(result, message="User registered successfully")


@router.post("/login", dependencies=[Depends(rate_limit("login"))])
async def login(
    body: LoginRequest,
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    mfa_service: Annotated[MFAService, Depends(get_mfa_service)],
):
    """
    Log in with email and password (and MFA code when enabled).

    Returns tokens, or requiresMFA=true when a second factor is needed.
    """
    result = await pipelines.login_pipeline(
        credential_store=credential_store,
        token_service=token_service,
        mfa_service=mfa_service,
        email=body.email,
        password=body.password,
        mfa_code=body.mfaCode
    )

    if result.get("requiresMFA"):
        return success_response(result, message="MFA code required")

    return success_response(result, message="Login successful")


@router.post("/refresh-token")
async def refresh_token(
    body: RefreshTokenRequest,
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Exchange a refresh token for a new access token."""
    result = await pipelines.refresh_pipeline(
        token_service=token_service,
        refresh_token=body.refreshToken
    )

    return success_response(result)


@router.post("/logout")
async def logout(
    body: LogoutRequest,
    user: Annotated[dict, Depends(require_auth)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Deactivate the given refresh token."""
    result = await pipelines.logout_pipeline(
        token_service=token_service,
        user_id=str(user["_id"]),
        refresh_token=body.refreshToken
    )

    return success_response(message=result["message"])


@router.get("/status")
async def auth_status(
    user: Annotated[Optional[dict], Depends(optional_auth)],
):
    """Report whether the caller is logged in. Never fails on bad tokens."""
    return success_response(pipelines.auth_status_pipeline(user))


@router.post("/mfa/setup")
async def setup_mfa(
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """
    Start MFA enrollment.

    Backup codes are returned here once and never again.
    """
    result = await user_pipelines.setup_mfa_pipeline(
        account_service=account_service,
        user_id=str(user["_id"])
    )

    return success_response(result)


@router.post("/mfa/verify")
async def verify_mfa(
    body: MFAVerifyRequest,
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """Confirm enrollment with a TOTP code and enable MFA."""
    result = await user_pipelines.verify_mfa_pipeline(
        account_service=account_service,
        user_id=str(user["_id"]),
        code=body.code
    )

    return success_response(message=result["message"])


@router.post("/mfa/disable", dependencies=[Depends(rate_limit("sensitive", per_user=True))])
async def disable_mfa(
    body: MFADisableRequest,
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """Disable MFA. Requires the password and a current TOTP code."""
    result = await user_pipelines.disable_mfa_pipeline(
        account_service=account_service,
        user_id=str(user["_id"]),
        password=body.password,
        code=body.mfaCode
    )

    return success_response(message=result["message"])
