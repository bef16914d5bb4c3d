"""
FastAPI router for User account endpoints.

Provides endpoints for profile, preferences, password, export and deletion.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from snapnote.dependencies import (
    require_auth,
    rate_limit,
    get_account_service,
    get_journal_analytics,
)
from snapnote.services.account.account_service import AccountService
from snapnote.services.journal.journal_analytics import JournalAnalytics
from snapnote.schemas.user import (
    UpdatePreferencesRequest,
    ChangePasswordRequest,
    DeleteAccountRequest,
)
from snapnote.pipelines import user as pipelines
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile")
async def get_profile(
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """Get the caller's profile."""
    result = await pipelines.get_profile_pipeline(
        account_service=account_service,
        user_id=str(user["_id"])
    )

    return success_response(result)


@router.get("/stats")
async def get_account_stats(
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
    journal_analytics: Annotated[JournalAnalytics, Depends(get_journal_analytics)],
):
    """Account age and journaling consistency."""
    result = await pipelines.get_account_stats_pipeline(
        account_service=account_service,
        journal_analytics=journal_analytics,
        user_id=str(user["_id"])
    )

    return success_response(result)


@router.put("/preferences")
async def update_preferences(
    body: UpdatePreferencesRequest,
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """Update reminder opt-in and theme."""
    result = await pipelines.update_preferences_pipeline(
        account_service=account_service,
        user_id=str(user["_id"]),
        email_reminders=body.emailReminders,
        theme=body.theme
    )

    return success_response(result, message="Preferences updated successfully")


@router.put("/password", dependencies=[Depends(rate_limit("sensitive", per_user=True))])
async def change_password(
    body: ChangePasswordRequest,
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """
    Change the password.

    Every refresh token is revoked, so other devices must log in again.
    """
    result = await pipelines.change_password_pipeline(
        account_service=account_service,
        user_id=str(user["_id"]),
        current_password=body.currentPassword,
        new_password=body.newPassword
    )

    return success_response(message=result["message"])


@router.get("/export")
async def export_data(
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
    format: str = Query("json"),
):
    """Download everything stored about the caller as JSON."""
    result = await pipelines.export_data_pipeline(
        account_service=account_service,
        user_id=str(user["_id"]),
        export_format=format
    )

    return JSONResponse(
        content=jsonable_encoder(success_response(result)),
        headers={"Content-Disposition": 'attachment; filename="snapnote-data-export.json"'}
    )


@router.delete("/account", dependencies=[Depends(rate_limit("sensitive", per_user=True))])
async def delete_account(
    body: DeleteAccountRequest,
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
):
    """Permanently delete the account and all journal entries."""
    result = await pipelines.delete_account_pipeline(
        account_service=account_service,
        user_id=str(user["_id"]),
        password=body.password,
        confirmation_text=body.confirmationText
    )

    return success_response(message=result["message"])
