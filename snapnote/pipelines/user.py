"""
User account pipeline functions.

Stateless orchestration logic for profile, MFA and account lifecycle.
"""

import logging
from typing import Optional, Dict, Any

from snapnote.services.account.account_service import AccountService
from snapnote.services.journal.journal_analytics import JournalAnalytics
from snapnote.pipelines.auth import format_user_response
from snapnote.pipelines.journal import format_entry

logger = logging.getLogger(__name__)


async def get_profile_pipeline(
    account_service: AccountService,
    user_id: str
) -> Dict[str, Any]:
    user = await account_service.get_profile(user_id)
    return {"user": format_user_response(user)}


async def get_account_stats_pipeline(
    account_service: AccountService,
    journal_analytics: JournalAnalytics,
    user_id: str
) -> Dict[str, Any]:
    """
    Account age and journaling consistency.

    Args:
        account_service: For loading the user
        journal_analytics: For the statistics
        user_id: Current user's ID
    """
    user = await account_service.get_profile(user_id)
    return await journal_analytics.get_account_stats(user)


async def update_preferences_pipeline(
    account_service: AccountService,
    user_id: str,
    email_reminders: Optional[bool] = None,
    theme: Optional[str] = None
) -> Dict[str, Any]:
    preferences = await account_service.update_preferences(
        user_id,
        email_reminders=email_reminders,
        theme=theme
    )
    return {"preferences": preferences}


async def change_password_pipeline(
    account_service: AccountService,
    user_id: str,
    current_password: str,
    new_password: str
) -> Dict[str, str]:
    await account_service.change_password(user_id, current_password, new_password)
    return {"message": "Password changed successfully. Please log in again on your other devices."}


async def setup_mfa_pipeline(
    account_service: AccountService,
    user_id: str
) -> Dict[str, Any]:
    return await account_service.setup_mfa(user_id)


async def verify_mfa_pipeline(
    account_service: AccountService,
    user_id: str,
    code: str
) -> Dict[str, str]:
    await account_service.verify_mfa(user_id, code)
    return {"message": "MFA enabled successfully"}


async def disable_mfa_pipeline(
    account_service: AccountService,
    user_id: str,
    password: str,
    code: str
) -> Dict[str, str]:
    await account_service.disable_mfa(user_id, password, code)
    return {"message": "MFA disabled successfully"}


async def export_data_pipeline(
    account_service: AccountService,
    user_id: str,
    export_format: str = "json"
) -> Dict[str, Any]:
    """
    Build the downloadable account export.

    Returns:
        dict with user, journalEntries, exportDate and totalEntries
    """
    export = await account_service.export_all(user_id, export_format)
    entries = [format_entry(e) for e in export["entries"]]

    return {
        "user": format_user_response(export["user"]),
        "journalEntries": entries,
        "exportDate": export["exportedAt"],
        "totalEntries": len(entries)
    }


async def delete_account_pipeline(
    account_service: AccountService,
    user_id: str,
    password: str,
    confirmation_text: str
) -> Dict[str, str]:
    await account_service.delete_account(user_id, password, confirmation_text)
    return {"message": "Account deleted successfully"}
