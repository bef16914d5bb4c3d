"""
Account lifecycle service.

Coordinates password change, MFA enable/disable, data export and account
deletion across the credential store, token service and entry ledger.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from common.utils.exceptions import (
    UnauthorizedException,
    NotFoundException,
    ConflictException,
    ValidationException,
)
from snapnote.services.auth.credential_store import CredentialStore, password_rule_errors
from snapnote.services.auth.token_service import TokenService
from snapnote.services.auth.mfa_service import MFAService
from snapnote.services.journal.entry_ledger import EntryLedger

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json",)


class AccountService:
    """
    Cross-cutting account operations.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        token_service: TokenService,
        mfa_service: MFAService,
        entry_ledger: EntryLedger,
        delete_confirmation_phrase: str = "DELETE MY ACCOUNT",
    ):
        """
        Initialize AccountService.

        Args:
            credential_store: For identity reads and writes
            token_service: For refresh token revocation
            mfa_service: For TOTP material
            entry_ledger: For entry export and deletion
            delete_confirmation_phrase: Exact text required to delete an account
        """
        self._credential_store = credential_store
        self._token_service = token_service
        self._mfa_service = mfa_service
        self._entry_ledger = entry_ledger
        self._delete_confirmation_phrase = delete_confirmation_phrase

    async def _load_user(self, user_id: str) -> Dict[str, Any]:
        user = await self._credential_store.get_user_by_id(user_id)
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")
        return user

    def _check_password(self, user: Dict[str, Any], password: str, message: str = "Invalid password") -> None:
        if not self._credential_store.verify_password(user, password or ""):
            raise UnauthorizedException(message=message, code="INVALID_PASSWORD")

    # ─────────────────────────────────────────────────────────────
    # Profile
    # ─────────────────────────────────────────────────────────────

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        """User document without password hash, MFA material or tokens."""
        user = await self._credential_store.get_user_by_id(user_id, safe=True)
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")
        return user

    async def update_preferences(
        self,
        user_id: str,
        email_reminders: Optional[bool] = None,
        theme: Optional[str] = None,
    ) -> Dict[str, Any]:
        await self._load_user(user_id)
        return await self._credential_store.update_preferences(
            user_id,
            email_reminders=email_reminders,
            theme=theme,
        )

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the password and sign the user out everywhere.

        Raises:
            UnauthorizedException: Current password wrong
            ValidationException: New password weak, or same as the current one
        """
        user = await self._load_user(user_id)
        self._check_password(user, current_password, "Invalid current password")

        errors = password_rule_errors(new_password)
        if errors:
            raise ValidationException(
                message="New password does not meet requirements",
                code="WEAK_PASSWORD",
                errors=errors,
            )

        if self._credential_store.verify_password(user, new_password):
            raise ValidationException(
                message="New password must be different from current password",
                code="SAME_PASSWORD",
                errors=[{
                    "field": "newPassword",
                    "message": "New password must be different from current password",
                }],
            )

        await self._credential_store.update_password(user_id, new_password)
        await self._token_service.revoke_all(user_id)

        logger.info(f"Password changed for user {user_id}")

    # ─────────────────────────────────────────────────────────────
    # MFA
    # ─────────────────────────────────────────────────────────────

    async def setup_mfa(self, user_id: str) -> Dict[str, Any]:
        """
        Start MFA enrollment.

        Stores a new secret and hashed backup codes; MFA stays disabled
        until verify_mfa succeeds.

        Returns:
            dict with secret, otpauthUrl, qrCode (PNG data URL) and the
            plaintext backupCodes, which are never retrievable again

        Raises:
            ConflictException: MFA already enabled
        """
        user = await self._load_user(user_id)

        if user.get("mfaEnabled"):
            raise ConflictException(message="MFA is already enabled", code="MFA_ALREADY_ENABLED")

        secret = self._mfa_service.generate_secret()
        otpauth_url = self._mfa_service.provisioning_uri(secret, user["email"])
        backup_codes = self._mfa_service.generate_backup_codes()

        await self._credential_store.store_mfa_setup(user_id, secret, backup_codes)

        logger.info(f"MFA setup started for user {user_id}")

        return {
            "secret": secret,
            "otpauthUrl": otpauth_url,
            "qrCode": self._mfa_service.qr_code_data_url(otpauth_url),
            "backupCodes": backup_codes,
        }

    async def verify_mfa(self, user_id: str, code: str) -> None:
        """
        Confirm enrollment with a TOTP code and enable MFA.

        Raises:
            ValidationException: No pending MFA setup
            UnauthorizedException: Code does not match
        """
        user = await self._load_user(user_id)

        if not user.get("mfaSecret"):
            raise ValidationException(message="MFA setup not found", code="MFA_NOT_SETUP")

        if not self._mfa_service.verify_code(user["mfaSecret"], code):
            raise UnauthorizedException(message="Invalid MFA code", code="INVALID_MFA_CODE")

        await self._credential_store.enable_mfa(user_id)
        logger.info(f"MFA enabled for user {user_id}")

    async def disable_mfa(self, user_id: str, password: str, code: str) -> None:
        """
        Turn MFA off. Requires the password and a current TOTP code.

        Raises:
            ValidationException: MFA not enabled
            UnauthorizedException: Password or code wrong
        """
        user = await self._load_user(user_id)

        if not user.get("mfaEnabled"):
            raise ValidationException(message="MFA is not enabled", code="MFA_NOT_ENABLED")

        self._check_password(user, password)

        if not self._mfa_service.verify_code(user.get("mfaSecret"), code):
            raise UnauthorizedException(message="Invalid MFA code", code="INVALID_MFA_CODE")

        await self._credential_store.clear_mfa(user_id)
        logger.info(f"MFA disabled for user {user_id}")

    # ─────────────────────────────────────────────────────────────
    # Export and deletion
    # ─────────────────────────────────────────────────────────────

    async def export_all(self, user_id: str, export_format: str = "json") -> Dict[str, Any]:
        """
        Gather everything stored about the user. Read-only.

        Returns:
            dict with keys:
                - user: identity snapshot (sensitive fields projected out)
                - entries: all journal entries, newest first
                - exportedAt: datetime

        Formats other than json are served as json.
        """
        if export_format not in EXPORT_FORMATS:
            logger.info(f"Export format {export_format!r} not supported, serving json for user {user_id}")

        user = await self.get_profile(user_id)
        entries = await self._entry_ledger.get_all_entries(user_id)

        return {
            "user": user,
            "entries": entries,
            "exportedAt": datetime.now(timezone.utc),
        }

    async def delete_account(
        self,
        user_id: str,
        password: str,
        confirmation_phrase: str,
    ) -> None:
        """
        Permanently delete the account and all its journal entries.

        Entries go first so a failure never leaves orphaned entries
        behind a deleted identity.

        Raises:
            ValidationException: Confirmation phrase mismatch
            UnauthorizedException: Password wrong
        """
        if confirmation_phrase != self._delete_confirmation_phrase:
            raise ValidationException(
                message=f'Please type "{self._delete_confirmation_phrase}" to confirm account deletion',
                code="INVALID_CONFIRMATION",
                errors=[{"field": "confirmationText", "message": "Confirmation text does not match"}],
            )

        user = await self._load_user(user_id)
        self._check_password(user, password)

        deleted_entries = await self._entry_ledger.delete_all_for_user(user_id)
        await self._credential_store.delete_identity(user_id)

        logger.info(f"Account deleted: {user_id} ({deleted_entries} entries removed)")
