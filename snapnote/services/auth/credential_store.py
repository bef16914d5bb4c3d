"""
Credential store for user identities.

Owns the identity document: hashed password, lockout counters, MFA secret
and backup codes, preferences. Lock status is derived from stored fields
on demand (see is_locked) and never persisted separately.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Union

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.auth import JWTAuth
from common.utils import validate_password
from common.utils.exceptions import ConflictException, ValidationException
from snapnote.database import USERS
from snapnote.services.auth.token_hasher import TokenHasher

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

THEMES = ("light", "dark")

# Fields never handed to route handlers
SAFE_USER_PROJECTION = {
    "passwordHash": 0,
    "mfaSecret": 0,
    "mfaBackupCodes": 0,
    "refreshTokens": 0,
}


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes read from the store as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_object_id(value: Union[str, ObjectId]) -> ObjectId:
    """
    Convert a string id to ObjectId.

    Raises:
        InvalidId: value is not a valid ObjectId
    """
    if isinstance(value, ObjectId):
        return value
    return ObjectId(value)


def normalize_email(email: str) -> str:
    """Emails are keyed trimmed and lowercased."""
    return email.strip().lower()


def is_locked(user: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """True iff lockUntil is set and still in the future."""
    lock_until = as_utc(user.get("lockUntil"))
    if lock_until is None:
        return False
    return lock_until > (now or _utcnow())


def password_rule_errors(password: str) -> List[Dict[str, str]]:
    """Run the password policy, one error item per failed rule."""
    _, errors = validate_password(password)
    return [{"field": "password", "message": message} for message in errors]


class CredentialStore:
    """
    Manages identity records and their credential state.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        auth: JWTAuth,
        max_attempts: int = 5,
        lock_duration: timedelta = timedelta(hours=2),
    ):
        """
        Initialize CredentialStore.

        Args:
            db: MongoDB database connection
            auth: Password hashing provider
            max_attempts: Failed logins that trigger a lock
            lock_duration: How long a lock lasts
        """
        self._db = db
        self._auth = auth
        self._max_attempts = max_attempts
        self._lock_duration = lock_duration
        self._users_collection = db[USERS]

    # ─────────────────────────────────────────────────────────────
    # Registration and lookup
    # ─────────────────────────────────────────────────────────────

    async def register(self, email: str, password: str) -> dict:
        """
        Create a new identity.

        Args:
            email: Email address (normalized before storage)
            password: Plaintext password (hashed, never stored)

        Returns:
            Created user document

        Raises:
            ValidationException: Malformed email or weak password (itemized)
            ConflictException: Email already registered
        """
        normalized = normalize_email(email)
        if not EMAIL_PATTERN.match(normalized):
            raise ValidationException(
                message="Please enter a valid email",
                code="INVALID_EMAIL",
                errors=[{"field": "email", "message": "Please enter a valid email"}],
            )

        errors = password_rule_errors(password)
        if errors:
            raise ValidationException(
                message="Password does not meet requirements",
                code="WEAK_PASSWORD",
                errors=errors,
            )

        existing = await self._users_collection.find_one({"email": normalized}, {"_id": 1})
        if existing:
            raise self._email_exists()

        now = _utcnow()
        user_doc = {
            "email": normalized,
            "passwordHash": self._auth.hash_password(password),
            "isEmailVerified": False,
            "mfaEnabled": False,
            "mfaSecret": None,
            "mfaBackupCodes": [],
            "refreshTokens": [],
            "loginAttempts": 0,
            "lastLoginAt": None,
            "preferences": {
                "emailReminders": False,
                "theme": "light",
            },
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            # Lost a registration race on the unique email index
            raise self._email_exists()

        user_doc["_id"] = result.inserted_id
        logger.info(f"User registered: {result.inserted_id}")
        return user_doc

    async def get_user_by_id(
        self,
        user_id: Union[str, ObjectId],
        safe: bool = False,
    ) -> Optional[dict]:
        """
        Load user by MongoDB ID.

        Args:
            user_id: MongoDB ObjectId (or its string form)
            safe: Project out password hash, MFA material and tokens

        Returns:
            User document or None if not found / id malformed
        """
        try:
            oid = to_object_id(user_id)
        except (InvalidId, TypeError):
            return None

        projection = SAFE_USER_PROJECTION if safe else None
        return await self._users_collection.find_one({"_id": oid}, projection)

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        """Load user by (normalized) email address."""
        return await self._users_collection.find_one({"email": normalize_email(email)})

    # ─────────────────────────────────────────────────────────────
    # Password verification and lockout
    # ─────────────────────────────────────────────────────────────

    def verify_password(self, user: dict, password: str) -> bool:
        """Check a plaintext password against the user's stored hash."""
        return self._auth.verify_password(password, user.get("passwordHash"))

    def is_locked(self, user: dict) -> bool:
        return is_locked(user)

    async def record_failed_attempt(
        self,
        user: dict,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Count a failed authentication attempt.

        A lock that has already expired is treated as if it never happened:
        the counter restarts at 1. Only one concurrent failure wins that
        restart; the rest fall through to the atomic increment, and the
        account is locked once the counter reaches max_attempts.

        Returns:
            The failure count after this attempt
        """
        now = now or _utcnow()
        user_id = user["_id"]

        lock_until = as_utc(user.get("lockUntil"))
        if lock_until is not None and lock_until <= now:
            restarted = await self._users_collection.update_one(
                {"_id": user_id, "lockUntil": {"$lte": now}},
                {"$set": {"loginAttempts": 1}, "$unset": {"lockUntil": ""}},
            )
            if restarted.modified_count > 0:
                return 1

        updated = await self._users_collection.find_one_and_update(
            {"_id": user_id},
            {"$inc": {"loginAttempts": 1}},
            projection={"loginAttempts": 1, "lockUntil": 1},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            return 0

        attempts = updated.get("loginAttempts", 0)
        if attempts >= self._max_attempts and not is_locked(updated, now):
            await self._users_collection.update_one(
                {"_id": user_id},
                {"$set": {"lockUntil": now + self._lock_duration}},
            )
            logger.warning(f"Account {user_id} locked after {attempts} failed attempts")

        return attempts

    async def reset_attempts(self, user_id: Union[str, ObjectId]) -> None:
        """Clear the failure counter and any lock. Call only after full authentication."""
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"loginAttempts": 0}, "$unset": {"lockUntil": ""}},
        )

    async def update_last_login(self, user_id: Union[str, ObjectId]) -> datetime:
        now = _utcnow()
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"lastLoginAt": now, "updatedAt": now}},
        )
        return now

    # ─────────────────────────────────────────────────────────────
    # Profile mutations
    # ─────────────────────────────────────────────────────────────

    async def update_password(self, user_id: Union[str, ObjectId], password: str) -> None:
        """Hash and store a new password. Policy checks belong to the caller."""
        now = _utcnow()
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"passwordHash": self._auth.hash_password(password), "updatedAt": now}},
        )

    async def update_preferences(
        self,
        user_id: Union[str, ObjectId],
        email_reminders: Optional[bool] = None,
        theme: Optional[str] = None,
    ) -> dict:
        """
        Update the preference bag. Unset arguments leave values unchanged.

        Returns:
            The stored preferences after the update

        Raises:
            ValidationException: Unknown theme
        """
        updates: Dict[str, Any] = {}

        if email_reminders is not None:
            updates["preferences.emailReminders"] = email_reminders

        if theme is not None:
            if theme not in THEMES:
                raise ValidationException(
                    message="Invalid theme",
                    code="VALIDATION_ERROR",
                    errors=[{"field": "theme", "message": "Theme must be light or dark"}],
                )
            updates["preferences.theme"] = theme

        updates["updatedAt"] = _utcnow()

        user = await self._users_collection.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": updates},
            projection={"preferences": 1},
            return_document=ReturnDocument.AFTER,
        )
        return (user or {}).get("preferences", {})

    # ─────────────────────────────────────────────────────────────
    # MFA material
    # ─────────────────────────────────────────────────────────────

    async def store_mfa_setup(
        self,
        user_id: Union[str, ObjectId],
        secret: str,
        backup_codes: List[str],
    ) -> None:
        """
        Store a pending MFA secret and hashed backup codes.
        MFA stays disabled until a code is verified.
        """
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {
                "$set": {
                    "mfaSecret": secret,
                    "mfaBackupCodes": [
                        {"codeHash": TokenHasher.hash_backup_code(code), "used": False}
                        for code in backup_codes
                    ],
                    "updatedAt": _utcnow(),
                }
            },
        )

    async def enable_mfa(self, user_id: Union[str, ObjectId]) -> None:
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"mfaEnabled": True, "updatedAt": _utcnow()}},
        )

    async def clear_mfa(self, user_id: Union[str, ObjectId]) -> None:
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {
                "$set": {
                    "mfaEnabled": False,
                    "mfaSecret": None,
                    "mfaBackupCodes": [],
                    "updatedAt": _utcnow(),
                }
            },
        )

    async def consume_backup_code(self, user_id: Union[str, ObjectId], code: str) -> bool:
        """
        Mark a matching unused backup code as used.

        The match and the flag flip happen in one update, so a code can
        only ever be redeemed once.

        Returns:
            True if a code was consumed
        """
        code_hash = TokenHasher.hash_backup_code(code)
        result = await self._users_collection.update_one(
            {
                "_id": to_object_id(user_id),
                "mfaBackupCodes": {"$elemMatch": {"codeHash": code_hash, "used": False}},
            },
            {"$set": {"mfaBackupCodes.$.used": True}},
        )
        return result.modified_count > 0

    # ─────────────────────────────────────────────────────────────
    # Deletion
    # ─────────────────────────────────────────────────────────────

    async def delete_identity(self, user_id: Union[str, ObjectId]) -> bool:
        result = await self._users_collection.delete_one({"_id": to_object_id(user_id)})
        return result.deleted_count > 0

    @staticmethod
    def _email_exists() -> ConflictException:
        return ConflictException(
            message="An account with this email already exists",
            code="EMAIL_EXISTS",
        )
