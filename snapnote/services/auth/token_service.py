"""
Refresh-token lifecycle for user authentication.

Refresh tokens live as hashed records embedded in the user document's
refreshTokens array. Access tokens are stateless and never stored.
"""

import logging
from datetime import datetime, timezone
from typing import Union

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth, TokenError, TokenExpiredError
from common.utils.exceptions import UnauthorizedException
from snapnote.database import USERS
from snapnote.services.auth.credential_store import to_object_id
from snapnote.services.auth.token_hasher import TokenHasher

logger = logging.getLogger(__name__)


class TokenService:
    """
    Issues, renews and revokes access/refresh token pairs.
    """

    def __init__(self, db: AsyncIOMotorDatabase, auth: JWTAuth):
        """
        Initialize TokenService.

        Args:
            db: MongoDB database connection
            auth: JWT signing provider
        """
        self._db = db
        self._auth = auth
        self._users_collection = db[USERS]

    async def issue_pair(self, user_id: Union[str, ObjectId]) -> dict:
        """
        Issue a new access token and a persisted refresh token.

        Args:
            user_id: MongoDB user ID

        Returns:
            {"accessToken": str, "refreshToken": str}

        Side Effects:
            Pushes {_id, tokenHash, createdAt, expiresAt, isActive} onto
            user.refreshTokens[]
        """
        subject = str(user_id)
        access_token = self._auth.create_access_token(subject)
        refresh_token, expires_at = self._auth.create_refresh_token(subject)

        record = {
            "_id": ObjectId(),
            "tokenHash": TokenHasher.hash_token(refresh_token),
            "createdAt": datetime.now(timezone.utc),
            "expiresAt": expires_at,
            "isActive": True,
        }

        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$push": {"refreshTokens": record}},
        )

        return {"accessToken": access_token, "refreshToken": refresh_token}

    async def renew_access(self, refresh_token: str) -> str:
        """
        Exchange a refresh token for a new access token.

        The refresh token itself is not rotated.

        Raises:
            UnauthorizedException: INVALID_TOKEN, TOKEN_EXPIRED,
                TOKEN_REVOKED or USER_NOT_FOUND
        """
        if not refresh_token:
            raise UnauthorizedException("Refresh token is required", code="INVALID_TOKEN")

        try:
            payload = self._auth.decode_refresh_token(refresh_token)
        except TokenExpiredError:
            raise UnauthorizedException("Refresh token expired", code="TOKEN_EXPIRED")
        except TokenError:
            raise UnauthorizedException("Invalid refresh token", code="INVALID_TOKEN")

        user_id = payload["sub"]
        try:
            oid = to_object_id(user_id)
        except (InvalidId, TypeError):
            raise UnauthorizedException("Invalid refresh token", code="INVALID_TOKEN")

        user = await self._users_collection.find_one(
            {"_id": oid},
            {"refreshTokens": 1},
        )
        if not user:
            raise UnauthorizedException("User not found", code="USER_NOT_FOUND")

        token_hash = TokenHasher.hash_token(refresh_token)
        now = datetime.now(timezone.utc)

        for record in user.get("refreshTokens", []):
            if record.get("tokenHash") != token_hash:
                continue
            expires_at = record.get("expiresAt")
            if expires_at is not None and expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if record.get("isActive") and expires_at is not None and expires_at > now:
                return self._auth.create_access_token(str(oid))
            break

        raise UnauthorizedException("Refresh token has been revoked", code="TOKEN_REVOKED")

    async def revoke(self, user_id: Union[str, ObjectId], refresh_token: str) -> bool:
        """
        Deactivate one refresh token. Unknown or already inactive tokens are a no-op.

        Returns:
            True if a record was deactivated
        """
        if not refresh_token:
            return False

        result = await self._users_collection.update_one(
            {
                "_id": to_object_id(user_id),
                "refreshTokens.tokenHash": TokenHasher.hash_token(refresh_token),
            },
            {"$set": {"refreshTokens.$.isActive": False}},
        )

        if result.modified_count > 0:
            logger.info(f"Refresh token revoked for user {user_id}")
            return True

        return False

    async def revoke_all(self, user_id: Union[str, ObjectId]) -> None:
        """Deactivate every stored refresh token of the user."""
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"refreshTokens.$[].isActive": False}},
        )
        logger.info(f"All refresh tokens revoked for user {user_id}")

    async def prune_expired(self, user_id: Union[str, ObjectId]) -> None:
        """Drop inactive and expired refresh token records."""
        now = datetime.now(timezone.utc)
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id)},
            {
                "$pull": {
                    "refreshTokens": {
                        "$or": [
                            {"isActive": False},
                            {"expiresAt": {"$lte": now}},
                        ]
                    }
                }
            },
        )
