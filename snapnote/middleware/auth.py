"""
Authentication middleware for protected routes.

Validates bearer access tokens and resolves the calling user. The resolved
user is returned to the route through Depends; nothing is stashed on
request.state.
"""

import logging
from typing import Optional

from fastapi import Request

from common.auth import JWTAuth, TokenError, TokenExpiredError
from common.utils.exceptions import UnauthorizedException, LockedException
from snapnote.services.auth.credential_store import CredentialStore, is_locked

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Middleware that validates the access token and loads the user.
    """

    def __init__(self, auth: JWTAuth, credential_store: CredentialStore):
        """
        Initialize AuthMiddleware.

        Args:
            auth: For access token verification
            credential_store: For user lookup
        """
        self._auth = auth
        self._credential_store = credential_store

    async def require_auth(self, request: Request) -> dict:
        """
        Validate request is authenticated.

        Args:
            request: HTTP request object

        Returns:
            User dict with password hash, MFA material and tokens projected out

        Raises:
            UnauthorizedException: NO_TOKEN, INVALID_TOKEN, TOKEN_EXPIRED
                or USER_NOT_FOUND
            LockedException: Account is currently locked
        """
        token = self._extract_token(request)

        if not token:
            raise UnauthorizedException(
                message="Access token is required",
                code="NO_TOKEN"
            )

        try:
            payload = self._auth.decode_access_token(token)
        except TokenExpiredError:
            raise UnauthorizedException(
                message="Access token expired",
                code="TOKEN_EXPIRED"
            )
        except TokenError:
            raise UnauthorizedException(
                message="Invalid access token",
                code="INVALID_TOKEN"
            )

        user = await self._credential_store.get_user_by_id(payload["sub"], safe=True)

        if not user:
            raise UnauthorizedException(
                message="User not found",
                code="USER_NOT_FOUND"
            )

        if is_locked(user):
            raise LockedException()

        return user

    async def optional_auth(self, request: Request) -> Optional[dict]:
        """
        Resolve the user if authenticated, but don't require it.

        Args:
            request: HTTP request object

        Returns:
            User dict if authenticated, None otherwise

        Does not raise errors for missing/invalid auth.
        """
        if not self._extract_token(request):
            return None

        try:
            return await self.require_auth(request)
        except (UnauthorizedException, LockedException) as e:
            logger.debug(f"Optional auth failed: {e.code}")
            return None

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract bearer token from Authorization header.

        Args:
            request: HTTP request object

        Returns:
            Token string if present and valid format, None otherwise

        Expected format: "Authorization: Bearer <token>"
        """
        auth_header = request.headers.get("Authorization")

        if not auth_header:
            return None

        parts = auth_header.split()

        if len(parts) != 2:
            return None

        scheme, token = parts

        if scheme.lower() != "bearer":
            return None

        return token
