"""
JWT + bcrypt authentication primitives.

Token signing and password hashing used by the auth services:
- Short-lived access tokens and longer-lived refresh tokens, each signed
  with its own secret so one can never be replayed as the other
- bcrypt for secure password hashing with a configurable work factor

Storage of users and refresh tokens is the caller's job; this class only
does the cryptography.

Example:
    auth = JWTAuth(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
    )

    hashed = auth.hash_password("Str0ng!Pass")
    assert auth.verify_password("Str0ng!Pass", hashed)

    token = auth.create_access_token(user_id)
    claims = auth.decode_access_token(token)
    print(claims["sub"])  # user_id
"""

import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple

import bcrypt as bcrypt_lib
from jose import jwt, JWTError, ExpiredSignatureError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(ValueError):
    """Token failed signature, structure or type checks."""


class TokenExpiredError(TokenError):
    """Token signature is valid but its exp claim has passed."""


class JWTAuth:
    """
    JWT + bcrypt authentication provider.

    Handles token creation/verification and password hashing.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 15,
        refresh_token_expire_days: int = 7,
        bcrypt_rounds: int = 12,
    ):
        """
        Initialize JWT auth provider.

        Args:
            access_secret: Secret key for access token signing
            refresh_secret: Secret key for refresh token signing
            algorithm: JWT algorithm (default: HS256)
            access_token_expire_minutes: Access token lifetime
            refresh_token_expire_days: Refresh token lifetime
            bcrypt_rounds: bcrypt cost factor
        """
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)
        self.refresh_token_expire = timedelta(days=refresh_token_expire_days)
        self.bcrypt_rounds = bcrypt_rounds

    def _prehash_password(self, password: str) -> str:
        """
        Pre-hash password with SHA-256 before bcrypt.

        This handles bcrypt's 72-byte limit and ensures consistent
        behavior across all password lengths.
        """
        sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(sha256_hash).decode("utf-8")

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt with SHA-256 pre-hashing."""
        prehashed = self._prehash_password(password)
        salt = bcrypt_lib.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt_lib.hashpw(prehashed.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, hashed: Optional[str]) -> bool:
        """Verify a password against its hash."""
        if not hashed:
            return False

        prehashed = self._prehash_password(password)
        try:
            return bcrypt_lib.checkpw(prehashed.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False

    def create_access_token(self, user_id: str, **claims: Any) -> str:
        """Create a signed, short-lived access token for the user."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + self.access_token_expire,
            **claims,
        }
        return jwt.encode(payload, self.access_secret, algorithm=self.algorithm)

    def create_refresh_token(self, user_id: str) -> Tuple[str, datetime]:
        """
        Create a signed refresh token.

        A random jti keeps tokens issued within the same second distinct.

        Returns:
            tuple of (token, expires_at)
        """
        now = datetime.now(timezone.utc)
        expires_at = now + self.refresh_token_expire
        payload = {
            "sub": user_id,
            "type": REFRESH_TOKEN_TYPE,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self.refresh_secret, algorithm=self.algorithm)
        return token, expires_at

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode an access token.

        Raises:
            TokenExpiredError: Token has expired
            TokenError: Token is malformed, badly signed or not an access token
        """
        return self._decode(token, self.access_secret, ACCESS_TOKEN_TYPE)

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a refresh token.

        Raises:
            TokenExpiredError: Token has expired
            TokenError: Token is malformed, badly signed or not a refresh token
        """
        return self._decode(token, self.refresh_secret, REFRESH_TOKEN_TYPE)

    def _decode(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token expired") from e
        except JWTError as e:
            raise TokenError(f"Invalid token: {e}") from e

        if payload.get("type") != expected_type:
            raise TokenError("Invalid token type")

        if not payload.get("sub"):
            raise TokenError("Token missing user ID")

        return payload
