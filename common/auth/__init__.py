"""
Authentication module - JWT signing and bcrypt password hashing.
"""

from common.auth.jwt_auth import JWTAuth, TokenError, TokenExpiredError

__all__ = ["JWTAuth", "TokenError", "TokenExpiredError"]
