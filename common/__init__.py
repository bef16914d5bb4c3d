"""
Common library for reusable infrastructure components.

This package provides generic modules that can be used across multiple
projects:

- database: Async MongoDB connection with Motor
- auth: JWT signing and bcrypt password hashing
- utils: Standard responses, exceptions, password validation, sanitizing
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import JWTAuth, TokenError, TokenExpiredError
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    NotFoundException,
    ConflictException,
    ValidationException,
    LockedException,
    RateLimitException,
    validate_password,
    sanitize_input,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "JWTAuth",
    "TokenError",
    "TokenExpiredError",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "LockedException",
    "RateLimitException",
    "validate_password",
    "sanitize_input",
    # Config
    "BaseAppSettings",
]
