"""
Utilities module - Common helpers for API responses, exceptions, and validation.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    APIException,
    UnauthorizedException,
    NotFoundException,
    ConflictException,
    ValidationException,
    LockedException,
    RateLimitException,
    InternalServerException,
)
from common.utils.password import validate_password
from common.utils.sanitize import sanitize_input

__all__ = [
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "LockedException",
    "RateLimitException",
    "InternalServerException",
    "validate_password",
    "sanitize_input",
]
