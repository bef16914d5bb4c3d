"""
Pydantic models for Auth system request/response validation.

Defines schemas for registration, login, tokens and MFA operations.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, EmailStr


# =============================================================================
# Request Schemas
# =============================================================================

class RegisterRequest(BaseModel):
    """POST /api/auth/register"""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    """POST /api/auth/login"""
    email: EmailStr
    password: str = Field(..., min_length=1)
    mfaCode: Optional[str] = Field(None, max_length=16, description="TOTP or backup code")


class RefreshTokenRequest(BaseModel):
    """POST /api/auth/refresh-token"""
    refreshToken: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    """POST /api/auth/logout"""
    refreshToken: Optional[str] = None


class MFAVerifyRequest(BaseModel):
    """POST /api/auth/mfa/verify"""
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class MFADisableRequest(BaseModel):
    """POST /api/auth/mfa/disable"""
    password: str = Field(..., min_length=1)
    mfaCode: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


# =============================================================================
# Response Schemas (used inside success_response data)
# =============================================================================

class TokenPair(BaseModel):
    """Access/refresh token pair."""
    accessToken: str
    refreshToken: str


class UserResponse(BaseModel):
    """User information in API responses."""
    id: str
    email: EmailStr
    isEmailVerified: bool = False
    mfaEnabled: bool = False
    preferences: dict
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    lastLoginAt: Optional[datetime] = None


class AuthResponse(BaseModel):
    """Response for successful authentication (login/register)."""
    user: UserResponse
    tokens: TokenPair


class MFASetupResponse(BaseModel):
    """Response for POST /api/auth/mfa/setup"""
    secret: str
    otpauthUrl: str
    qrCode: str = Field(..., description="PNG data URL")
    backupCodes: List[str]
