"""
Pydantic models for User account request/response validation.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class UpdatePreferencesRequest(BaseModel):
    """PUT /api/user/preferences"""
    emailReminders: Optional[bool] = None
    theme: Optional[Literal["light", "dark"]] = None


class ChangePasswordRequest(BaseModel):
    """PUT /api/user/password"""
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=1, max_length=128)


class DeleteAccountRequest(BaseModel):
    """DELETE /api/user/account"""
    password: str = Field(..., min_length=1)
    confirmationText: str = Field(..., description='Must be exactly "DELETE MY ACCOUNT"')
