"""
Auth Services

Contains service classes for identity, token and second-factor operations.
"""

from snapnote.services.auth.token_hasher import TokenHasher
from snapnote.services.auth.credential_store import CredentialStore, is_locked
from snapnote.services.auth.token_service import TokenService
from snapnote.services.auth.mfa_service import MFAService

__all__ = [
    "TokenHasher",
    "CredentialStore",
    "is_locked",
    "TokenService",
    "MFAService",
]
