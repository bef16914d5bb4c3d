"""
SnapNote Services.

All service classes organized by feature.
"""

# Auth services
from snapnote.services.auth.token_hasher import TokenHasher
from snapnote.services.auth.credential_store import CredentialStore
from snapnote.services.auth.token_service import TokenService
from snapnote.services.auth.mfa_service import MFAService

# Journal services
from snapnote.services.journal.entry_ledger import EntryLedger
from snapnote.services.journal.journal_analytics import JournalAnalytics

# Account services
from snapnote.services.account.account_service import AccountService

# Rate limiting
from snapnote.services.rate_limit.rate_limiter import RateLimiter

__all__ = [
    "TokenHasher",
    "CredentialStore",
    "TokenService",
    "MFAService",
    "EntryLedger",
    "JournalAnalytics",
    "AccountService",
    "RateLimiter",
]
