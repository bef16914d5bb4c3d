"""
FastAPI dependencies for SnapNote application.

Provides dependency injection for all services.
"""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth
from snapnote.config import Settings

# Auth services
from snapnote.services.auth.credential_store import CredentialStore
from snapnote.services.auth.token_service import TokenService
from snapnote.services.auth.mfa_service import MFAService
from snapnote.middleware.auth import AuthMiddleware

# Journal services
from snapnote.services.journal.entry_ledger import EntryLedger
from snapnote.services.journal.journal_analytics import JournalAnalytics

# Account services
from snapnote.services.account.account_service import AccountService

# Rate limiting
from snapnote.services.rate_limit.rate_limiter import RateLimiter


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

# Auth
_jwt_auth: Optional[JWTAuth] = None
_credential_store: Optional[CredentialStore] = None
_token_service: Optional[TokenService] = None
_mfa_service: Optional[MFAService] = None
_auth_middleware: Optional[AuthMiddleware] = None

# Journal
_entry_ledger: Optional[EntryLedger] = None
_journal_analytics: Optional[JournalAnalytics] = None

# Account
_account_service: Optional[AccountService] = None

# Rate limiting
_rate_limiter: Optional[RateLimiter] = None
_trust_proxy_headers: bool = False


# ─────────────────────────────────────────────────────────────────
# Initialization functions
# ─────────────────────────────────────────────────────────────────

def init_auth_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """Initialize auth services."""
    global _jwt_auth, _credential_store, _token_service, _mfa_service, _auth_middleware

    _jwt_auth = JWTAuth(
        access_secret=settings.JWT_ACCESS_SECRET,
        refresh_secret=settings.JWT_REFRESH_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_expire_days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS,
        bcrypt_rounds=settings.BCRYPT_ROUNDS
    )

    _credential_store = CredentialStore(
        db=db,
        auth=_jwt_auth,
        max_attempts=settings.LOCKOUT_MAX_ATTEMPTS,
        lock_duration=timedelta(hours=settings.LOCKOUT_DURATION_HOURS)
    )

    _token_service = TokenService(db=db, auth=_jwt_auth)

    _mfa_service = MFAService(
        issuer=settings.MFA_ISSUER,
        valid_window=settings.MFA_VALID_WINDOW,
        backup_code_count=settings.MFA_BACKUP_CODE_COUNT
    )

    _auth_middleware = AuthMiddleware(auth=_jwt_auth, credential_store=_credential_store)


def init_journal_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize journal services."""
    global _entry_ledger, _journal_analytics

    _entry_ledger = EntryLedger(db=db)
    _journal_analytics = JournalAnalytics(db=db, entry_ledger=_entry_ledger)


def init_account_services(settings: Settings) -> None:
    """Initialize account services. Requires auth and journal services."""
    global _account_service

    _account_service = AccountService(
        credential_store=get_credential_store(),
        token_service=get_token_service(),
        mfa_service=get_mfa_service(),
        entry_ledger=get_entry_ledger(),
        delete_confirmation_phrase=settings.DELETE_CONFIRMATION_PHRASE
    )


def init_rate_limiter(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """Initialize the rate limiter."""
    global _rate_limiter, _trust_proxy_headers

    _rate_limiter = RateLimiter(
        db=db,
        limits=settings.get_rate_limits(),
        enabled=settings.RATE_LIMIT_ENABLED
    )
    _trust_proxy_headers = settings.TRUST_PROXY_HEADERS


def init_all_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """
    Initialize all services at application startup.

    Args:
        db: Main MongoDB database connection
        settings: Application settings
    """
    init_auth_services(db, settings)
    init_journal_services(db)
    init_account_services(settings)
    init_rate_limiter(db, settings)


# ─────────────────────────────────────────────────────────────────
# Auth getters
# ─────────────────────────────────────────────────────────────────

def get_jwt_auth() -> JWTAuth:
    """Get JWT auth provider."""
    if _jwt_auth is None:
        raise RuntimeError("Auth services not initialized.")
    return _jwt_auth


def get_credential_store() -> CredentialStore:
    """Get credential store instance."""
    if _credential_store is None:
        raise RuntimeError("Auth services not initialized.")
    return _credential_store


def get_token_service() -> TokenService:
    """Get token service instance."""
    if _token_service is None:
        raise RuntimeError("Auth services not initialized.")
    return _token_service


def get_mfa_service() -> MFAService:
    """Get MFA service instance."""
    if _mfa_service is None:
        raise RuntimeError("Auth services not initialized.")
    return _mfa_service


def get_auth_middleware() -> AuthMiddleware:
    """Get auth middleware instance."""
    if _auth_middleware is None:
        raise RuntimeError("Auth services not initialized.")
    return _auth_middleware


async def require_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> dict:
    """Dependency that requires authentication."""
    return await auth_middleware.require_auth(request)


async def optional_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> Optional[dict]:
    """Dependency that optionally authenticates."""
    return await auth_middleware.optional_auth(request)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Forwarding headers are only read when TRUST_PROXY_HEADERS is set;
    otherwise the socket peer address is used.
    """
    if _trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip
    if request.client:
        return request.client.host
    return "0.0.0.0"


def get_user_agent(request: Request) -> str:
    """Extract User-Agent from request."""
    return request.headers.get("User-Agent", "")


# ─────────────────────────────────────────────────────────────────
# Journal getters
# ─────────────────────────────────────────────────────────────────

def get_entry_ledger() -> EntryLedger:
    """Get entry ledger instance."""
    if _entry_ledger is None:
        raise RuntimeError("Journal services not initialized.")
    return _entry_ledger


def get_journal_analytics() -> JournalAnalytics:
    """Get journal analytics instance."""
    if _journal_analytics is None:
        raise RuntimeError("Journal services not initialized.")
    return _journal_analytics


# ─────────────────────────────────────────────────────────────────
# Account getters
# ─────────────────────────────────────────────────────────────────

def get_account_service() -> AccountService:
    """Get account service instance."""
    if _account_service is None:
        raise RuntimeError("Account services not initialized.")
    return _account_service


# ─────────────────────────────────────────────────────────────────
# Rate limiting
# ─────────────────────────────────────────────────────────────────

def get_rate_limiter() -> RateLimiter:
    """Get rate limiter instance."""
    if _rate_limiter is None:
        raise RuntimeError("Rate limiter not initialized.")
    return _rate_limiter


def rate_limit(bucket: str, per_user: bool = False):
    """
    Build a dependency that counts the request against a rate limit bucket.

    Requests are keyed by client IP. With per_user=True the route is
    authenticated first and keyed by the caller's user id instead.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit("login"))])
        @router.put("/password", dependencies=[Depends(rate_limit("sensitive", per_user=True))])
    """
    if per_user:
        async def _check_user_rate_limit(
            user: Annotated[dict, Depends(require_auth)],
            limiter: Annotated[RateLimiter, Depends(get_rate_limiter)]
        ) -> None:
            await limiter.hit(bucket, str(user["_id"]))

        return _check_user_rate_limit

    async def _check_rate_limit(
        request: Request,
        limiter: Annotated[RateLimiter, Depends(get_rate_limiter)]
    ) -> None:
        await limiter.hit(bucket, get_client_ip(request))

    return _check_rate_limit
