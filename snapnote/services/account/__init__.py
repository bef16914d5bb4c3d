"""Account lifecycle service."""

from snapnote.services.account.account_service import AccountService

__all__ = ["AccountService"]
