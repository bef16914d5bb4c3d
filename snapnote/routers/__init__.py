"""
SnapNote API routers.
"""

from snapnote.routers.auth import router as auth_router
from snapnote.routers.journal import router as journal_router
from snapnote.routers.user import router as user_router

__all__ = [
    "auth_router",
    "journal_router",
    "user_router",
]
