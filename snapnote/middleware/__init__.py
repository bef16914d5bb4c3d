"""Request authentication middleware."""

from snapnote.middleware.auth import AuthMiddleware

__all__ = ["AuthMiddleware"]
