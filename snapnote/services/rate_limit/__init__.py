"""Rate limiting service."""

from snapnote.services.rate_limit.rate_limiter import RateLimiter

__all__ = ["RateLimiter"]
