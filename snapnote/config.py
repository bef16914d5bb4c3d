"""
SnapNote application settings.

Extends the base settings with SnapNote-specific configuration.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """SnapNote-specific settings."""

    # ==========================================================================
    # Account Lockout
    # ==========================================================================
    # Failed logins before the account is locked
    LOCKOUT_MAX_ATTEMPTS: int = 5

    # How long a lock lasts
    LOCKOUT_DURATION_HOURS: int = 2

    # ==========================================================================
    # Multi-factor Authentication
    # ==========================================================================
    MFA_ISSUER: str = "SnapNote"

    # Accepted TOTP steps on either side of the current one (clock drift)
    MFA_VALID_WINDOW: int = 2

    MFA_BACKUP_CODE_COUNT: int = 10

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    RATE_LIMIT_ENABLED: bool = True

    # Honor X-Forwarded-For / X-Real-IP. Enable only behind a proxy that
    # overwrites them, otherwise clients pick their own rate limit key.
    TRUST_PROXY_HEADERS: bool = False

    # General API traffic per client
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_REQUESTS: int = 100

    # Login attempts per client
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    LOGIN_RATE_LIMIT_MAX_REQUESTS: int = 10

    # Password change, MFA disable, account deletion
    SENSITIVE_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    SENSITIVE_RATE_LIMIT_MAX_REQUESTS: int = 3

    # Journal entry creation per client
    ENTRY_RATE_LIMIT_WINDOW_SECONDS: int = 24 * 60 * 60
    ENTRY_RATE_LIMIT_MAX_REQUESTS: int = 10

    # ==========================================================================
    # Account Deletion
    # ==========================================================================
    DELETE_CONFIRMATION_PHRASE: str = "DELETE MY ACCOUNT"

    def get_rate_limits(self) -> dict:
        """Bucket name -> {"window": seconds, "limit": max requests}."""
        return {
            "api": {
                "window": self.RATE_LIMIT_WINDOW_SECONDS,
                "limit": self.RATE_LIMIT_MAX_REQUESTS,
            },
            "login": {
                "window": self.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
                "limit": self.LOGIN_RATE_LIMIT_MAX_REQUESTS,
            },
            "sensitive": {
                "window": self.SENSITIVE_RATE_LIMIT_WINDOW_SECONDS,
                "limit": self.SENSITIVE_RATE_LIMIT_MAX_REQUESTS,
            },
            "entry_create": {
                "window": self.ENTRY_RATE_LIMIT_WINDOW_SECONDS,
                "limit": self.ENTRY_RATE_LIMIT_MAX_REQUESTS,
            },
        }


# Global settings instance
settings = Settings()
