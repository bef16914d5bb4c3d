"""
Token and backup-code hashing utilities.

Refresh tokens and MFA backup codes are only ever stored as SHA-256 digests.
"""

import hashlib
import secrets


class TokenHasher:
    """
    Handles secret generation and hashing.
    """

    @staticmethod
    def hash_token(token: str) -> str:
        """
        Create SHA-256 hash of a token.
        Used for secure storage (never store plain tokens).

        Args:
            token: Plain token string

        Returns:
            Hex-encoded SHA-256 hash
        """
        return hashlib.sha256(token.encode()).hexdigest()

    @staticmethod
    def generate_backup_code() -> str:
        """Generate an 8-character uppercase hex backup code."""
        return secrets.token_hex(4).upper()

    @staticmethod
    def hash_backup_code(code: str) -> str:
        """
        Hash a backup code after normalizing case and whitespace,
        so "ab12 cd34" and "AB12CD34" match.
        """
        normalized = "".join(code.split()).upper()
        return TokenHasher.hash_token(normalized)
