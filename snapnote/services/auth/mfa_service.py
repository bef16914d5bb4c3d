"""
TOTP second factor.

Secrets, provisioning URIs and QR codes for authenticator apps, plus
one-time backup codes. Nothing here touches the database.
"""

import base64
import io
from typing import List

import pyotp
import qrcode

from snapnote.services.auth.token_hasher import TokenHasher


class MFAService:
    """
    Generates and verifies TOTP material.
    """

    def __init__(
        self,
        issuer: str = "SnapNote",
        valid_window: int = 2,
        backup_code_count: int = 10,
    ):
        """
        Initialize MFAService.

        Args:
            issuer: Issuer name shown in authenticator apps
            valid_window: Accepted 30s steps before/after the current one
            backup_code_count: Number of backup codes generated per setup
        """
        self.issuer = issuer
        self.valid_window = valid_window
        self.backup_code_count = backup_code_count

    def generate_secret(self) -> str:
        """Random base32 TOTP secret."""
        return pyotp.random_base32()

    def provisioning_uri(self, secret: str, email: str) -> str:
        """otpauth:// URI for the authenticator app."""
        return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=self.issuer)

    def qr_code_data_url(self, uri: str) -> str:
        """Render a provisioning URI as a PNG data URL."""
        image = qrcode.make(uri)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    def verify_code(self, secret: str, code: str) -> bool:
        """
        Check a 6-digit TOTP code within the configured window.

        Returns False for a missing secret or a non-numeric code.
        """
        if not secret or not code:
            return False

        normalized = "".join(str(code).split())
        if not normalized.isdigit():
            return False

        return pyotp.TOTP(secret).verify(normalized, valid_window=self.valid_window)

    def generate_backup_codes(self) -> List[str]:
        """Fresh plaintext backup codes, shown to the user exactly once."""
        return [TokenHasher.generate_backup_code() for _ in range(self.backup_code_count)]
