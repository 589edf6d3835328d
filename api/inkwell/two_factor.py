"""One-time code verification for admin two-factor logins."""

from __future__ import annotations

from typing import Protocol

import pyotp

from .settings import TWO_FACTOR_ISSUER


class OneTimeCodeVerifier(Protocol):
    def new_secret(self) -> str: ...

    def provisioning_uri(self, secret: str, label: str) -> str: ...

    def verify(self, secret: str, code: str, tolerance: int = 1) -> bool: ...


class TOTPVerifier:
    """Time-based one-time codes (RFC 6238) backed by pyotp."""

    def __init__(self, issuer: str = TWO_FACTOR_ISSUER) -> None:
        self.issuer = issuer

    def new_secret(self) -> str:
        return pyotp.random_base32()

    def provisioning_uri(self, secret: str, label: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=label, issuer_name=self.issuer)

    def verify(self, secret: str, code: str, tolerance: int = 1) -> bool:
        """Accept codes from the current step and ``tolerance`` steps either side."""
        if not secret or not code:
            return False
        return pyotp.TOTP(secret).verify(code.strip(), valid_window=tolerance)
