"""
Token generation - Opaque, URL-safe random tokens.

Tokens are URL-safe base64 (``-`` and ``_`` instead of ``+`` and ``/``)
of cryptographically random bytes, with trailing ``=`` padding stripped.
"""

import base64
import secrets
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenGenerator:
    """Produces opaque tokens from ``num_bytes`` of entropy (minimum 8)."""

    num_bytes: int = 8

    def __post_init__(self) -> None:
        if self.num_bytes < 8:
            raise ValueError("num_bytes must be at least 8")

    def generate(self) -> str:
        raw = base64.urlsafe_b64encode(secrets.token_bytes(self.num_bytes)).decode("ascii")
        return raw.rstrip("=")
