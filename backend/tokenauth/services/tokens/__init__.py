"""Token issuance, verification and revocation."""

from __future__ import annotations

from .codec import TokenCodec
from .dto import AuthToken, TokenSettings, TokenType, TokenTypeSettings
from .revocation import RevocationStore

__all__ = [
    "AuthToken",
    "RevocationStore",
    "TokenCodec",
    "TokenSettings",
    "TokenType",
    "TokenTypeSettings",
]
