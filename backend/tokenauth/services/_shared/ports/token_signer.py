from __future__ import annotations

from typing import Any, Protocol


class TokenSignatureError(Exception):
    """Raised by a :class:`TokenSigner` when a token fails authenticated decoding."""


class TokenSigner(Protocol):
    """Port for signing and decoding compact tokens (JWT)."""

    def sign(self, claims: dict[str, Any], secret: str, ttl: int) -> str:
        """
        Sign ``claims`` with ``secret``.

        ``exp`` is set to ``claims["iat"] + ttl`` when absent.
        """

    def decode_unverified(self, token: str) -> dict[str, Any] | None:
        """
        Read claims **without** checking the signature.

        Returns ``None`` when the token cannot be parsed. The result is
        untrusted and MUST NOT be used for any authorization decision.
        """

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """
        Verify signature and expiry, returning the authenticated claims.

        :raises TokenSignatureError: On bad signature, expiry or malformed input.
        """
