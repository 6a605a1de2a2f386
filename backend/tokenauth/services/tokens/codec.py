# tokenauth/services/tokens/codec.py
from __future__ import annotations

import logging
from typing import Any, Protocol
from uuid import uuid4

from tokenauth.core.clock import Clock, to_unix_seconds, utcnow
from tokenauth.services._shared.errors import InvalidTokenError
from tokenauth.services._shared.ports.token_signer import TokenSignatureError, TokenSigner
from tokenauth.services.tokens.dto import AuthToken, TokenSettings, TokenType

log = logging.getLogger(__name__)


class HasId(Protocol):
    id: str


class TokenCodec:
    """
    Issue and verify typed, signed, time-boxed tokens.

    Every token type has its own secret and lifetime (:class:`TokenSettings`),
    so a token minted for one purpose never verifies under another's key.
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        settings: TokenSettings,
        clock: Clock = utcnow,
    ) -> None:
        """
        :param signer: JWT adapter (sign / unverified decode / verify).
        :param settings: Closed per-type secret/TTL table.
        :param clock: Source of "now"; injectable for tests.
        """
        self.signer = signer
        self.settings = settings
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, user: HasId, token_type: TokenType) -> str:
        """
        Mint a fresh token for ``user``.

        Each call produces a new ``jti``; issuance is not idempotent.

        :raises ConfigurationError: If ``token_type`` has no settings entry.
        """
        entry = self.settings.for_type(token_type)
        claims: dict[str, Any] = {
            "sub": str(user.id),
            "iat": to_unix_seconds(self.clock()),
            "jti": uuid4().hex,
            "type": token_type.value,
        }
        token = self.signer.sign(claims, entry.secret, entry.ttl)
        log.debug(
            "token.issued",
            extra={"user_id": claims["sub"], "token_type": token_type.value},
        )
        return token

    # ------------------------------------------------------------------ #
    # Verify (two phases)
    # ------------------------------------------------------------------ #

    def verify(self, token: str) -> AuthToken:
        """
        Authenticate ``token`` and return its claims.

        Phase 1 reads the *unverified* ``type`` claim only to pick the secret.
        Nothing from phase 1 is returned or used for authorization: a forged
        ``type`` simply selects a key the signature will not match in phase 2.

        :raises InvalidTokenError: If the token is undecodable, has no known
            ``type``, carries a bad signature, is expired or malformed.
        """
        token_type = self._route(token)
        secret = self.settings.secret_for(token_type)
        try:
            claims = self.signer.verify(token, secret)
        except TokenSignatureError as exc:
            raise InvalidTokenError() from exc
        return self._to_auth_token(claims, expected=token_type)

    def verify_as(self, token: str, token_type: TokenType) -> AuthToken:
        """Verify ``token`` and require it to be of ``token_type``."""
        auth_token = self.verify(token)
        if auth_token.type is not token_type:
            raise InvalidTokenError()
        return auth_token

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _route(self, token: str) -> TokenType:
        """Phase 1: untrusted read of the ``type`` claim for key routing."""
        untrusted = self.signer.decode_unverified(token) if isinstance(token, str) else None
        token_type = TokenType.parse(untrusted.get("type")) if untrusted else None
        if token_type is None:
            raise InvalidTokenError()
        return token_type

    @staticmethod
    def _to_auth_token(claims: dict[str, Any], *, expected: TokenType) -> AuthToken:
        if TokenType.parse(claims.get("type")) is not expected:
            raise InvalidTokenError()
        try:
            return AuthToken(
                sub=str(claims["sub"]),
                iat=int(claims["iat"]),
                exp=int(claims["exp"]),
                jti=str(claims["jti"]),
                type=expected,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc
