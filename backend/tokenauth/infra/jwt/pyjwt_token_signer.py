# tokenauth/infra/jwt/pyjwt_token_signer.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

import jwt
from jwt.exceptions import PyJWTError

from tokenauth.services._shared.ports.token_signer import TokenSignatureError, TokenSigner

REQUIRED_CLAIMS = ("sub", "iat", "exp", "jti", "type")


@dataclass(slots=True)
class PyJWTTokenSigner(TokenSigner):
    """
    HMAC JWT adapter built on PyJWT.

    :param algorithm: Signing algorithm (HS256 by default).
    :param leeway: Clock skew tolerance in seconds applied to ``exp``/``iat``.
    """

    algorithm: str = "HS256"
    leeway: int = 0

    def sign(self, claims: dict[str, Any], secret: str, ttl: int) -> str:
        payload = dict(claims)
        payload.setdefault("exp", int(payload["iat"]) + int(ttl))
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def decode_unverified(self, token: str) -> dict[str, Any] | None:
        try:
            claims = jwt.decode(
                token,
                options={"verify_signature": False},
                algorithms=[self.algorithm],
            )
        except PyJWTError:
            return None
        return claims if isinstance(claims, dict) else None

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        try:
            return cast(
                dict[str, Any],
                jwt.decode(
                    token,
                    secret,
                    algorithms=[self.algorithm],
                    leeway=self.leeway,
                    options={"require": list(REQUIRED_CLAIMS)},
                ),
            )
        except PyJWTError as exc:
            raise TokenSignatureError(str(exc)) from exc
