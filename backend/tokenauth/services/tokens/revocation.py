# tokenauth/services/tokens/revocation.py
from __future__ import annotations

import logging
from typing import Final

from tokenauth.core.clock import Clock, to_unix_seconds, utcnow
from tokenauth.services._shared.ports.cache import CacheService
from tokenauth.services.tokens.dto import AuthToken, TokenSettings, TokenType

log = logging.getLogger(__name__)

ALL_SCOPE: Final[str] = "all"
REVOKED_MARKER: Final[str] = "1"


class RevocationStore:
    """
    Cache-backed revocation registry with three independent granularities.

    - **Single token**: ``revoked:jti:{jti}`` → marker, expiring with the token.
    - **Per user and type**: ``revoked:user:{uid}:{type}`` → Unix-second cutoff.
    - **Per user, all types**: ``revoked:user:{uid}:all`` → Unix-second cutoff.

    A token is valid iff no marker exists for its ``jti`` and neither cutoff is
    strictly greater than its ``iat`` (``iat == cutoff`` stays valid).

    Records expire on their own; a cutoff never needs to outlive the tokens it
    can shadow, so its TTL is the lifetime of that token type (the longest one
    for the ``all`` scope).
    """

    def __init__(
        self,
        *,
        cache: CacheService,
        settings: TokenSettings,
        clock: Clock = utcnow,
    ) -> None:
        self.cache = cache
        self.settings = settings
        self.clock = clock

    # -------------------- keys --------------------

    @staticmethod
    def _k_token(jti: str) -> str:
        return f"revoked:jti:{jti}"

    @staticmethod
    def _k_user(user_id: str, token_type: TokenType | None = None) -> str:
        scope = token_type.value if token_type is not None else ALL_SCOPE
        return f"revoked:user:{user_id}:{scope}"

    def _ttl(self, token_type: TokenType | None) -> int:
        if token_type is None:
            return self.settings.longest_ttl
        return self.settings.ttl_for(token_type)

    # -------------------- API --------------------

    def revoke_token(self, token: AuthToken) -> None:
        """Revoke one token by ``jti``. Idempotent."""
        self.cache.set(self._k_token(token.jti), REVOKED_MARKER, self._ttl(token.type))
        log.info(
            "token.revoked",
            extra={"user_id": token.sub, "token_type": token.type.value, "jti": token.jti},
        )

    def revoke_all_for_user(self, user_id: str, token_type: TokenType | None = None) -> None:
        """
        Revoke every token of ``user_id`` issued before now.

        :param user_id: Owner of the tokens.
        :param token_type: Restrict to one type; ``None`` covers all types.
        """
        cutoff = to_unix_seconds(self.clock())
        self.cache.set(self._k_user(user_id, token_type), cutoff, self._ttl(token_type))
        log.info(
            "tokens.revoked_for_user",
            extra={"user_id": user_id, "scope": token_type.value if token_type else ALL_SCOPE},
        )

    def is_valid(self, token: AuthToken) -> bool:
        """
        Return ``False`` if any of the three revocation records applies.

        Cache errors propagate: an unreachable cache never means "valid".
        """
        marker, type_cutoff, all_cutoff = self.cache.get_many(
            [
                self._k_token(token.jti),
                self._k_user(token.sub, token.type),
                self._k_user(token.sub),
            ]
        )
        if marker is not None:
            return False
        if type_cutoff is not None and int(type_cutoff) > token.iat:
            return False
        if all_cutoff is not None and int(all_cutoff) > token.iat:
            return False
        return True
