# tokenauth/services/auth/validator.py
from __future__ import annotations

import logging
from typing import NoReturn

from tokenauth.core.clock import to_unix_seconds
from tokenauth.models.user import User
from tokenauth.repositories.user import UserRepository
from tokenauth.services._shared.errors import (
    InvalidCredentialsError,
    RejectionReason,
    UnauthorizedError,
)
from tokenauth.services.tokens.dto import AuthToken
from tokenauth.services.tokens.revocation import RevocationStore

log = logging.getLogger(__name__)


def account_rejection(user: User) -> RejectionReason | None:
    """Return why ``user`` may not authenticate, or ``None`` when it may."""
    if not user.active:
        return RejectionReason.INACTIVE
    if not user.email_confirmed:
        return RejectionReason.EMAIL_NOT_CONFIRMED
    return None


class AuthValidator:
    """
    Decide whether a verified token still authorizes its subject.

    Checks run cheapest and most decisive first and stop at the first failure:

    1. token type (no I/O),
    2. user lookup,
    3. account state,
    4. database credential-invalidation timestamp,
    5. cache-backed revocation records.

    Step 4 rejects tokens issued before a password change even when the cache
    lost its records. Nothing is memoized between calls.
    """

    def __init__(
        self,
        *,
        revocation_store: RevocationStore,
        users: UserRepository | None = None,
    ) -> None:
        """
        :param revocation_store: Cache-backed revocation registry.
        :param users: User lookup; defaults to a repository on the scoped session.
        """
        self.revocation_store = revocation_store
        self.users = users if users is not None else UserRepository()

    def validate(self, token: AuthToken) -> User:
        """
        Return the token's user or raise.

        :param token: Claims already authenticated by :class:`TokenCodec`.
        :returns: The loaded user.
        :raises UnauthorizedError: With the applicable :class:`RejectionReason`.
        :raises redis.RedisError: If the revocation cache is unreachable.
        """
        if not token.is_valid_for_authentication():
            self._reject(token, RejectionReason.WRONG_TOKEN_TYPE)

        user = self.users.get(token.sub)
        if user is None:
            self._reject(token, RejectionReason.INVALID_CREDENTIALS)

        reason = account_rejection(user)
        if reason is not None:
            self._reject(token, reason)

        invalidated_at = user.last_credential_invalidation
        if invalidated_at is not None and to_unix_seconds(invalidated_at) > token.iat:
            self._reject(token, RejectionReason.CREDENTIALS_INVALIDATED)

        if not self.revocation_store.is_valid(token):
            self._reject(token, RejectionReason.TOKEN_REVOKED)

        return user

    @staticmethod
    def _reject(token: AuthToken, reason: RejectionReason) -> NoReturn:
        log.info(
            "auth.rejected",
            extra={
                "user_id": token.sub,
                "token_type": token.type.value,
                "jti": token.jti,
                "reason": reason.value,
            },
        )
        if reason is RejectionReason.INVALID_CREDENTIALS:
            raise InvalidCredentialsError()
        raise UnauthorizedError(reason)
