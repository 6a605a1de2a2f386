# tokenauth/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from tokenauth.core.clock import to_unix_millis, utcnow
from tokenauth.services._shared.errors import ConfigurationError

# ------------------------------ Token types -------------------------------- #


class TokenType(str, Enum):
    """Closed set of token kinds; the value is the wire ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"
    EMAIL_CONFIRMATION = "email-confirmation"
    PASSWORD_RECOVERY = "password-recovery"

    @classmethod
    def parse(cls, raw: object) -> TokenType | None:
        """Return the member for ``raw`` or ``None`` when it is not a known type."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


# ------------------------------ Token value -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthToken:
    """
    Verified token claims (ephemeral, never persisted).

    :param sub: Subject (user id).
    :type sub: str
    :param iat: Issued-at, Unix seconds.
    :type iat: int
    :param exp: Expires-at, Unix seconds.
    :type exp: int
    :param jti: Unique identifier of this issuance.
    :type jti: str
    :param type: Token kind.
    :type type: TokenType
    """

    sub: str
    iat: int
    exp: int
    jti: str
    type: TokenType

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once the current time (ms) is past ``exp``."""
        return to_unix_millis(now or utcnow()) > self.exp * 1000

    def is_valid_for_authentication(self) -> bool:
        return self.type is TokenType.ACCESS

    def is_valid_for_refresh(self) -> bool:
        return self.type is TokenType.REFRESH


# ------------------------------ Settings ----------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenTypeSettings:
    """
    Signing secret and lifetime for one token type.

    :param secret: HMAC signing secret.
    :type secret: str
    :param ttl: Lifetime in seconds.
    :type ttl: int
    """

    secret: str
    ttl: int


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Per-type token configuration, one entry for every :class:`TokenType`.

    Adding a token type means adding a field here and a row in :meth:`_table`.
    """

    access: TokenTypeSettings
    refresh: TokenTypeSettings
    email_confirmation: TokenTypeSettings
    password_recovery: TokenTypeSettings

    def __post_init__(self) -> None:
        for token_type, entry in self._table().items():
            if not entry.secret:
                raise ConfigurationError(f"Missing signing secret for {token_type.value} tokens")
            if entry.ttl <= 0:
                raise ConfigurationError(f"TTL for {token_type.value} tokens must be positive")

    def _table(self) -> dict[TokenType, TokenTypeSettings]:
        return {
            TokenType.ACCESS: self.access,
            TokenType.REFRESH: self.refresh,
            TokenType.EMAIL_CONFIRMATION: self.email_confirmation,
            TokenType.PASSWORD_RECOVERY: self.password_recovery,
        }

    def for_type(self, token_type: TokenType) -> TokenTypeSettings:
        """
        Return the settings for ``token_type``.

        :raises ConfigurationError: If the type has no entry.
        """
        entry = self._table().get(token_type)
        if entry is None:
            raise ConfigurationError(f"Unknown token type: {token_type!r}")
        return entry

    def secret_for(self, token_type: TokenType) -> str:
        return self.for_type(token_type).secret

    def ttl_for(self, token_type: TokenType) -> int:
        return self.for_type(token_type).ttl

    @property
    def longest_ttl(self) -> int:
        """Largest configured lifetime (used for all-types revocation cutoffs)."""
        return max(entry.ttl for entry in self._table().values())
