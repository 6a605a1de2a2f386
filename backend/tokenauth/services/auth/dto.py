# tokenauth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tokenauth.models.user import User

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignUpIn:
    """
    Input DTO for sign-up.

    :param email: User email (normalized by the model).
    :type email: str
    :param password: Raw password (hashed by the service).
    :type password: str
    :param first_name: Optional given name.
    :type first_name: str | None
    :param last_name: Optional family name.
    :type last_name: str | None
    :param invited_by_id: Optional id of the inviting user.
    :type invited_by_id: str | None
    """

    email: str
    password: str
    first_name: str | None = None
    last_name: str | None = None
    invited_by_id: str | None = None


@dataclass(frozen=True, slots=True)
class SignInIn:
    """
    Input DTO for sign-in.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class SignOutIn:
    """
    Input DTO for sign-out. Both tokens are revoked individually.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for access-token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class UpdatePasswordIn:
    """
    Input DTO for a password change by an authenticated user.

    :param user_id: Authenticated user id.
    :type user_id: str
    :param current_password: Raw current password.
    :type current_password: str
    :param new_password: Raw new password.
    :type new_password: str
    :param invalidate_sessions: Also revoke every token through the cache.
    :type invalidate_sessions: bool
    """

    user_id: str
    current_password: str
    new_password: str
    invalidate_sessions: bool = True


@dataclass(frozen=True, slots=True)
class ConfirmEmailIn:
    token: str


@dataclass(frozen=True, slots=True)
class ResendConfirmationIn:
    email: str


@dataclass(frozen=True, slots=True)
class ForgotPasswordIn:
    email: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    """
    Input DTO for redeeming a password-recovery token.

    :param token: Encoded password-recovery JWT.
    :type token: str
    :param new_password: Raw new password.
    :type new_password: str
    """

    token: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public projection of a user (never exposes the password hash).

    :param id: User id.
    :param email: Normalized email.
    :param active: Administrative switch.
    :param email_confirmed: Whether the email was confirmed.
    :param first_name: Optional given name.
    :param last_name: Optional family name.
    :param created_at: Creation instant.
    """

    id: str
    email: str
    active: bool
    email_confirmed: bool
    first_name: str | None
    last_name: str | None
    created_at: datetime | None

    @classmethod
    def from_model(cls, user: User) -> UserPublicOut:
        return cls(
            id=user.id,
            email=user.email,
            active=user.active,
            email_confirmed=user.email_confirmed,
            first_name=user.first_name,
            last_name=user.last_name,
            created_at=user.created_at,
        )


@dataclass(frozen=True, slots=True)
class SignUpOut:
    """
    Output DTO for sign-up. Delivering the token is the caller's concern.

    :param user: The created user.
    :type user: UserPublicOut
    :param email_confirmation_token: Token to embed in the confirmation link.
    :type email_confirmation_token: str
    """

    user: UserPublicOut
    email_confirmation_token: str


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    access_token: str


@dataclass(frozen=True, slots=True)
class EmailTokenOut:
    """
    Output DTO for flows that mail a one-shot token.

    :param email: Recipient (normalized).
    :type email: str
    :param token: Token to deliver, or ``None`` when nothing must be sent.
    :type token: str | None
    """

    email: str
    token: str | None = None
