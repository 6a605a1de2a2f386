# tokenauth/services/auth/service.py
from __future__ import annotations

import logging

from tokenauth.core.clock import to_unix_seconds
from tokenauth.models.user import User
from tokenauth.repositories.user import UserRepository
from tokenauth.services._shared.base import BaseService, ServiceContext
from tokenauth.services._shared.errors import (
    AlreadyProcessedError,
    ConflictError,
    EntityNotFoundError,
    InvalidCredentialsError,
    InvalidStateError,
    InvalidTokenError,
    RejectionReason,
    UnauthorizedError,
)
from tokenauth.services._shared.ports.password_hasher import PasswordHasher
from tokenauth.services.auth.dto import (
    AccessTokenOut,
    ConfirmEmailIn,
    EmailTokenOut,
    ForgotPasswordIn,
    RefreshIn,
    ResendConfirmationIn,
    ResetPasswordIn,
    SignInIn,
    SignOutIn,
    SignUpIn,
    SignUpOut,
    TokenPairOut,
    UpdatePasswordIn,
    UserPublicOut,
)
from tokenauth.services.auth.validator import AuthValidator, account_rejection
from tokenauth.services.tokens.codec import TokenCodec
from tokenauth.services.tokens.dto import AuthToken, TokenType
from tokenauth.services.tokens.revocation import RevocationStore
from tokenauth.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service.

    Orchestrates :class:`TokenCodec`, :class:`RevocationStore` and
    :class:`AuthValidator` around user persistence. Every flow that both
    revokes and issues tokens revokes first, so a freshly issued token is never
    shadowed by the revocation meant to replace its predecessors.

    Tokens destined for email (confirmation, recovery) are returned in the
    output DTOs; delivering them is the caller's job.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        revocation_store: RevocationStore,
        hasher: PasswordHasher,
        users: UserRepository | None = None,
        validator: AuthValidator | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        :param codec: Issues and verifies typed tokens.
        :param revocation_store: Cache-backed revocation registry.
        :param hasher: Password hashing capability.
        :param users: Read-side user lookup (scoped session by default).
        :param validator: Access-token validator; built from the above by default.
        :param ctx: Optional request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.codec = codec
        self.revocation_store = revocation_store
        self.hasher = hasher
        self.users = users if users is not None else UserRepository()
        self.validator = validator or AuthValidator(
            revocation_store=revocation_store, users=self.users
        )

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def sign_up(self, dto: SignUpIn) -> SignUpOut:
        """
        Create an active, unconfirmed user and an email-confirmation token.

        :raises ConflictError: If the email is already registered, including
            a concurrent insert caught by the unique constraint.
        :raises ValidationError: If email or password are unusable.
        """
        password_hash = self.hasher.hash(dto.password)

        def work(uow: SQLAlchemyUnitOfWork) -> SignUpOut:
            if uow.users.exists_by_email(dto.email):
                raise ConflictError("User", "email already in use")
            user = uow.users.create(
                User(
                    email=dto.email,
                    password_hash=password_hash,
                    first_name=dto.first_name,
                    last_name=dto.last_name,
                    invited_by_id=dto.invited_by_id,
                )
            )
            token = self._reissue(user, TokenType.EMAIL_CONFIRMATION)
            return SignUpOut(user=UserPublicOut.from_model(user), email_confirmation_token=token)

        out = self.rw_uow().execute(work)
        log.info("auth.signed_up", extra={"user_id": out.user.id})
        return out

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #

    def sign_in(self, dto: SignInIn) -> TokenPairOut:
        """
        Check credentials and issue an access/refresh pair.

        The password comparison runs at full cost even for unknown emails.

        :raises InvalidCredentialsError: Unknown email or wrong password.
        :raises InvalidStateError: Inactive or unconfirmed account.
        """
        user = self.users.get_by_email(dto.email)
        password_ok = self.hasher.verify(dto.password, user.password_hash if user else None)
        if user is None or not password_ok:
            log.info(
                "auth.sign_in_failed",
                extra={"reason": RejectionReason.INVALID_CREDENTIALS.value},
            )
            raise InvalidCredentialsError()

        reason = account_rejection(user)
        if reason is not None:
            log.info("auth.sign_in_failed", extra={"user_id": user.id, "reason": reason.value})
            raise InvalidStateError("User cannot sign in")

        pair = self._issue_pair(user)
        log.info("auth.signed_in", extra={"user_id": user.id})
        return pair

    def sign_out(self, dto: SignOutIn) -> None:
        """
        Revoke the presented access and refresh tokens individually.

        :raises InvalidTokenError: If either token fails verification, is of
            the wrong type, or the two belong to different users.
        """
        access = self.codec.verify_as(dto.access_token, TokenType.ACCESS)
        refresh = self.codec.verify_as(dto.refresh_token, TokenType.REFRESH)
        if access.sub != refresh.sub:
            raise InvalidTokenError()
        self.revocation_store.revoke_token(access)
        self.revocation_store.revoke_token(refresh)
        log.info("auth.signed_out", extra={"user_id": access.sub})

    def refresh(self, dto: RefreshIn) -> AccessTokenOut:
        """
        Exchange a refresh token for a new access token.

        :raises InvalidTokenError: If the token does not verify.
        :raises UnauthorizedError: Wrong type, revoked, invalidated by a
            password change, or the account cannot authenticate.
        :raises EntityNotFoundError: If the user no longer exists.
        """
        token = self.codec.verify(dto.refresh_token)
        if not token.is_valid_for_refresh():
            raise UnauthorizedError(RejectionReason.WRONG_TOKEN_TYPE)
        if not self.revocation_store.is_valid(token):
            raise UnauthorizedError(RejectionReason.TOKEN_REVOKED)

        user = self._require_user(token.sub)
        reason = account_rejection(user)
        if reason is not None:
            raise UnauthorizedError(reason)
        if self._invalidated_since(user, token):
            raise UnauthorizedError(RejectionReason.CREDENTIALS_INVALIDATED)

        return AccessTokenOut(access_token=self.codec.issue(user, TokenType.ACCESS))

    def authenticate(self, raw_token: str) -> User:
        """
        Resolve a presented access token into its user.

        :raises InvalidTokenError: If the token does not verify.
        :raises UnauthorizedError: If :class:`AuthValidator` rejects it.
        """
        return self.validator.validate(self.codec.verify(raw_token))

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def update_password(self, dto: UpdatePasswordIn) -> TokenPairOut:
        """
        Change the password of an authenticated user and issue a new pair.

        The stored invalidation timestamp rejects every older token on its
        own; ``invalidate_sessions`` additionally writes an all-types cutoff to
        the cache.

        :raises EntityNotFoundError: If the user does not exist.
        :raises InvalidStateError: If the account cannot authenticate.
        :raises InvalidCredentialsError: If ``current_password`` is wrong.
        """

        def work(uow: SQLAlchemyUnitOfWork) -> User:
            user = uow.users.get(dto.user_id)
            if user is None:
                raise EntityNotFoundError("User", dto.user_id)
            reason = account_rejection(user)
            if reason is not None:
                log.info(
                    "auth.password_update_refused",
                    extra={"user_id": user.id, "reason": reason.value},
                )
                raise InvalidStateError("User cannot update password")
            if not self.hasher.verify(dto.current_password, user.password_hash):
                raise InvalidCredentialsError()
            user.update_password(self.hasher.hash(dto.new_password))
            return uow.users.save(user)

        user = self.rw_uow().execute(work)
        if dto.invalidate_sessions:
            self.revocation_store.revoke_all_for_user(dto.user_id)
        log.info("auth.password_updated", extra={"user_id": dto.user_id})
        return self._issue_pair(user)

    def forgot_password(self, dto: ForgotPasswordIn) -> EmailTokenOut:
        """
        Issue a password-recovery token, replacing any outstanding one.

        Unknown emails yield an output without a token, so callers answer the
        same way whether or not the account exists.
        """
        email = dto.email.strip().lower()
        user = self.users.get_by_email(email)
        if user is None:
            log.info("auth.recovery_unknown_email")
            return EmailTokenOut(email=email)
        return EmailTokenOut(email=email, token=self._reissue(user, TokenType.PASSWORD_RECOVERY))

    def reset_password(self, dto: ResetPasswordIn) -> UserPublicOut:
        """
        Redeem a password-recovery token.

        :raises InvalidTokenError: Bad, expired, wrong-type or revoked token.
        :raises EntityNotFoundError: If the user no longer exists.
        :raises InvalidStateError: If the account cannot authenticate.
        """
        token = self._verify_one_shot(dto.token, TokenType.PASSWORD_RECOVERY)

        def work(uow: SQLAlchemyUnitOfWork) -> UserPublicOut:
            user = uow.users.get(token.sub)
            if user is None:
                raise EntityNotFoundError("User", token.sub)
            reason = account_rejection(user)
            if reason is not None:
                log.info(
                    "auth.password_reset_refused",
                    extra={"user_id": user.id, "reason": reason.value},
                )
                raise InvalidStateError("User cannot reset password")
            user.update_password(self.hasher.hash(dto.new_password))
            return UserPublicOut.from_model(uow.users.save(user))

        out = self.rw_uow().execute(work)
        self.revocation_store.revoke_token(token)
        log.info("auth.password_reset", extra={"user_id": token.sub})
        return out

    # ------------------------------------------------------------------ #
    # Email confirmation
    # ------------------------------------------------------------------ #

    def confirm_email(self, dto: ConfirmEmailIn) -> UserPublicOut:
        """
        Redeem an email-confirmation token.

        :raises InvalidTokenError: Bad, expired, wrong-type or revoked token.
        :raises EntityNotFoundError: If the user no longer exists.
        :raises AlreadyProcessedError: If the email is already confirmed.
        """
        token = self._verify_one_shot(dto.token, TokenType.EMAIL_CONFIRMATION)

        def work(uow: SQLAlchemyUnitOfWork) -> UserPublicOut:
            user = uow.users.get(token.sub)
            if user is None:
                raise EntityNotFoundError("User", token.sub)
            if user.email_confirmed:
                raise AlreadyProcessedError("Email already confirmed")
            user.confirm_email()
            return UserPublicOut.from_model(uow.users.save(user))

        out = self.rw_uow().execute(work)
        self.revocation_store.revoke_token(token)
        log.info("auth.email_confirmed", extra={"user_id": token.sub})
        return out

    def resend_email_confirmation(self, dto: ResendConfirmationIn) -> EmailTokenOut:
        """
        Replace any outstanding email-confirmation token with a new one.

        :raises EntityNotFoundError: If no user has this email.
        :raises AlreadyProcessedError: If the email is already confirmed.
        """
        email = dto.email.strip().lower()
        user = self.users.get_by_email(email)
        if user is None:
            raise EntityNotFoundError("User", email)
        if user.email_confirmed:
            raise AlreadyProcessedError("Email already confirmed")
        return EmailTokenOut(email=email, token=self._reissue(user, TokenType.EMAIL_CONFIRMATION))

    # ------------------------------------------------------------------ #
    # Account removal
    # ------------------------------------------------------------------ #

    def delete_user(self, user_id: str) -> None:
        """
        Delete a user and revoke every token it holds.

        :raises EntityNotFoundError: If the user does not exist.
        """
        self.rw_uow().execute(lambda uow: uow.users.delete_by_id(user_id))
        self.revocation_store.revoke_all_for_user(user_id)
        log.info("auth.user_deleted", extra={"user_id": user_id})

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_pair(self, user: User) -> TokenPairOut:
        return TokenPairOut(
            access_token=self.codec.issue(user, TokenType.ACCESS),
            refresh_token=self.codec.issue(user, TokenType.REFRESH),
        )

    def _reissue(self, user: User, token_type: TokenType) -> str:
        """Revoke every ``token_type`` token of ``user``, then issue a new one."""
        self.revocation_store.revoke_all_for_user(user.id, token_type)
        return self.codec.issue(user, token_type)

    def _verify_one_shot(self, raw_token: str, token_type: TokenType) -> AuthToken:
        token = self.codec.verify_as(raw_token, token_type)
        if not self.revocation_store.is_valid(token):
            raise InvalidTokenError()
        return token

    def _require_user(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    @staticmethod
    def _invalidated_since(user: User, token: AuthToken) -> bool:
        invalidated_at = user.last_credential_invalidation
        return invalidated_at is not None and to_unix_seconds(invalidated_at) > token.iat
