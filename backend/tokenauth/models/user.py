"""User account model holding authentication-relevant state."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from tokenauth.core.clock import utcnow
from tokenauth.core.extensions import db
from tokenauth.infra.security.werkzeug_password_hasher import is_password_hash
from tokenauth.services._shared.errors import ValidationError

from .base import ReprMixin, TimestampMixin, UUIDPKMixin, new_id


class User(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    password_hash : str
        Already-hashed password. Raw passwords are refused with
        :class:`ValidationError`, both at construction and on update.
    active : bool
        Administrative switch; inactive users cannot authenticate.
    email_confirmed : bool
        Set once the email-confirmation token has been redeemed.
    first_name, last_name : str | None
        Optional display names.
    invited_by_id : str | None
        Opaque id of the inviting user, if any.
    last_credential_invalidation : datetime | None
        Every token issued before this instant (second precision) is rejected.
    """

    __tablename__ = "users"

    # Columns
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invited_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    last_credential_invalidation: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Constraints & indexes
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    def __init__(self, **kwargs: Any) -> None:
        if not kwargs.get("password_hash"):
            raise ValidationError("Password must be hashed before creating a User.")
        now = utcnow()
        kwargs.setdefault("id", new_id())
        kwargs.setdefault("active", True)
        kwargs.setdefault("email_confirmed", False)
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    # -------------------- Derived rules --------------------
    def can_authenticate(self) -> bool:
        """Return ``True`` only for active users with a confirmed email."""
        return bool(self.active and self.email_confirmed)

    # -------------------- Mutators --------------------
    def _touch(self) -> datetime:
        now = utcnow()
        self.updated_at = now
        return now

    def activate(self) -> None:
        self.active = True
        self._touch()

    def deactivate(self) -> None:
        self.active = False
        self._touch()

    def confirm_email(self) -> None:
        self.email_confirmed = True
        self._touch()

    def update_first_name(self, first_name: str | None) -> None:
        if not first_name:
            return
        self.first_name = first_name
        self._touch()

    def update_last_name(self, last_name: str | None) -> None:
        if not last_name:
            return
        self.last_name = last_name
        self._touch()

    def update_password(self, password_hash: str | None) -> None:
        """
        Replace the stored hash and invalidate every previously issued token.

        :param password_hash: New, already-hashed password. Empty values are ignored.
        :type password_hash: str | None
        :raises ValidationError: If the value is not a password hash.
        """
        if not password_hash:
            return
        self.password_hash = password_hash  # validated below
        self.last_credential_invalidation = self._touch()

    def invalidate_credential(self) -> None:
        """Reject every token issued before now without changing the password."""
        self.last_credential_invalidation = self._touch()

    # -------------------- Validators --------------------
    @validates("password_hash")
    def _validate_password_hash(self, key: str, value: str) -> str:
        """
        Refuse anything that is not a password hash.

        :param key: Field name (``password_hash``).
        :type key: str
        :param value: Candidate hash.
        :type value: str
        :returns: The unchanged hash.
        :rtype: str
        :raises ValidationError: If ``value`` does not match the hash format.
        """
        if not is_password_hash(value):
            raise ValidationError("Password must be hashed before it is stored on a User.")
        return value

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValidationError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValidationError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at the boundary.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValidationError("Email format looks invalid.")
        return v
