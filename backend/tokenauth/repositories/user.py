"""User repository for persistence of authentication identities."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from tokenauth.models.user import User
from tokenauth.repositories.base import BaseRepository
from tokenauth.services._shared.errors import ConflictError, EntityNotFoundError, violates


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles tokens, hashing or revocation; only DB-level user
    management. Storage-level uniqueness is surfaced as domain errors.
    """

    model = User

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Writes ----------------------------

    def create(self, user: User) -> User:
        """Insert a new user and flush.

        The insert runs inside a SAVEPOINT so a duplicate-email failure leaves
        the enclosing transaction usable.

        :param user: Fully constructed user.
        :type user: User
        :returns: The persisted user.
        :rtype: User
        :raises ConflictError: If the email is already taken (unique constraint).
        """
        try:
            with self.session.begin_nested():
                self.session.add(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email"):
                raise ConflictError("User", "email already in use") from exc
            raise
        return user

    def save(self, user: User) -> User:
        """Flush pending changes of an already-tracked (or detached) user.

        :param user: User whose state was mutated through its domain methods.
        :type user: User
        :returns: The session-bound instance.
        :rtype: User
        """
        if user not in self.session:
            user = self.session.merge(user)
        self.flush()
        return user

    def delete_by_id(self, user_id: str) -> None:
        """Delete a user by id.

        :param user_id: Identifier of the user.
        :type user_id: str
        :raises EntityNotFoundError: If the user does not exist.
        """
        user = self.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        self.delete(user)
