"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tokenauth.core.extensions import db
from tokenauth.repositories import UserRepository
from tokenauth.services._shared.errors import TransactionCancelledError
from tokenauth.uow.base import Commit, Rollback, UnitOfWork

log = logging.getLogger(__name__)


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared across all repositories for a consistent
    transaction. Atomicity and isolation are those of the database; no extra
    locking is added here.
    """

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the Unit of Work with a shared SQLAlchemy session.

        :param session: Explicit session; defaults to the Flask-scoped one.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        super().__init__(session=session if session is not None else db.session)
        self.outcome = None

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        self.outcome = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception as commit_exc:
                self.rollback()
                self.outcome = Rollback(reason=type(commit_exc).__name__)
                raise
            self.outcome = Commit()
            return

        self.rollback()
        if isinstance(exc, TransactionCancelledError):
            self.outcome = Rollback(reason=exc.reason, cancelled=True)
            log.info("uow.cancelled", extra={"reason": exc.reason})
        else:
            self.outcome = Rollback(reason=exc_type.__name__)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
