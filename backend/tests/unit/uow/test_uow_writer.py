"""
Unit tests for SQLAlchemyUnitOfWork, using factories.
"""

from __future__ import annotations

import pytest
from tokenauth.models import User
from tokenauth.services._shared.errors import ConflictError, TransactionCancelledError
from tokenauth.uow import Commit, Rollback, SQLAlchemyUnitOfWork

from tests.factories.user import UserFactory, hash_password


def _count(session) -> int:
    return session.query(User).count()


class TestSQLAlchemyUnitOfWorkContext:
    def test_commits_on_success(self, session):
        """
        GIVEN a UoW
        WHEN a user is added inside the context and the block exits cleanly
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = _count(session)

        with SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())

        assert _count(session) == initial + 1
        assert uow.outcome == Commit()

    def test_rolls_back_on_exception(self, session):
        initial = _count(session)

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            raise RuntimeError("boom")

        assert _count(session) == initial
        assert uow.outcome == Rollback(reason="RuntimeError")


class TestSQLAlchemyUnitOfWorkExecute:
    def test_returns_result_after_commit(self, session):
        uow = SQLAlchemyUnitOfWork()

        user_id = uow.execute(lambda u: u.users.add(UserFactory.build()).id)

        assert session.get(User, user_id) is not None
        assert uow.outcome == Commit()

    def test_error_rolls_back_and_propagates(self, session):
        uow = SQLAlchemyUnitOfWork()

        def work(u):
            u.users.add(UserFactory.build(email="gone@example.com"))
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            uow.execute(work)

        assert not uow.users.exists_by_email("gone@example.com")
        assert isinstance(uow.outcome, Rollback)
        assert uow.outcome.cancelled is False

    def test_cancel_rolls_back_and_rejects(self, session):
        """
        GIVEN a work function that writes and then cancels
        WHEN it runs through execute()
        THEN nothing is persisted and the caller gets TransactionCancelledError.
        """
        uow = SQLAlchemyUnitOfWork()

        def work(u):
            u.users.add(UserFactory.build(email="cancelled@example.com"))
            u.cancel("changed my mind")

        with pytest.raises(TransactionCancelledError) as excinfo:
            uow.execute(work)

        assert excinfo.value.reason == "changed my mind"
        assert uow.outcome == Rollback(reason="changed my mind", cancelled=True)
        assert not uow.users.exists_by_email("cancelled@example.com")

    def test_duplicate_email_surfaces_as_conflict(self, session):
        UserFactory(email="taken@example.com")
        uow = SQLAlchemyUnitOfWork()

        with pytest.raises(ConflictError):
            uow.execute(
                lambda u: u.users.create(
                    User(email="taken@example.com", password_hash=hash_password("pw"))
                )
            )

        assert isinstance(uow.outcome, Rollback)

    def test_repositories_share_the_uow_session(self, session):
        uow = SQLAlchemyUnitOfWork()
        assert uow.users.session is uow.session
