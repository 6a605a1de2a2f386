"""Factory Boy base wired to the transactional test session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Hold the scoped session handed over by the ``session`` fixture."""

    _session = None

    @classmethod
    def set(cls, session):
        cls._session = session

    @classmethod
    def get(cls):
        """Return the registered session.

        Raises
        ------
        RuntimeError
            If a factory runs in a test that does not request ``session``.
        """
        if cls._session is None:
            raise RuntimeError("No factory session registered; request the 'session' fixture")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Persist built objects with a flush so tests decide when to commit."""

    class Meta:
        abstract = True
        # Resolved lazily so each test gets its own savepoint-bound session
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
