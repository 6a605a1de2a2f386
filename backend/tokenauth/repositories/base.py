"""Session-bound repository base for SQLAlchemy 2.x.

Repositories stage and query rows; they never commit or roll back. The unit of
work owns the transaction and hands its session to every repository it
exposes. Writes flush immediately so constraint violations surface at the
call site instead of at commit time.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tokenauth.core.extensions import db

E = TypeVar("E")  # mapped entity type


class BaseRepository(Generic[E]):
    """Persistence-only repository for one mapped class.

    Subclasses set ``model``. Without an explicit session the repository
    resolves the Flask-scoped ``db.session`` on every access, so a single
    instance can be shared across requests.
    """

    #: Mapped class (set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, else the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush it.

        :param instance: New entity.
        :returns: The same instance, now carrying database defaults.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Return the entity with primary key ``entity_id``, or ``None``."""
        return cast(E | None, self.session.get(self.model, entity_id))

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        return int(self.session.execute(stmt).scalar_one())

    def delete(self, instance: E) -> None:
        """Delete ``instance`` and flush."""
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()
