"""Unit of Work abstractions and concrete implementations.

This package re-exports the SQLAlchemy-backed unit of work used throughout the
application, alongside the abstract contracts and the typed transaction
outcomes (:class:`Commit` / :class:`Rollback`) that service layers depend on.
"""

from .base import Commit, Rollback, SupportsCommit, TransactionOutcome, UnitOfWork
from .sqlalchemy_uow import SQLAlchemyUnitOfWork

__all__ = [
    "Commit",
    "Rollback",
    "SupportsCommit",
    "TransactionOutcome",
    "UnitOfWork",
    "SQLAlchemyUnitOfWork",
]
