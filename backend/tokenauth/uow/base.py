"""
Abstract Unit of Work contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import NoReturn, Protocol, TypeVar

from tokenauth.services._shared.errors import TransactionCancelledError

T = TypeVar("T")
U = TypeVar("U", bound="UnitOfWork")


class SupportsCommit(Protocol):
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


@dataclass(frozen=True, slots=True)
class Commit:
    """The transaction was committed."""


@dataclass(frozen=True, slots=True)
class Rollback:
    """
    The transaction was rolled back.

    :ivar reason: ``cancel()`` reason, or the type name of the raised error.
    :ivar cancelled: ``True`` when the rollback was requested via ``cancel()``.
    """

    reason: str
    cancelled: bool = False


TransactionOutcome = Commit | Rollback


class UnitOfWork(ABC):
    """
    Coordinates a transactional boundary for a use-case.

    Responsibilities:
    - Provide access to repositories bound to the same session/transaction.
    - Commit on success, rollback on error or explicit ``cancel()``.
    - Record the last transaction outcome as :class:`Commit` or :class:`Rollback`.
    """

    outcome: TransactionOutcome | None = None

    @abstractmethod
    def __enter__(self: U) -> U: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...

    def execute(self: U, work: Callable[[U], T]) -> T:
        """
        Run ``work`` inside this unit of work.

        :param work: Callable receiving the UoW (repositories + ``cancel``).
        :returns: Whatever ``work`` returns, after commit.
        :raises TransactionCancelledError: If ``work`` called :meth:`cancel`.
        :raises Exception: Any error raised by ``work``, after rollback.
        """
        with self:
            return work(self)

    def cancel(self, reason: str = "cancelled") -> NoReturn:
        """Abort the current work; the transaction is rolled back and the caller rejected."""
        raise TransactionCancelledError(reason)

    # Concrete implementations expose repository attributes such as ``users``.
