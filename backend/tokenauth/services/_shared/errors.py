"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. Each one carries a stable :class:`ErrorKind` so the boundary
(``tokenauth/core/errors.py``) can translate it without matching on messages.

Infrastructure failures (Redis, database connectivity) are deliberately *not*
wrapped here: they propagate unmodified so callers decide retry/status policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Some dialects (PostgreSQL) include the constraint name in the message,
    SQLite reports the offending ``table.column`` instead, so both are checked.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :type exc: IntegrityError
    :param constraint_name: Constraint name (e.g. ``uq_users_email``).
    :type constraint_name: str
    :returns: ``True`` if the error matches the given constraint.
    :rtype: bool
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    # uq_<table>_<column> -> "<table>.<column>" (sqlite wording)
    parts = constraint_name.lower().split("_", 2)
    if len(parts) == 3 and parts[0] == "uq":
        return f"{parts[1]}.{parts[2]}" in message
    return False


class ErrorKind(str, Enum):
    """Stable, enumerable error kinds exposed to the boundary."""

    INVALID_TOKEN = "invalid_token"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation_error"
    INVALID_STATE = "invalid_state"
    ALREADY_PROCESSED = "already_processed"
    CONFIGURATION = "configuration_error"
    TRANSACTION_CANCELLED = "transaction_cancelled"
    SERVICE = "service_error"


class RejectionReason(str, Enum):
    """Why an authentication attempt was refused (logged, never shown to clients)."""

    WRONG_TOKEN_TYPE = "wrong_token_type"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE = "inactive"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    CREDENTIALS_INVALIDATED = "credentials_invalidated"
    TOKEN_REVOKED = "token_revoked"


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, models or services.
    - ``kind`` is the contract; ``str(exc)`` is only a human-readable hint.
    """

    kind: ErrorKind = ErrorKind.SERVICE


# --------------------------------------------------------------------------- #
# Token / authentication errors
# --------------------------------------------------------------------------- #


class InvalidTokenError(ServiceError):
    """Raised for malformed, unverifiable, expired or wrong-purpose tokens."""

    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class UnauthorizedError(ServiceError):
    """
    Policy rejection of an otherwise well-formed token or credential.

    :param reason: Enumerated rejection reason (for logs and tests).
    :type reason: RejectionReason
    """

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, reason: RejectionReason, message: str = "Unauthorized") -> None:
        super().__init__(message)
        self.reason = reason


class InvalidCredentialsError(UnauthorizedError):
    """Unknown user or wrong password; both share one shape to avoid enumeration."""

    def __init__(self) -> None:
        super().__init__(RejectionReason.INVALID_CREDENTIALS, "Invalid credentials")


# --------------------------------------------------------------------------- #
# Entity / state errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class EntityNotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    kind = ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    kind = ErrorKind.CONFLICT

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class ValidationError(ServiceError, ValueError):
    """Raised when an entity rule is violated (e.g. unhashed password)."""

    kind = ErrorKind.VALIDATION


class InvalidStateError(ServiceError):
    """The entity is in a state that does not allow the requested operation."""

    kind = ErrorKind.INVALID_STATE

    def __init__(self, message: str = "Invalid state") -> None:
        super().__init__(message)


class AlreadyProcessedError(ServiceError):
    """The requested one-shot operation was already applied."""

    kind = ErrorKind.ALREADY_PROCESSED

    def __init__(self, message: str = "Already processed") -> None:
        super().__init__(message)


class ConfigurationError(ServiceError):
    """Missing or inconsistent configuration (e.g. unknown token type)."""

    kind = ErrorKind.CONFIGURATION


class TransactionCancelledError(ServiceError):
    """
    Raised by a unit of work whose work function called ``cancel()``.

    :param reason: Caller-supplied explanation for the rollback.
    :type reason: str
    """

    kind = ErrorKind.TRANSACTION_CANCELLED

    def __init__(self, reason: str) -> None:
        super().__init__(f"Transaction cancelled: {reason}")
        self.reason = reason
