"""Centralized JSON (RFC 7807) error handling for the HTTP boundary."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from tokenauth.core.logger import ensure_request_id
from tokenauth.services._shared.errors import ErrorKind, ServiceError

log = logging.getLogger(__name__)

# Domain error kind -> (HTTP status, public message). Messages never reveal
# which authentication check failed.
KIND_TO_STATUS: dict[ErrorKind, tuple[HTTPStatus, str | None]] = {
    ErrorKind.INVALID_TOKEN: (HTTPStatus.UNAUTHORIZED, "Invalid token"),
    ErrorKind.UNAUTHORIZED: (HTTPStatus.UNAUTHORIZED, "Unauthorized"),
    ErrorKind.NOT_FOUND: (HTTPStatus.NOT_FOUND, None),
    ErrorKind.CONFLICT: (HTTPStatus.CONFLICT, None),
    ErrorKind.VALIDATION: (HTTPStatus.UNPROCESSABLE_ENTITY, None),
    ErrorKind.INVALID_STATE: (HTTPStatus.CONFLICT, None),
    ErrorKind.ALREADY_PROCESSED: (HTTPStatus.CONFLICT, None),
    ErrorKind.CONFIGURATION: (HTTPStatus.INTERNAL_SERVER_ERROR, "Server misconfigured"),
    ErrorKind.TRANSACTION_CANCELLED: (HTTPStatus.CONFLICT, None),
    ErrorKind.SERVICE: (HTTPStatus.BAD_REQUEST, None),
}


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "unprocessable_entity",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any], status: int) -> tuple[Response, int]:
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp, status


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Optional structured payload included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class Unauthorized(APIError):
    """401 when the request carries no usable credentials."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code="unauthorized")


def problem_for_service_error(err: ServiceError) -> tuple[dict[str, Any], int]:
    """
    Translate a domain error into a problem payload and status code.

    :param err: Raised service error.
    :returns: ``(problem, status)``.
    """
    status, public_message = KIND_TO_STATUS.get(err.kind, (HTTPStatus.BAD_REQUEST, None))
    problem = _as_problem(
        status=int(status),
        code=err.kind.value,
        message=public_message or str(err) or status.phrase,
    )
    return problem, int(status)


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Infrastructure outages (database, Redis) answer 503 and never 401.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level("APIError: code=%s status=%s msg=%s", err.code, err.status_code, err.message)
        return _problem_response(problem, err.status_code)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        problem, status = problem_for_service_error(err)
        extra = {"reason": getattr(getattr(err, "reason", None), "value", None)}
        if status >= 500:
            log.error("ServiceError: kind=%s", err.kind.value, extra=extra, exc_info=True)
        else:
            log.warning("ServiceError: kind=%s", err.kind.value, extra=extra)
        return _problem_response(problem, status)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level("HTTPException: code=%s status=%s", error_code, status)
        return _problem_response(problem, status)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        problem = _as_problem(
            status=HTTPStatus.CONFLICT, code="conflict", message="Resource conflict"
        )
        log.error("IntegrityError", exc_info=True)
        return _problem_response(problem, HTTPStatus.CONFLICT)

    @app.errorhandler(OperationalError)
    @app.errorhandler(RedisError)
    def handle_unavailable(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error("%s", type(err).__name__, exc_info=True)
        return _problem_response(problem, HTTPStatus.SERVICE_UNAVAILABLE)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Unhandled exception", exc_info=True)
        return _problem_response(problem, HTTPStatus.INTERNAL_SERVER_ERROR)
