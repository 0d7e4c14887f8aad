"""
Error types and the error normalizer for the Task API.

Failures travel through the service as plain values (the variants below)
rather than as exceptions.  Exceptions raised anywhere during a request are
first classified into a variant by ``failure_from_exception``; the
``normalize_failure`` function then maps any variant onto the stable
``(status_code, body)`` contract exposed to HTTP clients.

Key Concepts Demonstrated:
- Failure variants as immutable dataclasses
- A pure mapping from failure to HTTP response, testable without Flask
- Environment-dependent diagnostics (stack traces only in development)
"""

from __future__ import annotations

import logging
import re
import traceback
from dataclasses import dataclass, field
from typing import Any

from flask import Flask, Response, current_app, jsonify
from sqlalchemy import exc as sa_exc
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
UNAVAILABLE_MESSAGE = "Service temporarily unavailable"

_UNIQUE_FIELD_PATTERNS = (
    # SQLite: UNIQUE constraint failed: tasks.title
    re.compile(r"UNIQUE constraint failed: (?:\w+\.)?(\w+)"),
    # PostgreSQL: Key (title)=(Buy milk) already exists.
    re.compile(r"Key \((\w+)\)=\(.*\) already exists"),
    # MySQL: Duplicate entry 'Buy milk' for key 'tasks.title'
    re.compile(r"Duplicate entry .* for key '(?:\w+\.)?(\w+)'"),
)


# =====================================================================
# Exceptions
# =====================================================================


class TaskApiError(Exception):
    """Base exception for all task API errors."""


class ApiError(TaskApiError):
    """Raised with an explicit HTTP status code intended for the client."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(TaskApiError):
    """Raised when required configuration is missing at startup."""


class StoreConnectionError(TaskApiError):
    """Raised when the task store cannot be reached at startup."""


# =====================================================================
# Failure variants
# =====================================================================


def _capture_stack() -> str:
    return "".join(traceback.format_stack()[:-2])


@dataclass(frozen=True)
class Failure:
    """Base failure variant. ``trace`` holds diagnostic text."""

    trace: str = field(default_factory=_capture_stack, kw_only=True, compare=False, repr=False)

    @property
    def message(self) -> str | None:
        return None


@dataclass(frozen=True)
class SchemaViolation(Failure):
    """One or more fields broke the store schema."""

    messages: list[str]

    @property
    def message(self) -> str:
        return "; ".join(self.messages)


@dataclass(frozen=True)
class MalformedIdentifier(Failure):
    """An identifier reached the store in a format it cannot parse."""

    value: Any

    @property
    def message(self) -> str:
        return f"Malformed identifier: {self.value!r}"


@dataclass(frozen=True)
class DuplicateKey(Failure):
    """A uniqueness constraint rejected the write."""

    field_name: str

    @property
    def message(self) -> str:
        return f"Duplicate value for field: {self.field_name}"


@dataclass(frozen=True)
class StoreUnavailable(Failure):
    """The store could not be reached or timed out."""

    detail: str

    @property
    def message(self) -> str:
        return self.detail


@dataclass(frozen=True)
class HttpFailure(Failure):
    """A failure that already knows which status code it should produce."""

    status_code: int
    detail: str

    @property
    def message(self) -> str:
        return self.detail


@dataclass(frozen=True)
class UnexpectedFailure(Failure):
    """Anything that could not be classified."""

    detail: str | None = None

    @property
    def message(self) -> str | None:
        return self.detail


# =====================================================================
# Classification
# =====================================================================


def _driver_message(exc: sa_exc.DBAPIError) -> str:
    return str(exc.orig) if exc.orig is not None else str(exc)


def _duplicate_field(exc: sa_exc.IntegrityError) -> str | None:
    text = _driver_message(exc)
    for pattern in _UNIQUE_FIELD_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def failure_from_exception(exc: BaseException) -> Failure:
    """
    Classify a raised exception into a failure variant.

    Args:
        exc: Any exception raised while serving a request.

    Returns:
        The matching failure variant, carrying the exception's traceback.
    """
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    if isinstance(exc, ApiError):
        return HttpFailure(exc.status_code, exc.message, trace=trace)
    if isinstance(exc, HTTPException):
        return HttpFailure(exc.code or 500, exc.description or exc.name, trace=trace)
    if isinstance(exc, sa_exc.IntegrityError):
        field_name = _duplicate_field(exc)
        if field_name is not None:
            return DuplicateKey(field_name, trace=trace)
        return SchemaViolation([_driver_message(exc)], trace=trace)
    if isinstance(
        exc,
        (
            sa_exc.OperationalError,
            sa_exc.InterfaceError,
            sa_exc.DisconnectionError,
            sa_exc.TimeoutError,
            ConnectionError,
            TimeoutError,
        ),
    ):
        return StoreUnavailable(str(exc), trace=trace)

    message = str(exc)
    return UnexpectedFailure(message or None, trace=trace)


# =====================================================================
# Normalization
# =====================================================================


def normalize_failure(failure: Failure, *, include_stack: bool = False) -> tuple[int, dict[str, Any]]:
    """
    Map a failure variant onto the HTTP error contract.

    Args:
        failure: The failure to normalize.
        include_stack: When True (development only) the body carries a
            ``stack`` field with diagnostic trace text.

    Returns:
        A two-element tuple ``(status_code, body)``.
    """
    status_code = 500
    body: dict[str, Any] = {"error": INTERNAL_ERROR_MESSAGE}

    if isinstance(failure, SchemaViolation):
        status_code = 400
        body = {"error": "Validation failed", "details": list(failure.messages)}
    elif isinstance(failure, MalformedIdentifier):
        status_code = 400
        body = {"error": "Invalid ID format"}
    elif isinstance(failure, DuplicateKey):
        status_code = 400
        body = {"error": f"Duplicate value for field: {failure.field_name}"}
    elif isinstance(failure, StoreUnavailable):
        status_code = 503
        body = {"error": UNAVAILABLE_MESSAGE}
    elif isinstance(failure, HttpFailure):
        status_code = failure.status_code
        body = {"error": failure.detail}
    elif failure.message:
        body = {"error": failure.message}

    if include_stack:
        body["stack"] = failure.trace

    return status_code, body


def log_failure(failure: Failure, *, include_stack: bool = False) -> None:
    """Log the failure message, and the trace when diagnostics are enabled."""
    logger.error("Error: %s", failure.message or type(failure).__name__)
    if include_stack:
        logger.error("Stack: %s", failure.trace)


def error_response(failure: Failure) -> tuple[Response, int]:
    """
    Build the Flask JSON response for a failure.

    Diagnostics are enabled only when the current application runs in
    the ``development`` environment.
    """
    include_stack = current_app.config.get("ENVIRONMENT") == "development"
    log_failure(failure, include_stack=include_stack)
    status_code, body = normalize_failure(failure, include_stack=include_stack)
    return jsonify(body), status_code


def register_error_handlers(app: Flask) -> None:
    """Route every exception raised during a request through the normalizer."""

    @app.errorhandler(Exception)
    def handle_exception(error: Exception) -> tuple[Response, int]:
        return error_response(failure_from_exception(error))
