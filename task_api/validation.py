"""
Request validation for the Task API.

Three validators sit in front of the route handlers:

  * **Identifier validator** -- rejects path ids that do not match the
    store's identifier format before any lookup happens.
  * **Input validator** -- sanitizes and checks a creation payload.
  * **Update validator** -- sanitizes and checks a partial-update payload.

Each payload validator is a pure function returning a typed shape together
with the full list of violated rules, plus a decorator that applies it to
the current request.  Rules never short-circuit: callers always see every
problem in one response.

Key Concepts Demonstrated:
- Decorator pattern for request preconditions
- Using ``flask.g`` to hand the validated payload to the view
- Untrusted dicts converted to frozen dataclasses at the boundary
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import Response, g, jsonify, request
from werkzeug.exceptions import BadRequest

from .errors import ApiError
from .models import TaskStatus, is_valid_object_id
from .sanitizer import sanitize_object

logger = logging.getLogger(__name__)

RECOGNIZED_FIELDS = ("title", "status", "description")

TITLE_REQUIRED_MESSAGE = "Title is required and must be a non-empty string"
TITLE_NON_EMPTY_MESSAGE = "Title must be a non-empty string"
STATUS_ENUM_MESSAGE = "Status must be either 'pending' or 'completed'"
DESCRIPTION_TYPE_MESSAGE = "Description must be a string"
NO_VALID_FIELD_MESSAGE = "At least one valid field (title, status, or description) must be provided"
INVALID_ID_MESSAGE = "Invalid task ID format"
INVALID_JSON_MESSAGE = "Request body must be valid JSON"


@dataclass(frozen=True)
class TaskCreate:
    """A validated, sanitized creation payload."""

    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING

    def to_document(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class TaskUpdate:
    """A validated, sanitized partial update. ``None`` means "leave as is"."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None

    def changes(self) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if self.title is not None:
            changes["title"] = self.title
        if self.description is not None:
            changes["description"] = self.description
        if self.status is not None:
            changes["status"] = self.status.value
        return changes


def _is_non_blank_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _status_errors(payload: dict[str, Any]) -> list[str]:
    if "status" not in payload:
        return []
    status = payload["status"]
    if not isinstance(status, str) or status not in TaskStatus.values():
        return [STATUS_ENUM_MESSAGE]
    return []


def _description_errors(payload: dict[str, Any]) -> list[str]:
    if "description" in payload and not isinstance(payload["description"], str):
        return [DESCRIPTION_TYPE_MESSAGE]
    return []


def validate_create_payload(raw: Any) -> tuple[TaskCreate | None, list[str]]:
    """
    Sanitize and validate a task creation payload.

    Args:
        raw: The decoded JSON request body, untrusted.

    Returns:
        A two-element tuple ``(task, errors)``.  ``task`` is ``None`` when
        ``errors`` is non-empty.
    """
    sanitized = sanitize_object(raw)
    payload = sanitized if isinstance(sanitized, dict) else {}
    errors: list[str] = []

    title = payload.get("title")
    if not _is_non_blank_string(title):
        errors.append(TITLE_REQUIRED_MESSAGE)

    errors.extend(_status_errors(payload))
    errors.extend(_description_errors(payload))

    if errors:
        return None, errors

    return TaskCreate(
        title=title.strip(),
        description=payload.get("description"),
        status=TaskStatus(payload.get("status", TaskStatus.PENDING.value)),
    ), []


def validate_update_payload(raw: Any) -> tuple[TaskUpdate | None, list[str]]:
    """
    Sanitize and validate a partial task update payload.

    Only the supplied fields are checked; at least one recognized field
    must be present.

    Args:
        raw: The decoded JSON request body, untrusted.

    Returns:
        A two-element tuple ``(update, errors)``.  ``update`` is ``None``
        when ``errors`` is non-empty.
    """
    sanitized = sanitize_object(raw)
    payload = sanitized if isinstance(sanitized, dict) else {}
    errors: list[str] = []

    if not payload or not any(key in RECOGNIZED_FIELDS for key in payload):
        errors.append(NO_VALID_FIELD_MESSAGE)

    if "title" in payload and not _is_non_blank_string(payload["title"]):
        errors.append(TITLE_NON_EMPTY_MESSAGE)

    errors.extend(_status_errors(payload))
    errors.extend(_description_errors(payload))

    if errors:
        return None, errors

    title = payload.get("title")
    status = payload.get("status")
    return TaskUpdate(
        title=title.strip() if title is not None else None,
        description=payload.get("description"),
        status=TaskStatus(status) if status is not None else None,
    ), []


# =====================================================================
# Request decorators
# =====================================================================


def _request_payload() -> Any:
    """Decode the JSON body; an empty body counts as ``{}``."""
    if not request.get_data(cache=True):
        return {}
    # force: parse regardless of Content-Type
    try:
        return request.get_json(force=True)
    except BadRequest as exc:
        raise ApiError(INVALID_JSON_MESSAGE, 400) from exc


def _validation_failed(errors: list[str]) -> tuple[Response, int]:
    logger.warning("Validation failed: %s", errors)
    return jsonify({"error": "Validation failed", "details": errors}), 400


def validate_task_id(view_func: Callable[..., Any]):
    """
    Decorator rejecting malformed ``task_id`` path values with a 400.

    The store is never queried for an id that fails the format check.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        task_id = kwargs.get("task_id")
        if not is_valid_object_id(task_id):
            logger.warning("Rejected malformed task id: %r", task_id)
            return jsonify({"error": INVALID_ID_MESSAGE}), 400
        return view_func(*args, **kwargs)

    return wrapper


def validate_task_input(view_func: Callable[..., Any]):
    """
    Decorator validating a creation payload.

    On success the typed payload is stored as ``g.task_input``; on failure
    the request ends with a 400 listing every violated rule.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        task, errors = validate_create_payload(_request_payload())
        if errors:
            return _validation_failed(errors)
        g.task_input = task
        return view_func(*args, **kwargs)

    return wrapper


def validate_task_update(view_func: Callable[..., Any]):
    """
    Decorator validating a partial-update payload.

    On success the typed payload is stored as ``g.task_update``.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        update, errors = validate_update_payload(_request_payload())
        if errors:
            return _validation_failed(errors)
        g.task_update = update
        return view_func(*args, **kwargs)

    return wrapper
