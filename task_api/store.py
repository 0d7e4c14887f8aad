"""
Persistence collaborator for tasks.

``TaskStore`` is the only component that talks to the database.  It hands
out plain document dicts and reports problems as ``StoreResult`` values
carrying a failure variant instead of raising, so route handlers decide
what to do with a failure explicitly.

One store is created per application in ``create_app`` and registered
under ``app.extensions["task_store"]``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from .errors import (
    Failure,
    MalformedIdentifier,
    SchemaViolation,
    failure_from_exception,
)
from .models import Task, is_valid_object_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

Document = dict[str, Any]


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a store call: a value, or a failure."""

    value: T | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T | None) -> StoreResult[T]:
        return cls(value=value)

    @classmethod
    def error(cls, failure: Failure) -> StoreResult[T]:
        return cls(failure=failure)


class TaskStore:
    """
    Document-style access to the ``tasks`` table.

    Args:
        database: The Flask-SQLAlchemy extension bound to the application.
    """

    def __init__(self, database: SQLAlchemy) -> None:
        self._db = database

    def _fail(self, exc: Exception) -> StoreResult[Any]:
        self._db.session.rollback()
        failure = failure_from_exception(exc)
        logger.debug("Task store operation failed: %s", failure.message)
        return StoreResult.error(failure)

    def create(self, fields: Mapping[str, Any]) -> StoreResult[Document]:
        """Insert a task built from ``fields`` and return its document."""
        values = {name: fields[name] for name in Task.WRITABLE_FIELDS if name in fields}
        errors = Task.schema_errors(values)
        if errors:
            return StoreResult.error(SchemaViolation(errors))

        try:
            task = Task(**values)
            self._db.session.add(task)
            self._db.session.commit()
            return StoreResult.success(task.to_dict())
        except SQLAlchemyError as exc:
            return self._fail(exc)

    def find(self) -> StoreResult[list[Document]]:
        """Return every task, oldest first."""
        try:
            stmt = select(Task).order_by(Task.created_at.asc(), Task.id.asc())
            tasks = self._db.session.scalars(stmt).all()
            return StoreResult.success([task.to_dict() for task in tasks])
        except SQLAlchemyError as exc:
            return self._fail(exc)

    def _get(self, task_id: str) -> Task | None:
        return self._db.session.get(Task, task_id.lower())

    def find_by_id(self, task_id: str) -> StoreResult[Document]:
        """Return the task document, or ``None`` when it does not exist."""
        if not is_valid_object_id(task_id):
            return StoreResult.error(MalformedIdentifier(task_id))

        try:
            task = self._get(task_id)
            return StoreResult.success(task.to_dict() if task else None)
        except SQLAlchemyError as exc:
            return self._fail(exc)

    def find_by_id_and_update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        return_updated: bool = True,
        enforce_schema: bool = True,
    ) -> StoreResult[Document]:
        """
        Apply ``fields`` to an existing task.

        Args:
            task_id: Identifier of the task to update.
            fields: Writable fields to change; anything else is ignored.
            return_updated: Return the document after the update instead of
                the snapshot taken before it.
            enforce_schema: Check the merged record against the store schema
                before writing.

        Returns:
            A result holding the document, or ``None`` when no task matches.
        """
        if not is_valid_object_id(task_id):
            return StoreResult.error(MalformedIdentifier(task_id))

        changes = {name: fields[name] for name in Task.WRITABLE_FIELDS if name in fields}

        try:
            task = self._get(task_id)
            if task is None:
                return StoreResult.success(None)

            before = task.to_dict()
            if enforce_schema:
                errors = Task.schema_errors({**task.field_values(), **changes})
                if errors:
                    return StoreResult.error(SchemaViolation(errors))

            for name, value in changes.items():
                setattr(task, name, value)
            self._db.session.commit()
            return StoreResult.success(task.to_dict() if return_updated else before)
        except SQLAlchemyError as exc:
            return self._fail(exc)

    def find_by_id_and_delete(self, task_id: str) -> StoreResult[Document]:
        """Delete a task and return its last document, or ``None``."""
        if not is_valid_object_id(task_id):
            return StoreResult.error(MalformedIdentifier(task_id))

        try:
            task = self._get(task_id)
            if task is None:
                return StoreResult.success(None)

            document = task.to_dict()
            self._db.session.delete(task)
            self._db.session.commit()
            return StoreResult.success(document)
        except SQLAlchemyError as exc:
            return self._fail(exc)

    def ping(self) -> StoreResult[bool]:
        """Check that the store answers a trivial query."""
        try:
            self._db.session.execute(text("SELECT 1"))
            return StoreResult.success(True)
        except SQLAlchemyError as exc:
            return self._fail(exc)

    def close(self) -> None:
        """Release pooled connections. Requires an application context."""
        self._db.session.remove()
        self._db.engine.dispose()
        logger.info("Task store connections released")
