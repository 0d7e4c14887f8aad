"""
Database models for the Task API.

This module defines the SQLAlchemy model backing the task store, the
identifier format records are addressed by, and the store's own schema
rules, which are enforced independently of the request validators.
"""

import itertools
import re
import secrets
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from task_api import db


OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")

# 5 random bytes fixed for the life of the process, then a rolling 3-byte counter
_PROCESS_UNIQUE = secrets.token_bytes(5).hex()
_id_counter = itertools.count(secrets.randbelow(0xFFFFFF))


def generate_object_id() -> str:
    """
    Generate a new 24-character hexadecimal record identifier.

    Layout: 4-byte creation timestamp, 5 process-unique random bytes and
    a 3-byte counter, so identifiers sort roughly by creation time.
    """
    timestamp = int(time.time()) & 0xFFFFFFFF
    counter = next(_id_counter) & 0xFFFFFF
    return f"{timestamp:08x}{_PROCESS_UNIQUE}{counter:06x}"


def is_valid_object_id(value: Any) -> bool:
    """Return True when ``value`` matches the store's identifier format."""
    return isinstance(value, str) and OBJECT_ID_PATTERN.fullmatch(value) is not None


class TaskStatus(str, Enum):
    """Enumeration of possible task statuses."""

    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]


class Task(db.Model):
    """
    Task model representing a to-do item.

    Attributes:
        id: 24-character hexadecimal identifier assigned at creation.
        title: Short title describing the task.
        description: Optional free-text description.
        status: Current status (pending, completed).
        created_at: Timestamp when the task was created.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_tasks_status"
        ),
    )

    id: str = db.Column(db.String(24), primary_key=True, default=generate_object_id)
    title: str = db.Column(db.Text, nullable=False)
    description: str | None = db.Column(db.Text, nullable=True)
    status: str = db.Column(
        db.String(20),
        nullable=False,
        default=TaskStatus.PENDING.value
    )
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    # Fields a caller may write; id and created_at are store-assigned
    WRITABLE_FIELDS = ("title", "description", "status")

    @staticmethod
    def schema_errors(values: Mapping[str, Any]) -> list[str]:
        """
        Check a full set of field values against the store schema.

        Args:
            values: Field values for a complete record.

        Returns:
            One message per violated rule; empty when the record is valid.
        """
        errors = []

        title = values.get("title")
        if not isinstance(title, str) or not title.strip():
            errors.append("Path `title` is required.")

        status = values.get("status", TaskStatus.PENDING.value)
        if status not in TaskStatus.values():
            errors.append(f"`{status}` is not a valid enum value for path `status`.")

        description = values.get("description")
        if description is not None and not isinstance(description, str):
            errors.append("Cast to string failed for path `description`.")

        return errors

    @staticmethod
    def _to_utc_iso(value: datetime | None) -> str | None:
        """
        Convert datetime to an ISO-8601 UTC string.

        SQLite commonly returns naive datetime values even when timezone-aware
        columns are declared. For API contracts, always normalize to UTC.
        """
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.isoformat()

    def field_values(self) -> dict[str, Any]:
        """Return the current writable field values."""
        return {name: getattr(self, name) for name in self.WRITABLE_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the task to its document representation.

        Returns:
            Dictionary containing all task fields.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "createdAt": self._to_utc_iso(self.created_at),
        }

    def __repr__(self) -> str:
        """Return string representation of the task."""
        return f"<Task {self.id}: {self.title}>"
