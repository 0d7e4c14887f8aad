"""
REST API endpoints for Task management.

This module provides CRUD operations for tasks via HTTP methods.
All endpoints return JSON responses and follow REST conventions.

Endpoints:
    GET    /health           - Health check (includes store connectivity)
    GET    /tasks            - List all tasks
    GET    /tasks/<id>       - Get a single task by ID
    POST   /tasks            - Create a new task
    PUT    /tasks/<id>       - Partially update an existing task
    DELETE /tasks/<id>       - Delete a task

Validation runs as decorators before each handler; store failures come
back as ``StoreResult`` values and are turned into responses by the
error normalizer.
"""

import logging

from flask import Blueprint, Response, current_app, g, jsonify

from task_api.errors import error_response
from task_api.store import TaskStore
from task_api.validation import (
    validate_task_id,
    validate_task_input,
    validate_task_update,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _store() -> TaskStore:
    return current_app.extensions["task_store"]


def _task_not_found(task_id: str) -> tuple[Response, int]:
    logger.warning(f"Task {task_id} not found")
    return jsonify({"error": "Task not found"}), 404


# -----------------------------------------------------------------------------
# API Endpoints
# -----------------------------------------------------------------------------

@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint reporting store connectivity."""
    result = _store().ping()
    if not result.ok:
        return error_response(result.failure)

    return jsonify({
        "status": "healthy",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "store": "connected"
    }), 200


@api_bp.route("/tasks", methods=["GET"])
def get_tasks() -> tuple[Response, int]:
    """
    List all tasks.

    Returns:
        JSON array of tasks, oldest first, and 200 status code.
    """
    logger.info("GET /tasks - Fetching all tasks")

    result = _store().find()
    if not result.ok:
        return error_response(result.failure)

    logger.info(f"Found {len(result.value)} tasks")
    return jsonify(result.value), 200


@api_bp.route("/tasks/<task_id>", methods=["GET"])
@validate_task_id
def get_task(task_id: str) -> tuple[Response, int]:
    """
    Get a single task by ID.

    Args:
        task_id: The 24-character hexadecimal task identifier.

    Returns:
        JSON response with task data and 200 status code,
        or error message and 404 if not found.
    """
    logger.info(f"GET /tasks/{task_id} - Fetching task")

    result = _store().find_by_id(task_id)
    if not result.ok:
        return error_response(result.failure)
    if result.value is None:
        return _task_not_found(task_id)

    return jsonify(result.value), 200


@api_bp.route("/tasks", methods=["POST"])
@validate_task_input
def create_task() -> tuple[Response, int]:
    """
    Create a new task.

    Request Body (JSON):
        title: Task title (required)
        description: Task description (optional)
        status: Task status (optional, default: pending)

    Returns:
        JSON response with created task and 201 status code,
        or error message and 400 if validation fails.
    """
    logger.info("POST /tasks - Creating new task")

    result = _store().create(g.task_input.to_document())
    if not result.ok:
        return error_response(result.failure)

    logger.info(f"Created task with ID: {result.value['id']}")
    return jsonify(result.value), 201


@api_bp.route("/tasks/<task_id>", methods=["PUT"])
@validate_task_id
@validate_task_update
def update_task(task_id: str) -> tuple[Response, int]:
    """
    Update an existing task.

    Only the supplied fields change; absent fields are left untouched.

    Args:
        task_id: The 24-character hexadecimal task identifier.

    Request Body (JSON):
        title: Task title
        description: Task description
        status: Task status

    Returns:
        JSON response with updated task and 200 status code,
        or error message and 404/400 if not found or validation fails.
    """
    logger.info(f"PUT /tasks/{task_id} - Updating task")

    result = _store().find_by_id_and_update(
        task_id,
        g.task_update.changes(),
        return_updated=True,
        enforce_schema=True
    )
    if not result.ok:
        return error_response(result.failure)
    if result.value is None:
        return _task_not_found(task_id)

    logger.info(f"Updated task {task_id}")
    return jsonify(result.value), 200


@api_bp.route("/tasks/<task_id>", methods=["DELETE"])
@validate_task_id
def delete_task(task_id: str) -> tuple[Response, int]:
    """
    Delete a task.

    Args:
        task_id: The 24-character hexadecimal task identifier.

    Returns:
        JSON response with success message and 200 status code,
        or error message and 404 if not found.
    """
    logger.info(f"DELETE /tasks/{task_id} - Deleting task")

    result = _store().find_by_id_and_delete(task_id)
    if not result.ok:
        return error_response(result.failure)
    if result.value is None:
        return _task_not_found(task_id)

    logger.info(f"Deleted task {task_id}")
    return jsonify({"message": "Task deleted"}), 200
