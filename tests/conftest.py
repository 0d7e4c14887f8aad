"""
Shared pytest fixtures for the Task API test suite.

This module contains fixtures that are shared across all test modules.
Fixtures follow the Arrange-Act-Assert (AAA) pattern and ensure
test isolation by providing fresh data for each test.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Fixture dependencies
- Test data factories
- Database setup/teardown
- Test client creation
"""

import os
import pytest
from typing import Any
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from task_api import create_app, db
from task_api.models import Task, TaskStatus, generate_object_id


# Initialize Faker for generating test data
fake = Faker()


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """
    Create application instance for the test session.

    The 'session' scope means the same app instance is reused
    for all tests, improving performance.

    Yields:
        Flask application instance configured for testing.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for making HTTP requests.

    Args:
        app: Flask application fixture.

    Yields:
        Flask test client for making HTTP requests.
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Create a fresh database session for each test.

    This fixture ensures test isolation by:
    1. Creating all tables before the test
    2. Providing a clean database session
    3. Rolling back and dropping everything after the test

    Args:
        app: Flask application fixture.

    Yields:
        SQLAlchemy database extension.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture
def store(app, db_session):
    """Provide the application's task store inside an app context."""
    return app.extensions["task_store"]


@pytest.fixture
def development_mode(app, monkeypatch):
    """Switch the shared app into development diagnostics for one test."""
    monkeypatch.setitem(app.config, "ENVIRONMENT", "development")


@pytest.fixture
def production_mode(app, monkeypatch):
    """Switch the shared app into production diagnostics for one test."""
    monkeypatch.setitem(app.config, "ENVIRONMENT", "production")


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def task_factory(db_session):
    """
    Factory fixture for creating Task rows directly in the store.

    Example:
        def test_something(task_factory):
            task = task_factory(title="My Task")
            assert task.id is not None
    """

    def _create_task(
        title: str | None = None,
        description: str | None = None,
        status: str = TaskStatus.PENDING.value
    ) -> Task:
        task = Task(
            title=title or fake.sentence(nb_words=4),
            description=description or fake.paragraph(),
            status=status
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    """Create a single pending task."""
    return task_factory(
        title="Sample Task",
        description="This is a sample task for testing",
        status=TaskStatus.PENDING.value
    )


@pytest.fixture
def multiple_tasks(task_factory) -> list[Task]:
    """Create tasks with both statuses."""
    return [
        task_factory(title="First pending", status=TaskStatus.PENDING.value),
        task_factory(title="Second pending", status=TaskStatus.PENDING.value),
        task_factory(title="Done already", status=TaskStatus.COMPLETED.value),
    ]


@pytest.fixture
def missing_task_id() -> str:
    """A well-formed identifier that no stored task uses."""
    return generate_object_id()


# -----------------------------------------------------------------------------
# Test Data Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def valid_task_data() -> dict[str, Any]:
    """
    Provide valid task data for POST requests.

    Returns:
        Dictionary with valid task field values.
    """
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "status": TaskStatus.PENDING.value
    }


@pytest.fixture
def minimal_task_data() -> dict[str, str]:
    """Provide minimal valid task data (only required fields)."""
    return {"title": "Minimal Task"}


@pytest.fixture
def api_headers() -> dict[str, str]:
    """
    Provide common headers for API requests.

    Returns:
        Dictionary of HTTP headers.
    """
    return {
        "Content-Type": "application/json",
        "Accept": "application/json"
    }
