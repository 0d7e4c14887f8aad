"""
Flask application factory module.

This module creates and configures the Flask application using
the factory pattern, allowing for different configurations
(development, testing, production).

The factory owns the task store's lifecycle: it refuses to build an
application without a store connection string, verifies the store is
reachable, and registers one ``TaskStore`` per application.
"""

import logging
from pathlib import Path

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from config import get_config

# Initialize SQLAlchemy without binding to app
db = SQLAlchemy()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix):].split("?", 1)[0]
    if sqlite_path in ("", ":memory:"):
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.

    Returns:
        Configured Flask application instance.

    Raises:
        ConfigurationError: No store connection string is configured.
        StoreConnectionError: The store could not be reached.
    """
    from task_api.errors import (
        ConfigurationError,
        StoreConnectionError,
        register_error_handlers,
    )
    from task_api.store import TaskStore

    app = Flask(__name__)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    logger.info(f"Creating app with config: {config_class.__name__}")

    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI")
    if not database_uri:
        raise ConfigurationError("DATABASE_URL must be set to the task store connection string")
    _ensure_sqlite_db_parent_exists(database_uri)

    # Initialize extensions
    db.init_app(app)
    app.extensions["task_store"] = TaskStore(db)

    # Register blueprints and error handlers
    from task_api.routes.api import api_bp

    app.register_blueprint(api_bp)
    register_error_handlers(app)

    # Create database tables; this is also the startup connectivity check
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as exc:
            raise StoreConnectionError(f"Unable to reach task store: {exc}") from exc
        logger.info("Database tables created")

    return app
