"""
WSGI entry point for the Task API.

Builds the application once at process start.  A missing connection string
or an unreachable task store is fatal: the error is logged and the process
exits with status 1.  Pooled store connections are released at shutdown.
"""

import atexit
import logging
import os
import sys

from flask import Flask

from config import get_config
from task_api import create_app
from task_api.errors import ConfigurationError, StoreConnectionError

logger = logging.getLogger(__name__)


def _release_store(app: Flask) -> None:
    """Dispose of the task store's connections."""
    with app.app_context():
        app.extensions["task_store"].close()


def build_app(config_name: str | None = None) -> Flask:
    """
    Create the application or terminate the process.

    Args:
        config_name: Configuration environment name; defaults to FLASK_ENV.

    Returns:
        The configured application, with store release registered at exit.
    """
    config_name = config_name or os.getenv("FLASK_ENV", "production")
    # same resolution as create_app; unknown names fall back to development
    config_class = get_config(config_name)
    try:
        app = create_app(config_name)
    except (ConfigurationError, StoreConnectionError) as exc:
        logger.error("Failed to connect to task store: %s", exc)
        if config_class.ENVIRONMENT == "development":
            logger.exception("Stack:")
        sys.exit(1)

    atexit.register(_release_store, app)
    return app


def main() -> None:
    """Run the development server."""
    app = build_app()
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "3000"))
    )


if __name__ == "__main__":
    main()
