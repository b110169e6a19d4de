"""Process entry point: serve the API with uvicorn.

Uvicorn handles SIGINT/SIGTERM itself; in-flight requests get
``SERVER_SHUTDOWN_TIMEOUT_SECONDS`` to finish before the process exits.
"""

from __future__ import annotations

import logging

import uvicorn

from app.core.app_factory import create_app
from app.core.config import settings

logger = logging.getLogger(__name__)


def run() -> None:
    """Build the app from environment settings and serve it until shutdown."""

    app = create_app(settings)
    server_cfg = settings.server

    logger.info(
        "server.starting",
        extra={
            "environment": server_cfg.environment,
            "version": app.version,
            "host": server_cfg.host,
            "port": server_cfg.port,
            "docs_url": app.docs_url,
        },
    )

    uvicorn.run(
        app,
        host=server_cfg.host,
        port=server_cfg.port,
        timeout_keep_alive=server_cfg.read_timeout,
        timeout_graceful_shutdown=server_cfg.shutdown_timeout_seconds,
        log_config=None,
    )

    logger.info("server.stopped")


if __name__ == "__main__":
    run()
