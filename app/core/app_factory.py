from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability: tests build isolated apps with their own settings and
their own rate limiter instead of sharing module-level state.
"""

from fastapi import FastAPI

from app.api.routes import health_router, legacy_health_router
from app.core.config import Settings, settings as default_settings
from app.core.cors import CORSMiddleware
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import (
    RequestIdMiddleware,
    TimeoutMiddleware,
    recoverer_middleware,
    request_logging_middleware,
)
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import RateLimitMiddleware, build_rate_limiter

API_PREFIX = "/api/v1"


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build the app from; defaults to the
            process-wide settings loaded from the environment.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    docs = cfg.docs
    app = FastAPI(
        title=docs.title,
        description=docs.description,
        version=docs.version,
        docs_url=docs.route if docs.enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs.enabled else None,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.settings = cfg

    # Middleware: the last one registered runs first.
    rate_limit = cfg.rate_limit
    app.state.rate_limiter = None
    if rate_limit.enabled:
        # One limiter per app, living exactly as long as the app does
        app.state.rate_limiter = build_rate_limiter(rate_limit)
        app.middleware("http")(RateLimitMiddleware(app.state.rate_limiter))
    app.middleware("http")(CORSMiddleware(cfg.cors))
    app.middleware("http")(TimeoutMiddleware(cfg.server.request_timeout_seconds))
    app.middleware("http")(recoverer_middleware)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(RequestIdMiddleware(cfg.log.request_id_header))

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(legacy_health_router)

    apply_openapi_customizations(app, rate_limited=rate_limit.enabled)

    return app
