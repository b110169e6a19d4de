from __future__ import annotations

from app.api.routes.health import legacy_router as legacy_health_router
from app.api.routes.health import router as health_router

__all__ = ["health_router", "legacy_health_router"]
